"""
Access / refresh token issuance and verification.

Tokens are HS256 JWTs.  Access and refresh tokens are signed with two
distinct secrets from ``Settings`` so one can never stand in for the other.
Every token carries a random ``jti`` so each issuance is unique, which is
what makes refresh-token rotation observable.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from config.settings import Settings

ACCESS = "access"
REFRESH = "refresh"


class ConfigurationError(RuntimeError):
    """Raised at startup when token secrets are missing or unsafe."""


class TokenError(Exception):
    """Raised when a token fails signature, expiry or type checks."""


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenIssuer:
    """Signs and verifies the two token kinds for one set of settings."""

    def __init__(self, settings: Settings) -> None:
        if not settings.access_token_secret:
            raise ConfigurationError(
                "ACCESS_TOKEN_SECRET not configured. "
                "Generate one with: openssl rand -hex 32"
            )
        if not settings.refresh_token_secret:
            raise ConfigurationError(
                "REFRESH_TOKEN_SECRET not configured. "
                "Generate one with: openssl rand -hex 32"
            )
        if settings.access_token_secret == settings.refresh_token_secret:
            raise ConfigurationError(
                "ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must differ."
            )
        self._access_secret = settings.access_token_secret
        self._refresh_secret = settings.refresh_token_secret
        self._algorithm = settings.jwt_algorithm
        self.access_ttl = timedelta(seconds=settings.access_token_expiry_seconds)
        self.refresh_ttl = timedelta(seconds=settings.refresh_token_expiry_seconds)

    # ── Issuance ────────────────────────────────────────────────────────

    def _sign(self, claims: Dict[str, Any], secret: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def issue_access_token(self, account) -> str:
        """Short-lived token carrying the account's identity claims."""
        return self._sign(
            {
                "type": ACCESS,
                "id": str(account.id),
                "username": account.username,
                "email": account.email,
                "fullName": account.full_name,
            },
            self._access_secret,
            self.access_ttl,
        )

    def issue_refresh_token(self, account) -> str:
        """Long-lived token carrying only the account id."""
        return self._sign(
            {"type": REFRESH, "id": str(account.id)},
            self._refresh_secret,
            self.refresh_ttl,
        )

    def issue_token_pair(self, account) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(account),
            refresh_token=self.issue_refresh_token(account),
        )

    # ── Verification ────────────────────────────────────────────────────

    def _decode(self, token: str, secret: str, expected_type: str) -> Dict[str, Any]:
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenError("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise TokenError(f"Invalid token: {exc}") from exc

        if payload.get("type") != expected_type:
            raise TokenError("Invalid token type")
        if not isinstance(payload.get("id"), str):
            raise TokenError("Malformed token: missing id")
        return payload

    def decode_access_token(self, token: str) -> Dict[str, Any]:
        return self._decode(token, self._access_secret, ACCESS)

    def decode_refresh_token(self, token: str) -> Dict[str, Any]:
        return self._decode(token, self._refresh_secret, REFRESH)
