"""
Tests for auth.tokens — issuance, verification and startup configuration.
"""

import uuid
from types import SimpleNamespace

import jwt
import pytest

from auth.tokens import ConfigurationError, TokenError, TokenIssuer
from config.settings import Settings


def _account(**overrides):
    defaults = dict(
        id=uuid.uuid4(),
        username="alice",
        email="a@x.com",
        full_name="Alice A",
    )
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


def _settings(**overrides) -> Settings:
    values = dict(access_token_secret="acc-secret", refresh_token_secret="ref-secret")
    values.update(overrides)
    return Settings(**values)


class TestConfiguration:
    def test_missing_access_secret_is_fatal(self):
        with pytest.raises(ConfigurationError, match="ACCESS_TOKEN_SECRET"):
            TokenIssuer(_settings(access_token_secret=""))

    def test_missing_refresh_secret_is_fatal(self):
        with pytest.raises(ConfigurationError, match="REFRESH_TOKEN_SECRET"):
            TokenIssuer(_settings(refresh_token_secret=""))

    def test_shared_secret_is_rejected(self):
        with pytest.raises(ConfigurationError, match="must differ"):
            TokenIssuer(_settings(refresh_token_secret="acc-secret"))

    def test_create_app_fails_at_startup(self):
        from main import create_app

        with pytest.raises(ConfigurationError):
            create_app(_settings(access_token_secret=""))


class TestIssuance:
    def test_access_token_claims(self):
        issuer = TokenIssuer(_settings())
        account = _account()
        claims = issuer.decode_access_token(issuer.issue_access_token(account))
        assert claims["id"] == str(account.id)
        assert claims["username"] == "alice"
        assert claims["email"] == "a@x.com"
        assert claims["fullName"] == "Alice A"
        assert claims["exp"] - claims["iat"] == 86400

    def test_refresh_token_carries_only_id(self):
        issuer = TokenIssuer(_settings())
        account = _account()
        claims = issuer.decode_refresh_token(issuer.issue_refresh_token(account))
        assert claims["id"] == str(account.id)
        assert "username" not in claims
        assert "email" not in claims
        assert claims["exp"] - claims["iat"] == 604800

    def test_tokens_are_unique_per_issue(self):
        issuer = TokenIssuer(_settings())
        account = _account()
        assert issuer.issue_refresh_token(account) != issuer.issue_refresh_token(account)


class TestVerification:
    def test_kinds_are_not_interchangeable(self):
        issuer = TokenIssuer(_settings())
        pair = issuer.issue_token_pair(_account())
        with pytest.raises(TokenError):
            issuer.decode_access_token(pair.refresh_token)
        with pytest.raises(TokenError):
            issuer.decode_refresh_token(pair.access_token)

    def test_expired_token(self):
        issuer = TokenIssuer(_settings(access_token_expiry_seconds=-30))
        token = issuer.issue_access_token(_account())
        with pytest.raises(TokenError, match="expired"):
            issuer.decode_access_token(token)

    def test_swapped_signature(self):
        issuer = TokenIssuer(_settings())
        mine = issuer.issue_access_token(_account())
        other = issuer.issue_access_token(_account(username="mallory"))
        forged = mine.rsplit(".", 1)[0] + "." + other.rsplit(".", 1)[1]
        with pytest.raises(TokenError):
            issuer.decode_access_token(forged)

    def test_foreign_secret(self):
        issuer = TokenIssuer(_settings())
        forged = jwt.encode(
            {"type": "access", "id": "x", "iat": 0, "exp": 9999999999},
            "someone-else",
            algorithm="HS256",
        )
        with pytest.raises(TokenError):
            issuer.decode_access_token(forged)

    def test_garbage(self):
        issuer = TokenIssuer(_settings())
        with pytest.raises(TokenError):
            issuer.decode_access_token("not.a.token")
