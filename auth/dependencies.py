"""
FastAPI dependencies for authentication.

Provides ``db_session``, the app-scoped collaborators (token issuer, media
host, settings) and ``get_current_account``, the gate in front of every
protected route.
"""

from __future__ import annotations

import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from auth.service import AccountService
from auth.tokens import TokenError, TokenIssuer
from config.settings import Settings
from database.helpers import get_account
from database.models import Account
from database.session import get_db_session
from media.base import MediaHost
from utils.errors import AuthenticationError

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


async def db_session(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    yield session


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_media_host(request: Request) -> MediaHost:
    return request.app.state.media_host


def get_account_service(
    session: AsyncSession = Depends(db_session),
    issuer: TokenIssuer = Depends(get_token_issuer),
    media: MediaHost = Depends(get_media_host),
) -> AccountService:
    return AccountService(session, issuer, media)


def extract_access_token(request: Request) -> Optional[str]:
    """Cookie first, then ``Authorization: Bearer <token>``."""
    cookie_token = request.cookies.get(ACCESS_COOKIE)
    if cookie_token:
        return cookie_token
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


async def get_current_account(
    request: Request,
    session: AsyncSession = Depends(db_session),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> Account:
    """
    Verify the access token and return the authenticated ``Account``.

    Every failure is a 401 with no detail about which check failed.
    """
    token = extract_access_token(request)
    if not token:
        raise AuthenticationError("Access token missing from request")

    try:
        claims = issuer.decode_access_token(token)
    except TokenError as exc:
        logger.debug("Rejected access token: %s", exc)
        raise AuthenticationError("Invalid or expired access token") from exc

    account = await get_account(session, claims["id"])
    if account is None:
        raise AuthenticationError("Invalid or expired access token")

    request.state.account = account
    return account
