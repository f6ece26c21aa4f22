"""
AccountService — registration, login, session rotation and profile updates.

Each method either completes and persists, or raises an ``ApiError`` before
anything beyond the last explicit save has been written.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from auth.tokens import TokenError, TokenIssuer, TokenPair
from database.helpers import (
    create_account,
    find_account_by_identity,
    get_account,
    save_account,
    set_refresh_token,
)
from database.models import Account
from media.base import MediaHost, MediaHostError, UploadResult
from utils.errors import (
    ApiError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DependencyFailure,
    NotFoundError,
    ValidationError,
)
from utils.validators import (
    clean_full_name,
    is_blank,
    normalize_email,
    normalize_username,
    require_fields,
    validate_password,
)

logger = logging.getLogger(__name__)


class AccountService:
    """Request-scoped orchestration over one DB session."""

    def __init__(
        self,
        session: AsyncSession,
        issuer: TokenIssuer,
        media: MediaHost,
    ) -> None:
        self.session = session
        self.issuer = issuer
        self.media = media

    # ── Helpers ─────────────────────────────────────────────────────────

    async def _upload(self, local_path: str, what: str) -> UploadResult:
        try:
            return await self.media.upload(local_path)
        except MediaHostError as exc:
            logger.error("%s upload failed: %s", what, exc)
            raise DependencyFailure(
                f"Failed to upload {what} image. Please try again."
            ) from exc

    async def _discard_hosted(self, urls: List[str]) -> None:
        """Best-effort removal of images uploaded by a failed operation."""
        for url in urls:
            try:
                await self.media.delete(url)
            except MediaHostError as exc:
                logger.warning("Could not delete orphaned image %s: %s", url, exc)

    async def _reload(self, account: Account) -> Account:
        current = await get_account(self.session, account.id)
        if current is None:
            raise NotFoundError("User not found")
        return current

    async def _issue_and_store(self, account: Account) -> TokenPair:
        pair = self.issuer.issue_token_pair(account)
        await set_refresh_token(self.session, account, pair.refresh_token)
        return pair

    # ── Registration / session lifecycle ────────────────────────────────

    async def register(
        self,
        *,
        full_name: Optional[str],
        email: Optional[str],
        password: Optional[str],
        username: Optional[str],
        avatar_path: Optional[str],
        cover_image_path: Optional[str] = None,
    ) -> Account:
        require_fields(
            fullName=full_name, email=email, password=password, username=username,
        )
        email = normalize_email(email)
        username = normalize_username(username)
        full_name = clean_full_name(full_name)
        validate_password(password)

        existing = await find_account_by_identity(
            self.session, username=username, email=email,
        )
        if existing is not None:
            raise ConflictError(
                "A user with this email or username already exists. "
                "Please use a different one."
            )

        if not avatar_path:
            raise ValidationError("User avatar image is required.")

        avatar = await self._upload(avatar_path, "avatar")
        uploaded = [avatar.url]
        try:
            cover_url = ""
            if cover_image_path:
                cover_url = (await self._upload(cover_image_path, "cover")).url
                uploaded.append(cover_url)

            account = await create_account(
                self.session,
                username=username,
                email=email,
                password=password,
                full_name=full_name,
                avatar_url=avatar.url,
                cover_image_url=cover_url,
                refresh_token="",
            )
        except ApiError:
            await self._discard_hosted(uploaded)
            raise
        logger.info("Registered account %s (%s)", account.username, account.id)
        return account

    async def login(
        self,
        *,
        password: Optional[str],
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Tuple[Account, TokenPair]:
        if is_blank(username) and is_blank(email):
            raise ValidationError("Username or email is required.")
        if is_blank(password):
            raise ValidationError("Password is required.")

        # Either field may carry either identifier.
        identifier = (email if is_blank(username) else username).strip().lower()
        account = await find_account_by_identity(
            self.session, username=identifier, email=identifier,
        )
        if account is None:
            raise NotFoundError("User does not exist")
        if not account.check_password(password):
            raise AuthenticationError("Invalid user credentials")

        pair = await self._issue_and_store(account)
        logger.info("Login: %s (%s)", account.username, account.id)
        return account, pair

    async def logout(self, account: Account) -> None:
        await set_refresh_token(self.session, account, "")
        logger.info("Logout: %s", account.id)

    async def refresh(self, refresh_token: Optional[str]) -> Tuple[Account, TokenPair]:
        if is_blank(refresh_token):
            raise AuthenticationError("Refresh token is missing")

        try:
            claims = self.issuer.decode_refresh_token(refresh_token)
        except TokenError as exc:
            raise AuthorizationError("Invalid or expired refresh token") from exc

        account = await get_account(self.session, claims["id"])
        if account is None:
            raise AuthorizationError("Invalid refresh token")
        if not account.refresh_token or account.refresh_token != refresh_token:
            logger.warning("Refresh token mismatch for account %s", account.id)
            raise AuthorizationError("Refresh token is expired or used")

        pair = await self._issue_and_store(account)
        logger.info("Rotated refresh token for %s", account.id)
        return account, pair

    # ── Profile mutation ────────────────────────────────────────────────

    async def change_password(
        self,
        account: Account,
        *,
        old_password: Optional[str],
        new_password: Optional[str],
    ) -> None:
        require_fields(oldPassword=old_password, newPassword=new_password)
        validate_password(new_password, field="new password")

        account = await self._reload(account)
        if not account.check_password(old_password):
            raise AuthenticationError("Invalid old password")

        account.password = new_password
        await save_account(self.session, account)
        logger.info("Password changed for %s", account.id)

    async def update_account_details(
        self,
        account: Account,
        *,
        full_name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Account:
        if is_blank(full_name) and is_blank(email):
            raise ValidationError("At least one of fullName or email is required.")

        account = await self._reload(account)
        if not is_blank(full_name):
            account.full_name = clean_full_name(full_name)
        if not is_blank(email):
            email = normalize_email(email)
            if email != account.email:
                taken = await find_account_by_identity(self.session, email=email)
                if taken is not None:
                    raise ConflictError("Email is already in use.")
                account.email = email

        return await save_account(self.session, account)

    async def update_avatar(self, account: Account, avatar_path: Optional[str]) -> Account:
        if not avatar_path:
            raise ValidationError("Avatar file is missing")

        account = await self._reload(account)
        previous_url = account.avatar_url
        uploaded = await self._upload(avatar_path, "avatar")
        account.avatar_url = uploaded.url
        account = await save_account(self.session, account)

        if previous_url and previous_url != uploaded.url:
            try:
                await self.media.delete(previous_url)
            except MediaHostError as exc:
                logger.warning("Could not delete old avatar %s: %s", previous_url, exc)
        return account

    async def update_cover_image(self, account: Account, cover_path: Optional[str]) -> Account:
        if not cover_path:
            raise ValidationError("Cover image file is missing")

        account = await self._reload(account)
        uploaded = await self._upload(cover_path, "cover")
        account.cover_image_url = uploaded.url
        return await save_account(self.session, account)
