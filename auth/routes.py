"""
Account API routes — registration, sessions and profile updates.

Route prefix: /api/v1/users
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import JSONResponse

from auth.dependencies import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    get_account_service,
    get_current_account,
    get_settings,
)
from auth.service import AccountService
from auth.tokens import TokenPair
from config.settings import Settings
from database.models import Account
from media.staging import staged_uploads
from utils.schemas import (
    AccountOut,
    ApiResponse,
    ChangePasswordRequest,
    LoginData,
    LoginRequest,
    RefreshRequest,
    TokenData,
    UpdateAccountRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


# ── Cookie helpers ─────────────────────────────────────────────────────


def _respond(payload: ApiResponse) -> JSONResponse:
    return JSONResponse(status_code=payload.status, content=payload.model_dump(mode="json"))


def _set_auth_cookies(response: JSONResponse, pair: TokenPair, settings: Settings) -> None:
    common = dict(httponly=True, secure=settings.is_production, samesite="strict")
    response.set_cookie(
        ACCESS_COOKIE, pair.access_token,
        max_age=settings.access_token_expiry_seconds, **common,
    )
    response.set_cookie(
        REFRESH_COOKIE, pair.refresh_token,
        max_age=settings.refresh_token_expiry_seconds, **common,
    )


def _clear_auth_cookies(response: JSONResponse, settings: Settings) -> None:
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            name, httponly=True, secure=settings.is_production, samesite="strict",
        )


def _account(account: Account) -> AccountOut:
    return AccountOut.model_validate(account)


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    full_name: Optional[str] = Form(None, alias="fullName"),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    username: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    service: AccountService = Depends(get_account_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Register a new account with an avatar and optional cover image."""
    async with staged_uploads(
        settings.upload_dir, avatar=avatar, coverImage=cover_image,
    ) as paths:
        account = await service.register(
            full_name=full_name,
            email=email,
            password=password,
            username=username,
            avatar_path=paths["avatar"],
            cover_image_path=paths["coverImage"],
        )
    return _respond(ApiResponse.ok(
        _account(account), "User registered successfully.", status=status.HTTP_201_CREATED,
    ))


@router.post("/login")
async def login(
    req: LoginRequest,
    service: AccountService = Depends(get_account_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Login with username or email + password."""
    account, pair = await service.login(
        password=req.password, username=req.username, email=req.email,
    )
    data = LoginData(
        user=_account(account),
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
    )
    response = _respond(ApiResponse.ok(data, "User logged in successfully"))
    _set_auth_cookies(response, pair, settings)
    return response


@router.post("/logout")
async def logout(
    account: Account = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    await service.logout(account)
    response = _respond(ApiResponse.ok({}, "User logged out"))
    _clear_auth_cookies(response, settings)
    return response


@router.post("/refresh-token")
async def refresh_token(
    request: Request,
    req: Optional[RefreshRequest] = None,
    service: AccountService = Depends(get_account_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Exchange a refresh token (cookie or body) for a rotated token pair."""
    presented = request.cookies.get(REFRESH_COOKIE) or (req.refresh_token if req else None)
    _, pair = await service.refresh(presented)
    data = TokenData(access_token=pair.access_token, refresh_token=pair.refresh_token)
    response = _respond(ApiResponse.ok(data, "Access token refreshed"))
    _set_auth_cookies(response, pair, settings)
    return response


@router.patch("/change-password")
async def change_password(
    req: ChangePasswordRequest,
    account: Account = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    await service.change_password(
        account, old_password=req.old_password, new_password=req.new_password,
    )
    return _respond(ApiResponse.ok({}, "Password changed successfully"))


@router.get("/me")
async def me(account: Account = Depends(get_current_account)) -> JSONResponse:
    return _respond(ApiResponse.ok(_account(account), "Current user fetched successfully"))


@router.put("/update-account")
async def update_account(
    req: UpdateAccountRequest,
    account: Account = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    updated = await service.update_account_details(
        account, full_name=req.full_name, email=req.email,
    )
    return _respond(ApiResponse.ok(_account(updated), "Account details updated successfully"))


@router.put("/update-avatar")
async def update_avatar(
    avatar: Optional[UploadFile] = File(None),
    account: Account = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    async with staged_uploads(settings.upload_dir, avatar=avatar) as paths:
        updated = await service.update_avatar(account, paths["avatar"])
    return _respond(ApiResponse.ok(_account(updated), "Avatar updated successfully"))


@router.put("/update-coverimage")
async def update_cover_image(
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    account: Account = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    async with staged_uploads(settings.upload_dir, coverImage=cover_image) as paths:
        updated = await service.update_cover_image(account, paths["coverImage"])
    return _respond(ApiResponse.ok(_account(updated), "Cover image updated successfully"))
