"""
Pydantic schemas for the account API.

Wire format is camelCase; Python attributes stay snake_case.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Requests
# ═══════════════════════════════════════════════════════════════════════════════


class LoginRequest(CamelModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    old_password: Optional[str] = None
    new_password: Optional[str] = None


class UpdateAccountRequest(CamelModel):
    full_name: Optional[str] = None
    email: Optional[str] = None


# ═══════════════════════════════════════════════════════════════════════════════
# Responses
# ═══════════════════════════════════════════════════════════════════════════════


class AccountOut(CamelModel):
    """Sanitized account: no password hash, no refresh token."""

    id: uuid.UUID
    username: str
    email: str
    full_name: str
    avatar_url: str
    cover_image_url: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LoginData(CamelModel):
    user: AccountOut
    access_token: str
    refresh_token: str


class TokenData(CamelModel):
    access_token: str
    refresh_token: str


class ApiResponse(BaseModel):
    """Uniform envelope for every response, success or error."""

    status: int
    data: Any = None
    message: str = "Success"
    success: bool = True

    @classmethod
    def ok(cls, data: Any = None, message: str = "Success", status: int = 200) -> "ApiResponse":
        if isinstance(data, BaseModel):
            data = data.model_dump(mode="json", by_alias=True)
        return cls(status=status, data=data, message=message, success=status < 400)

    @classmethod
    def error(cls, status: int, message: str, data: Any = None) -> "ApiResponse":
        return cls(status=status, data=data, message=message, success=False)
