"""
SQLAlchemy ORM models for the account store.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text, Uuid
from sqlalchemy.orm import DeclarativeBase

from auth.password import hash_password, verify_password


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username = Column(String(64), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(128), nullable=False, index=True)
    avatar_url = Column(Text, nullable=False)
    cover_image_url = Column(Text, nullable=False, default="")
    refresh_token = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    @property
    def password(self) -> str:
        raise AttributeError("password is write-only; use check_password()")

    @password.setter
    def password(self, plaintext: str) -> None:
        # Only assignment hashes; saving other fields leaves the hash alone.
        self.password_hash = hash_password(plaintext)

    def check_password(self, plaintext: str) -> bool:
        return verify_password(plaintext, self.password_hash)

    def __repr__(self) -> str:
        return f"<Account {self.id} {self.username!r}>"
