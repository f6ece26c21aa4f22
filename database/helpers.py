"""
Database helper functions — account lookups and persistence.

"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from database.models import Account
from utils.errors import ConflictError, DependencyFailure

logger = logging.getLogger(__name__)

_DUPLICATE_MESSAGE = (
    "A user with this email or username already exists. Please use a different one."
)


def _to_uuid(value: str | uuid.UUID) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


async def get_account(session: AsyncSession, account_id: str | uuid.UUID) -> Optional[Account]:
    """Return the account with ``account_id`` or ``None``."""
    uid = _to_uuid(account_id)
    if uid is None:
        return None
    return await session.get(Account, uid)


async def find_account_by_identity(
    session: AsyncSession,
    *,
    username: Optional[str] = None,
    email: Optional[str] = None,
) -> Optional[Account]:
    """Find one account whose username or email matches (lowercased)."""
    clauses = []
    if username:
        clauses.append(Account.username == username.strip().lower())
    if email:
        clauses.append(Account.email == email.strip().lower())
    if not clauses:
        return None
    result = await session.execute(select(Account).where(or_(*clauses)).limit(1))
    return result.scalar_one_or_none()


async def create_account(session: AsyncSession, **fields) -> Account:
    """Insert a new account; unique-index violations become ``ConflictError``."""
    account = Account(**fields)
    session.add(account)
    await save_account(session, account)
    return account


async def save_account(session: AsyncSession, account: Account) -> Account:
    """Commit pending changes on ``account`` and refresh server defaults."""
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        logger.info("Unique constraint rejected account write: %s", exc.orig)
        raise ConflictError(_DUPLICATE_MESSAGE) from exc
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Account write failed: %s", exc)
        raise DependencyFailure("Failed to save the account. Please try again.") from exc
    await session.refresh(account)
    return account


async def set_refresh_token(
    session: AsyncSession,
    account: Account,
    refresh_token: str,
) -> None:
    """
    Partial update of the refresh-token slot only.

    Last write wins: a concurrent refresh that loses the race holds a token
    that no longer matches and is rejected on its next use.
    """
    try:
        await session.execute(
            update(Account)
            .where(Account.id == account.id)
            .values(refresh_token=refresh_token)
            .execution_options(synchronize_session=False)
        )
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Failed to persist refresh token for %s: %s", account.id, exc)
        raise DependencyFailure("Failed to persist the session. Please try again.") from exc
    set_committed_value(account, "refresh_token", refresh_token)
