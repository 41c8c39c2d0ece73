"""Service layer for the identity database (user accounts)."""
import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime
from functools import lru_cache
from uuid import UUID

import bcrypt
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.user_cache import UserLoader
from models.user import User, UserRole
from schemas.user_info import UserInfo
from services.exceptions import ConflictError

logger = logging.getLogger(__name__)


def to_user_info(user: User) -> UserInfo:
    """Project an identity-database row onto the read-only UserInfo."""
    return UserInfo(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        last_login=user.last_login,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


@lru_cache(maxsize=1)
def _placeholder_hash() -> str:
    # Stands in for the hash of an account that does not exist
    return hash_password("placeholder-password")


async def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Check a password against a stored bcrypt hash in a worker thread.

    Pass None for an unknown account: the password is still checked against
    a placeholder hash so both cases cost one bcrypt round, then it fails.
    Malformed hashes never match.
    """
    candidate = password_hash
    if candidate is None:
        candidate = await asyncio.to_thread(_placeholder_hash)
    try:
        matched = await asyncio.to_thread(
            bcrypt.checkpw, password.encode("utf-8"), candidate.encode("utf-8"),
        )
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False
    return matched and password_hash is not None


async def get_user_by_id(db: AsyncSession, user_id: UUID) -> UserInfo | None:
    """Fetch a single user; None if the id does not exist."""
    user = await db.get(User, user_id)
    return to_user_info(user) if user is not None else None


async def get_users_by_ids(db: AsyncSession, user_ids: Sequence[UUID]) -> list[UserInfo]:
    """
    Fetch many users in one query.

    Returns only the users that exist; missing ids are not an error.
    """
    if not user_ids:
        return []
    result = await db.execute(select(User).where(User.id.in_(list(user_ids))))
    return [to_user_info(user) for user in result.scalars().all()]


async def get_all_users(db: AsyncSession) -> list[UserInfo]:
    """Fetch every user, ordered by name (admin listings)."""
    result = await db.execute(select(User).order_by(User.name))
    return [to_user_info(user) for user in result.scalars().all()]


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch the full user row for login (includes the password hash)."""
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def record_login(db: AsyncSession, user: User, now: datetime) -> None:
    """Stamp last_login. Does not commit."""
    user.last_login = now
    await db.flush()


async def update_role(db: AsyncSession, user_id: UUID, role: UserRole) -> UserInfo | None:
    """
    Change a user's role.

    Returns:
        The updated user, or None if the id does not exist.

    Note:
        Callers must invalidate the user cache entry for user_id.
    """
    user = await db.get(User, user_id)
    if user is None:
        return None
    user.role = UserRole(role).value
    await db.flush()
    await db.refresh(user)
    return to_user_info(user)


def make_user_loader(session_factory: async_sessionmaker) -> UserLoader:
    """
    Build the batch loader the user cache calls on misses.

    Each fetch opens its own short-lived identity-database session, so cache
    lookups never share a transaction with the request's session.
    """

    async def load(user_ids: list[UUID]) -> list[UserInfo]:
        async with session_factory() as session:
            return await get_users_by_ids(session, user_ids)

    return load


async def create_user(db: AsyncSession, email: str, name: str, password: str) -> UserInfo:
    """
    Create a player account. Does not commit.

    Emails are compared case-insensitively.

    Raises:
        ConflictError: If an account with the email already exists.
    """
    normalized = email.strip().lower()
    existing = await db.execute(
        select(User.id).where(func.lower(User.email) == normalized),
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("User with this email already exists")

    password_hash = await asyncio.to_thread(hash_password, password)
    user = User(
        email=normalized,
        name=name.strip(),
        password_hash=password_hash,
        role=UserRole.PLAYER.value,
    )
    try:
        async with db.begin_nested():
            db.add(user)
            await db.flush()
    except IntegrityError as e:
        raise ConflictError("User with this email already exists") from e
    await db.refresh(user)
    return to_user_info(user)
