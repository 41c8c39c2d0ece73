"""User model for the identity database."""
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import AuthBase, TimestampMixin, UTCDateTime


class UserRole(StrEnum):
    """Role assigned to a user account."""

    ADMIN = "admin"
    PLAYER = "player"


class User(AuthBase, TimestampMixin):
    """
    User account stored in the shared identity database.

    This table belongs to the identity database, not the application database.
    The application reads it and only ever writes last_login and role, plus
    new rows from self-service signup.
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255))
    password_hash: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(20), default=UserRole.PLAYER.value)
    last_login: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
