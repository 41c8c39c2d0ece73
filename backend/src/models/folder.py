"""Folder model for organizing photos into a tree."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, UTCDateTime, UUIDv7Mixin, utcnow


class Folder(Base, UUIDv7Mixin):
    """
    A folder in the shared photo tree.

    Folders are global (not per user) and managed by admins. Siblings are
    ordered by sort_order.
    """

    __tablename__ = "folders"

    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    parent_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("folders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    sort_order: Mapped[int] = mapped_column(default=0)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
