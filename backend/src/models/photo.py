"""Photo model."""
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import BigInteger, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, UTCDateTime, UUIDv7Mixin, utcnow

if TYPE_CHECKING:
    from models.collection import CollectionPhoto
    from models.folder import Folder
    from models.tag import PhotoTag, PhotoTeamTag


class Photo(Base, UUIDv7Mixin):
    """
    A photo or video stored in object storage.

    The binary lives in object storage under storage_path; this row is the
    catalog entry. uploaded_by_id references a user in the identity database
    and is not a foreign key.
    """

    __tablename__ = "photos"

    storage_path: Mapped[str] = mapped_column(String(512), unique=True)
    thumbnail_path: Mapped[str | None] = mapped_column(String(512), nullable=True)
    original_name: Mapped[str] = mapped_column(String(255))
    file_size: Mapped[int] = mapped_column(BigInteger)
    mime_type: Mapped[str] = mapped_column(String(100))
    uploaded_by_id: Mapped[UUID] = mapped_column(index=True)
    folder_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("folders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    uploaded_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, index=True)

    folder: Mapped["Folder | None"] = relationship()
    tags: Mapped[list["PhotoTag"]] = relationship(
        back_populates="photo",
        cascade="all, delete-orphan",
    )
    team_tags: Mapped[list["PhotoTeamTag"]] = relationship(
        back_populates="photo",
        cascade="all, delete-orphan",
    )
    collection_entries: Mapped[list["CollectionPhoto"]] = relationship(
        back_populates="photo",
        cascade="all, delete-orphan",
    )
