"""Collection models (personal photo collections and their share facet)."""
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UTCDateTime, UUIDv7Mixin, utcnow

if TYPE_CHECKING:
    from models.photo import Photo


class Collection(Base, UUIDv7Mixin, TimestampMixin):
    """
    A user's personal collection of photos.

    Share facet: slug, user_slug and share_token are either all null (not
    shared) or all set (shared). share_expires_at is null for links that
    never expire. There is at most one active token; generating a new one
    overwrites the old. The token is stored as plain text because it is
    itself the bearer credential.
    """

    __tablename__ = "collections"

    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Owner in the identity database (opaque reference, no FK)
    user_id: Mapped[UUID] = mapped_column(index=True)

    slug: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_slug: Mapped[str | None] = mapped_column(String(255), nullable=True)
    share_token: Mapped[str | None] = mapped_column(
        String(64),
        unique=True,
        nullable=True,
    )
    share_expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    photos: Mapped[list["CollectionPhoto"]] = relationship(
        back_populates="collection",
        cascade="all, delete-orphan",
        order_by=lambda: CollectionPhoto.added_at.desc(),
    )

    @property
    def is_shared(self) -> bool:
        return self.share_token is not None


class CollectionPhoto(Base, UUIDv7Mixin):
    """Membership of a photo in a collection."""

    __tablename__ = "collection_photos"

    collection_id: Mapped[UUID] = mapped_column(
        ForeignKey("collections.id", ondelete="CASCADE"),
        index=True,
    )
    photo_id: Mapped[UUID] = mapped_column(
        ForeignKey("photos.id", ondelete="CASCADE"),
        index=True,
    )
    added_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)

    collection: Mapped[Collection] = relationship(back_populates="photos")
    photo: Mapped["Photo"] = relationship(back_populates="collection_entries")

    __table_args__ = (
        UniqueConstraint(
            "collection_id", "photo_id", name="uq_collection_photos_collection_photo",
        ),
    )
