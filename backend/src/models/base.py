"""SQLAlchemy declarative bases with common mixins."""
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import DateTime, TypeDecorator
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from uuid6 import uuid7


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime column that always round-trips as UTC.

    PostgreSQL keeps the offset (TIMESTAMP WITH TIME ZONE); SQLite drops it.
    Values are normalized to UTC on the way in and naive values coming back
    are re-tagged as UTC, so comparisons against datetime.now(UTC) never mix
    aware and naive datetimes.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:  # noqa: ANN001
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:  # noqa: ANN001
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class Base(DeclarativeBase):
    """Base class for application database models."""

    pass


class AuthBase(DeclarativeBase):
    """
    Base class for identity database models.

    Kept separate from Base so the two metadata collections never reference
    each other: user ids are opaque foreign references in the application
    database, with no foreign key constraints across the boundary.
    """

    pass


class UUIDv7Mixin:
    """
    Mixin that adds a UUIDv7 primary key.

    UUIDv7 values are time-ordered, so sorting by id matches insertion order.
    """

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid7)


class TimestampMixin:
    """Mixin that adds created_at and updated_at columns (UTC, set application-side)."""

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
        index=True,
    )
