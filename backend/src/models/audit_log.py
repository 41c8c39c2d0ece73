"""AuditLog model for the append-only trail of mutating actions."""
from datetime import datetime
from enum import StrEnum

from sqlalchemy import JSON, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, UTCDateTime, UUIDv7Mixin, utcnow


class AuditAction(StrEnum):
    """Kind of action recorded in the audit log."""

    PHOTO_UPLOAD = "PHOTO_UPLOAD"
    PHOTO_DELETE = "PHOTO_DELETE"
    PHOTO_BULK_DELETE = "PHOTO_BULK_DELETE"
    PLAYER_TAG_CREATE = "PLAYER_TAG_CREATE"
    PLAYER_TAG_BULK_CREATE = "PLAYER_TAG_BULK_CREATE"
    PLAYER_TAG_DELETE = "PLAYER_TAG_DELETE"
    TEAM_TAG_CREATE = "TEAM_TAG_CREATE"
    TEAM_TAG_BULK_CREATE = "TEAM_TAG_BULK_CREATE"
    TEAM_TAG_DELETE = "TEAM_TAG_DELETE"
    COLLECTION_PHOTO_ADD = "COLLECTION_PHOTO_ADD"
    COLLECTION_PHOTO_REMOVE = "COLLECTION_PHOTO_REMOVE"
    COLLECTION_SHARE_CREATE = "COLLECTION_SHARE_CREATE"
    COLLECTION_SHARE_REVOKE = "COLLECTION_SHARE_REVOKE"
    USER_LOGIN = "USER_LOGIN"
    USER_LOGIN_FAILED = "USER_LOGIN_FAILED"


class ResourceType(StrEnum):
    """Type of resource an audit entry refers to."""

    PHOTO = "Photo"
    PHOTO_TAG = "PhotoTag"
    PHOTO_TEAM_TAG = "PhotoTeamTag"
    COLLECTION = "Collection"
    COLLECTION_PHOTO = "CollectionPhoto"
    USER = "User"


# JSONB on PostgreSQL, generic JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


class AuditLog(Base, UUIDv7Mixin):
    """
    Immutable record of one action taken by one actor.

    Actor name and role are snapshots taken at write time, so later changes
    in the identity database do not rewrite history. Rows are never updated
    or deleted by the application.
    """

    __tablename__ = "audit_logs"

    action: Mapped[str] = mapped_column(String(50), nullable=False)

    # Actor snapshot ("unknown" for failed logins with an unresolved email)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_role: Mapped[str | None] = mapped_column(String(20), nullable=True)

    resource_type: Mapped[str] = mapped_column(String(50), nullable=False)
    resource_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    # Bulk actions list every affected id here instead of resource_id
    resource_ids: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    details: Mapped[dict | None] = mapped_column(JSONType, nullable=True)

    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Only created_at - audit records are immutable
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_audit_logs_created", "created_at"),
        Index("ix_audit_logs_action_created", "action", "created_at"),
        Index("ix_audit_logs_user_created", "user_id", "created_at"),
        Index("ix_audit_logs_resource_type_created", "resource_type", "created_at"),
    )
