"""Service layer for recording and querying the audit trail."""
import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.request_context import AuditActor, RequestOrigin
from models.audit_log import AuditAction, AuditLog, ResourceType
from services.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class AuditLogFilters:
    """Optional filters for audit queries. Provided filters combine with AND."""

    action: AuditAction | None = None
    resource_type: ResourceType | None = None
    user_id: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


def parse_date_filter(value: str, *, end_of_day: bool = False) -> datetime:
    """
    Parse an ISO date or datetime query value into an aware UTC datetime.

    A bare date (``2024-05-01``) means the start of that day, or the last
    instant of that day when ``end_of_day`` is set, so end dates are
    inclusive. Naive datetimes are taken as UTC.

    Raises:
        ValidationError: If the value does not parse.
    """
    text = value.strip()
    try:
        if len(text) == 10:
            day = date.fromisoformat(text)
            return datetime.combine(day, time.max if end_of_day else time.min, tzinfo=UTC)
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValidationError(f"Invalid date: {value!r}") from e
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


class AuditService:
    """Service for writing and reading audit log entries."""

    async def record(
        self,
        db: AsyncSession,
        action: AuditAction,
        actor: AuditActor,
        resource_type: ResourceType,
        resource_id: UUID | str | None = None,
        resource_ids: list[UUID] | list[str] | None = None,
        details: dict[str, Any] | None = None,
        origin: RequestOrigin | None = None,
    ) -> AuditLog | None:
        """
        Append an audit entry for an action that already succeeded.

        The insert runs inside a savepoint. If it fails, the savepoint is
        rolled back, the error is logged, and None is returned: audit logging
        never fails or rolls back the operation being audited.

        Args:
            db: Database session (the caller's request session).
            action: What happened.
            actor: Snapshot of who did it.
            resource_type: Kind of resource affected.
            resource_id: Single affected resource, if any.
            resource_ids: Every affected resource for bulk actions.
            details: Free-form JSON payload.
            origin: Client IP / user agent.

        Returns:
            The created AuditLog, or None if the write failed.
        """
        origin = origin or RequestOrigin()
        entry = AuditLog(
            action=AuditAction(action).value,
            user_id=actor.user_id,
            user_name=actor.name,
            user_role=actor.role,
            resource_type=ResourceType(resource_type).value,
            resource_id=str(resource_id) if resource_id is not None else None,
            resource_ids=[str(r) for r in resource_ids or []],
            details=details,
            ip_address=origin.ip_address,
            user_agent=origin.user_agent,
        )
        try:
            async with db.begin_nested():
                db.add(entry)
                await db.flush()
        except SQLAlchemyError:
            logger.exception(
                "audit_write_failed action=%s user_id=%s resource_type=%s resource_id=%s",
                action,
                actor.user_id,
                resource_type,
                resource_id,
            )
            return None

        logger.info(
            "audit action=%s user_id=%s resource_type=%s resource_id=%s",
            entry.action,
            entry.user_id,
            entry.resource_type,
            entry.resource_id,
        )
        return entry

    async def query(
        self,
        db: AsyncSession,
        filters: AuditLogFilters,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[AuditLog], int]:
        """
        Get a page of audit entries, newest first.

        Args:
            db: Database session.
            filters: Optional filters (AND across provided ones). Date bounds
                are inclusive.
            page: 1-based page number.
            limit: Page size.

        Returns:
            Tuple of (entries on this page, total matching entries).
        """
        conditions = []
        if filters.action is not None:
            conditions.append(AuditLog.action == AuditAction(filters.action).value)
        if filters.resource_type is not None:
            conditions.append(
                AuditLog.resource_type == ResourceType(filters.resource_type).value,
            )
        if filters.user_id:
            conditions.append(AuditLog.user_id == filters.user_id)
        if filters.start_date is not None:
            conditions.append(AuditLog.created_at >= filters.start_date)
        if filters.end_date is not None:
            conditions.append(AuditLog.created_at <= filters.end_date)

        count_query = select(func.count()).select_from(AuditLog).where(*conditions)
        total = (await db.execute(count_query)).scalar_one()

        # id is UUIDv7, so it breaks created_at ties in insertion order
        result = await db.execute(
            select(AuditLog)
            .where(*conditions)
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset((page - 1) * limit)
            .limit(limit),
        )
        return list(result.scalars().all()), total


audit_service = AuditService()
