"""Tests for the audit recorder."""
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from core.request_context import AuditActor, RequestOrigin
from models.audit_log import AuditAction, AuditLog, ResourceType
from models.roster import Team
from services.audit_service import AuditLogFilters, audit_service, parse_date_filter
from services.exceptions import ValidationError

BASE_TIME = datetime(2024, 5, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
def actor() -> AuditActor:
    return AuditActor(user_id=str(uuid4()), name="Alice Admin", role="admin")


async def _record_at(
    db: AsyncSession,
    when: datetime,
    action: AuditAction,
    actor: AuditActor,
    resource_type: ResourceType = ResourceType.PHOTO,
    resource_id: str | None = None,
) -> AuditLog:
    entry = await audit_service.record(db, action, actor, resource_type, resource_id=resource_id)
    assert entry is not None
    entry.created_at = when
    await db.flush()
    return entry


class TestRecord:
    """Tests for AuditService.record."""

    async def test__record__stores_snapshot_and_origin(
        self, db_session: AsyncSession, actor: AuditActor,
    ) -> None:
        photo_id = uuid4()

        entry = await audit_service.record(
            db_session,
            AuditAction.PHOTO_UPLOAD,
            actor,
            ResourceType.PHOTO,
            resource_id=photo_id,
            details={"original_name": "goal.jpg"},
            origin=RequestOrigin(ip_address="203.0.113.7", user_agent="pytest"),
        )

        assert entry is not None
        stored = await db_session.get(AuditLog, entry.id)
        assert stored.action == "PHOTO_UPLOAD"
        assert stored.user_id == actor.user_id
        assert stored.user_name == "Alice Admin"
        assert stored.user_role == "admin"
        assert stored.resource_type == "Photo"
        assert stored.resource_id == str(photo_id)
        assert stored.resource_ids == []
        assert stored.details == {"original_name": "goal.jpg"}
        assert stored.ip_address == "203.0.113.7"
        assert stored.user_agent == "pytest"
        assert stored.created_at.tzinfo is not None

    async def test__record__bulk_action_lists_every_id(
        self, db_session: AsyncSession, actor: AuditActor,
    ) -> None:
        ids = [uuid4(), uuid4(), uuid4()]

        entry = await audit_service.record(
            db_session, AuditAction.PHOTO_BULK_DELETE, actor, ResourceType.PHOTO,
            resource_ids=ids,
        )

        assert entry.resource_id is None
        assert entry.resource_ids == [str(i) for i in ids]

    async def test__record__failure_is_swallowed_and_caller_work_survives(
        self,
        db_session: AsyncSession,
        actor: AuditActor,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        team = Team(name="Eagles")
        db_session.add(team)
        await db_session.flush()

        failing_flush = AsyncMock(
            side_effect=OperationalError("INSERT INTO audit_logs", {}, Exception("disk full")),
        )
        monkeypatch.setattr(db_session, "flush", failing_flush)

        result = await audit_service.record(
            db_session, AuditAction.PHOTO_DELETE, actor, ResourceType.PHOTO, resource_id=uuid4(),
        )

        monkeypatch.undo()
        assert result is None
        assert await db_session.get(Team, team.id) is not None
        count = (await db_session.execute(select(func.count()).select_from(AuditLog))).scalar_one()
        assert count == 0


class TestQuery:
    """Tests for AuditService.query."""

    async def test__query__returns_all_entries_newest_first(
        self, db_session: AsyncSession, actor: AuditActor,
    ) -> None:
        resource_id = str(uuid4())
        written = [
            await _record_at(
                db_session, BASE_TIME + timedelta(minutes=i), AuditAction.PLAYER_TAG_CREATE,
                actor, ResourceType.PHOTO_TAG, resource_id,
            )
            for i in range(5)
        ]

        entries, total = await audit_service.query(db_session, AuditLogFilters())

        assert total == 5
        assert [e.id for e in entries] == [e.id for e in reversed(written)]
        times = [e.created_at for e in entries]
        assert times == sorted(times, reverse=True)

    async def test__query__action_and_resource_type_combine_with_and(
        self, db_session: AsyncSession, actor: AuditActor,
    ) -> None:
        match = await _record_at(
            db_session, BASE_TIME, AuditAction.COLLECTION_SHARE_CREATE, actor,
            ResourceType.COLLECTION,
        )
        # Same action, other resource type
        await _record_at(
            db_session, BASE_TIME, AuditAction.COLLECTION_SHARE_CREATE, actor,
            ResourceType.COLLECTION_PHOTO,
        )
        # Same resource type, other action
        await _record_at(
            db_session, BASE_TIME, AuditAction.COLLECTION_SHARE_REVOKE, actor,
            ResourceType.COLLECTION,
        )

        entries, total = await audit_service.query(
            db_session,
            AuditLogFilters(
                action=AuditAction.COLLECTION_SHARE_CREATE,
                resource_type=ResourceType.COLLECTION,
            ),
        )

        assert total == 1
        assert [e.id for e in entries] == [match.id]

    async def test__query__filters_by_actor(
        self, db_session: AsyncSession, actor: AuditActor,
    ) -> None:
        other = AuditActor(user_id=str(uuid4()), name="Bob", role="player")
        await _record_at(db_session, BASE_TIME, AuditAction.PHOTO_UPLOAD, actor)
        await _record_at(db_session, BASE_TIME, AuditAction.PHOTO_UPLOAD, other)

        entries, total = await audit_service.query(
            db_session, AuditLogFilters(user_id=other.user_id),
        )

        assert total == 1
        assert entries[0].user_name == "Bob"

    async def test__query__date_range_is_inclusive(
        self, db_session: AsyncSession, actor: AuditActor,
    ) -> None:
        before = await _record_at(
            db_session, datetime(2024, 4, 30, 23, 59, tzinfo=UTC), AuditAction.PHOTO_UPLOAD, actor,
        )
        first = await _record_at(
            db_session, datetime(2024, 5, 1, 0, 0, tzinfo=UTC), AuditAction.PHOTO_UPLOAD, actor,
        )
        last = await _record_at(
            db_session, datetime(2024, 5, 2, 23, 59, 59, tzinfo=UTC), AuditAction.PHOTO_UPLOAD,
            actor,
        )
        after = await _record_at(
            db_session, datetime(2024, 5, 3, 0, 0, tzinfo=UTC), AuditAction.PHOTO_UPLOAD, actor,
        )

        entries, total = await audit_service.query(
            db_session,
            AuditLogFilters(
                start_date=parse_date_filter("2024-05-01"),
                end_date=parse_date_filter("2024-05-02", end_of_day=True),
            ),
        )

        ids = {e.id for e in entries}
        assert total == 2
        assert ids == {first.id, last.id}
        assert before.id not in ids
        assert after.id not in ids

    async def test__query__paginates_with_total(
        self, db_session: AsyncSession, actor: AuditActor,
    ) -> None:
        written = [
            await _record_at(
                db_session, BASE_TIME + timedelta(seconds=i), AuditAction.USER_LOGIN, actor,
                ResourceType.USER,
            )
            for i in range(5)
        ]

        page_two, total = await audit_service.query(
            db_session, AuditLogFilters(), page=2, limit=2,
        )

        assert total == 5
        assert [e.id for e in page_two] == [written[2].id, written[1].id]


class TestParseDateFilter:
    """Tests for parse_date_filter."""

    def test__bare_date_is_start_of_day(self) -> None:
        assert parse_date_filter("2024-05-01") == datetime(2024, 5, 1, tzinfo=UTC)

    def test__bare_end_date_is_end_of_day(self) -> None:
        parsed = parse_date_filter("2024-05-01", end_of_day=True)
        assert parsed == datetime(2024, 5, 1, 23, 59, 59, 999999, tzinfo=UTC)

    def test__z_suffix_datetime(self) -> None:
        assert parse_date_filter("2024-05-01T10:30:00Z") == datetime(
            2024, 5, 1, 10, 30, tzinfo=UTC,
        )

    def test__offset_datetime_is_converted_to_utc(self) -> None:
        assert parse_date_filter("2024-05-01T12:00:00+02:00") == datetime(
            2024, 5, 1, 10, 0, tzinfo=UTC,
        )

    def test__naive_datetime_is_utc(self) -> None:
        assert parse_date_filter("2024-05-01T10:30:00") == datetime(
            2024, 5, 1, 10, 30, tzinfo=UTC,
        )

    @pytest.mark.parametrize("value", ["yesterday", "2024-13-01", "05/01/2024", ""])
    def test__unparsable_raises_validation_error(self, value: str) -> None:
        with pytest.raises(ValidationError):
            parse_date_filter(value)

    def test__unparsable_keeps_the_parse_error_as_cause(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_date_filter("yesterday")
        assert isinstance(exc_info.value.__cause__, ValueError)
