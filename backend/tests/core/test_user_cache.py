"""Tests for the user enrichment cache."""
import asyncio
from uuid import UUID, uuid4

import pytest

from core.user_cache import UserCache, get_user_cache, set_user_cache
from schemas.user_info import UserInfo


class ManualClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class FakeIdentityStore:
    """Batch loader over a dict of users that records each call."""

    def __init__(self, users: list[UserInfo]) -> None:
        self.users = {u.id: u for u in users}
        self.calls: list[list[UUID]] = []
        self.fail = False

    async def __call__(self, user_ids: list[UUID]) -> list[UserInfo]:
        self.calls.append(list(user_ids))
        if self.fail:
            raise ConnectionError("identity database unavailable")
        return [self.users[i] for i in user_ids if i in self.users]


def _user(name: str, role: str = "player") -> UserInfo:
    return UserInfo(id=uuid4(), email=f"{name.lower()}@example.com", name=name, role=role)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def users() -> list[UserInfo]:
    return [_user("Ann"), _user("Ben"), _user("Cat", role="admin")]


@pytest.fixture
def store(users: list[UserInfo]) -> FakeIdentityStore:
    return FakeIdentityStore(users)


@pytest.fixture
def cache(store: FakeIdentityStore, clock: ManualClock) -> UserCache:
    return UserCache(store, ttl_seconds=300, clock=clock)


class TestUserCacheGetUsers:
    """Tests for UserCache.get_users."""

    async def test__get_users__empty_input_makes_no_store_call(
        self, cache: UserCache, store: FakeIdentityStore,
    ) -> None:
        result = await cache.get_users([])

        assert result == {}
        assert store.calls == []

    async def test__get_users__first_call_fetches_all_in_one_batch(
        self, cache: UserCache, store: FakeIdentityStore, users: list[UserInfo],
    ) -> None:
        ids = [u.id for u in users]

        result = await cache.get_users(ids)

        assert len(store.calls) == 1
        assert set(store.calls[0]) == set(ids)
        assert result == {u.id: u for u in users}

    async def test__get_users__duplicates_collapse_to_one_fetch_per_id(
        self, cache: UserCache, store: FakeIdentityStore, users: list[UserInfo],
    ) -> None:
        ann = users[0]

        result = await cache.get_users([ann.id, ann.id, ann.id])

        assert store.calls == [[ann.id]]
        assert result == {ann.id: ann}

    async def test__get_users__fresh_entries_make_zero_store_calls(
        self, cache: UserCache, store: FakeIdentityStore, clock: ManualClock,
        users: list[UserInfo],
    ) -> None:
        ids = [u.id for u in users]
        first = await cache.get_users(ids)
        clock.advance(299)

        second = await cache.get_users(ids)

        assert len(store.calls) == 1
        assert second == first

    async def test__get_users__refetches_only_the_expired_id(
        self, cache: UserCache, store: FakeIdentityStore, clock: ManualClock,
        users: list[UserInfo],
    ) -> None:
        ann, ben, _ = users
        await cache.get_users([ann.id])
        clock.advance(200)
        await cache.get_users([ben.id])
        clock.advance(150)  # ann is 350s old, ben is 150s old

        result = await cache.get_users([ann.id, ben.id])

        assert store.calls[-1] == [ann.id]
        assert len(store.calls) == 3
        assert set(result) == {ann.id, ben.id}

    async def test__get_users__entry_at_exactly_ttl_is_stale(
        self, cache: UserCache, store: FakeIdentityStore, clock: ManualClock,
        users: list[UserInfo],
    ) -> None:
        ann = users[0]
        await cache.get_users([ann.id])
        clock.advance(300)

        await cache.get_users([ann.id])

        assert len(store.calls) == 2

    async def test__get_users__unknown_id_is_absent_not_an_error(
        self, cache: UserCache, store: FakeIdentityStore, users: list[UserInfo],
    ) -> None:
        ghost = uuid4()

        result = await cache.get_users([users[0].id, ghost])

        assert ghost not in result
        assert users[0].id in result
        assert ghost not in cache

    async def test__get_users__unknown_id_is_fetched_again_next_time(
        self, cache: UserCache, store: FakeIdentityStore,
    ) -> None:
        ghost = uuid4()
        await cache.get_users([ghost])

        await cache.get_users([ghost])

        assert store.calls == [[ghost], [ghost]]

    async def test__get_users__loader_failure_propagates_and_caches_nothing(
        self, cache: UserCache, store: FakeIdentityStore, users: list[UserInfo],
    ) -> None:
        store.fail = True

        with pytest.raises(ConnectionError):
            await cache.get_users([u.id for u in users])

        assert len(cache) == 0

    async def test__get_users__loader_failure_keeps_previously_fresh_entries(
        self, cache: UserCache, store: FakeIdentityStore, users: list[UserInfo],
    ) -> None:
        ann, ben, _ = users
        await cache.get_users([ann.id])
        store.fail = True

        with pytest.raises(ConnectionError):
            await cache.get_users([ann.id, ben.id])

        store.fail = False
        result = await cache.get_users([ann.id])
        assert result == {ann.id: ann}
        assert ann.id in cache
        assert ben.id not in cache

    async def test__get_users__entries_are_stamped_when_the_fetch_completes(
        self, users: list[UserInfo], clock: ManualClock,
    ) -> None:
        """A slow fetch does not shorten the freshness window of what it returned."""
        ann = users[0]

        async def slow_loader(user_ids: list[UUID]) -> list[UserInfo]:
            clock.advance(100)
            return [ann]

        cache = UserCache(slow_loader, ttl_seconds=300, clock=clock)
        await cache.get_users([ann.id])
        clock.advance(250)

        assert cache.sweep() == 0

    async def test__get_users__concurrent_misses_are_benign(
        self, cache: UserCache, store: FakeIdentityStore, users: list[UserInfo],
    ) -> None:
        ids = [u.id for u in users]

        first, second = await asyncio.gather(cache.get_users(ids), cache.get_users(ids))

        assert first == second
        assert len(cache) == len(users)


class TestUserCacheInvalidation:
    """Tests for invalidate, clear and sweep."""

    async def test__get_user__returns_single_record_or_none(
        self, cache: UserCache, users: list[UserInfo],
    ) -> None:
        assert await cache.get_user(users[0].id) == users[0]
        assert await cache.get_user(uuid4()) is None

    async def test__invalidate__forces_refetch_of_that_id_only(
        self, cache: UserCache, store: FakeIdentityStore, users: list[UserInfo],
    ) -> None:
        ann, ben, _ = users
        await cache.get_users([ann.id, ben.id])

        cache.invalidate(ann.id)
        await cache.get_users([ann.id, ben.id])

        assert store.calls[-1] == [ann.id]

    async def test__invalidate__unknown_id_is_a_noop(self, cache: UserCache) -> None:
        cache.invalidate(uuid4())
        assert len(cache) == 0

    async def test__clear__drops_everything(
        self, cache: UserCache, store: FakeIdentityStore, users: list[UserInfo],
    ) -> None:
        ids = [u.id for u in users]
        await cache.get_users(ids)

        cache.clear()

        assert len(cache) == 0
        await cache.get_users(ids)
        assert len(store.calls) == 2

    async def test__sweep__removes_only_entries_at_or_past_ttl(
        self, cache: UserCache, clock: ManualClock, users: list[UserInfo],
    ) -> None:
        ann, ben, _ = users
        await cache.get_users([ann.id])
        clock.advance(100)
        await cache.get_users([ben.id])
        clock.advance(200)  # ann exactly 300s old, ben 200s

        removed = cache.sweep()

        assert removed == 1
        assert ann.id not in cache
        assert ben.id in cache

    async def test__run_sweeper__sweeps_until_cancelled(
        self, cache: UserCache, clock: ManualClock, users: list[UserInfo],
    ) -> None:
        await cache.get_users([users[0].id])
        clock.advance(301)

        task = asyncio.create_task(cache.run_sweeper(interval=0))
        for _ in range(5):
            await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert len(cache) == 0


class TestUserCacheGlobal:
    """Tests for the process-wide accessor."""

    def test__get_user_cache__raises_before_startup(self) -> None:
        set_user_cache(None)
        with pytest.raises(RuntimeError):
            get_user_cache()

    def test__set_user_cache__round_trips(self, cache: UserCache) -> None:
        set_user_cache(cache)
        try:
            assert get_user_cache() is cache
        finally:
            set_user_cache(None)
