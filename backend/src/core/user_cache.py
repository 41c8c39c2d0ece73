"""In-process cache for identity-database user lookups."""
import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from uuid import UUID

from schemas.user_info import UserInfo

logger = logging.getLogger(__name__)

UserLoader = Callable[[list[UUID]], Awaitable[list[UserInfo]]]
Clock = Callable[[], float]


@dataclass
class _CacheEntry:
    user: UserInfo
    captured_at: float


class UserCache:
    """
    Time-boxed cache of user records keyed by user id.

    User records live in a separate identity database, so listings that
    reference uploaders/owners by id would otherwise cost one cross-database
    query per request. get_users() serves fresh entries from memory and
    fetches everything else with a single batch call to the loader.

    An entry is fresh while ``clock() - captured_at < ttl``. Stale entries are
    ignored on read and removed by sweep(), which the application runs
    periodically via run_sweeper().

    There is no locking. Two concurrent misses for the same id may both fetch
    and both write; last write wins, which is fine for snapshot data.
    """

    DEFAULT_TTL = 300  # 5 minutes

    def __init__(
        self,
        loader: UserLoader,
        ttl_seconds: float = DEFAULT_TTL,
        clock: Clock = time.monotonic,
    ) -> None:
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[UUID, _CacheEntry] = {}

    @property
    def ttl(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._entries

    async def get_users(self, user_ids: Iterable[UUID]) -> dict[UUID, UserInfo]:
        """
        Resolve user ids to user records.

        Args:
            user_ids: Ids to resolve. Duplicates are fine; empty input returns
                an empty dict without calling the loader.

        Returns:
            Mapping for every id the identity store could resolve. Unknown ids
            are absent - callers treat a missing key as "unknown user".

        Raises:
            Whatever the loader raises. Nothing from a failed fetch is cached.
        """
        now = self._clock()
        result: dict[UUID, UserInfo] = {}
        missing: list[UUID] = []

        for user_id in dict.fromkeys(user_ids):
            entry = self._entries.get(user_id)
            if entry is not None and now - entry.captured_at < self._ttl:
                result[user_id] = entry.user
            else:
                missing.append(user_id)

        if not missing:
            if result:
                logger.debug("user_cache_hit count=%s", len(result))
            return result

        logger.debug("user_cache_miss hits=%s misses=%s", len(result), len(missing))
        fetched = await self._loader(missing)

        captured_at = self._clock()
        for user in fetched:
            self._entries[user.id] = _CacheEntry(user=user, captured_at=captured_at)
            result[user.id] = user

        return result

    async def get_user(self, user_id: UUID) -> UserInfo | None:
        """Resolve a single user id; None when the identity store has no such user."""
        users = await self.get_users([user_id])
        return users.get(user_id)

    def invalidate(self, user_id: UUID) -> None:
        """Drop one user's entry (e.g. after a role change)."""
        self._entries.pop(user_id, None)
        logger.debug("user_cache_invalidate user_id=%s", user_id)

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()
        logger.debug("user_cache_clear")

    def sweep(self) -> int:
        """
        Remove entries whose age is at least the TTL, regardless of access.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        expired = [
            user_id
            for user_id, entry in self._entries.items()
            if now - entry.captured_at >= self._ttl
        ]
        for user_id in expired:
            del self._entries[user_id]
        if expired:
            logger.debug("user_cache_sweep removed=%s remaining=%s", len(expired), len(self))
        return len(expired)

    async def run_sweeper(self, interval: float | None = None) -> None:
        """Sweep forever, every ``interval`` seconds (defaults to the TTL). Cancel to stop."""
        interval = self._ttl if interval is None else interval
        while True:
            await asyncio.sleep(interval)
            self.sweep()


# Global user cache instance (set during app startup)
_user_cache: UserCache | None = None


def get_user_cache() -> UserCache:
    """
    Get the global user cache instance.

    Raises:
        RuntimeError: If called before application startup configured it.
    """
    if _user_cache is None:
        raise RuntimeError("User cache is not initialized")
    return _user_cache


def set_user_cache(cache: UserCache | None) -> None:
    """Set the global user cache instance."""
    global _user_cache  # noqa: PLW0603
    _user_cache = cache
