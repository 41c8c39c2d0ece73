"""
Storage administration: configuration summary, usage statistics and live checks.

The checks write a small object under CHECK_PREFIX, read it back and delete
it, timing each step. They never touch photo objects.
"""
import logging
import time
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Literal, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from uuid6 import uuid7

from core.config import Settings
from core.storage import ObjectStorage, StorageError
from models.photo import Photo

logger = logging.getLogger(__name__)

CHECK_PREFIX = "_test/"
CHECK_CONTENT_TYPE = "text/plain"
MASK = "****"

StorageAction = Literal["test-connection", "test-upload", "test-full"]

T = TypeVar("T")


def mask_secret(value: str | None) -> str | None:
    """Keep the first and last two characters of a credential; short values are fully masked."""
    if not value:
        return None
    if len(value) <= 6:
        return MASK
    return f"{value[:2]}{MASK}{value[-2:]}"


@dataclass
class StorageConfig:
    """Storage settings safe to show to an admin."""

    bucket_name: str
    region: str | None
    endpoint_url: str | None
    access_key_id: str | None
    secret_access_key_configured: bool


def get_config(settings: Settings) -> StorageConfig:
    return StorageConfig(
        bucket_name=settings.s3_bucket_name,
        region=settings.s3_region,
        endpoint_url=settings.s3_endpoint_url,
        access_key_id=mask_secret(settings.aws_access_key_id),
        secret_access_key_configured=bool(settings.aws_secret_access_key),
    )


@dataclass
class MimeTypeUsage:
    mime_type: str
    count: int
    total_bytes: int


@dataclass
class StorageUsage:
    """Totals over the photo records (not a bucket listing)."""

    photo_count: int
    total_bytes: int
    average_file_size: int
    type_distribution: list[MimeTypeUsage]


async def get_usage(db: AsyncSession) -> StorageUsage:
    """Sum photo sizes overall and per MIME type, largest share first."""
    count, total = (
        await db.execute(
            select(func.count(Photo.id), func.coalesce(func.sum(Photo.file_size), 0)),
        )
    ).one()
    rows = await db.execute(
        select(
            Photo.mime_type,
            func.count(Photo.id),
            func.coalesce(func.sum(Photo.file_size), 0).label("total_bytes"),
        )
        .group_by(Photo.mime_type)
        .order_by(func.sum(Photo.file_size).desc(), Photo.mime_type),
    )
    return StorageUsage(
        photo_count=count,
        total_bytes=int(total),
        average_file_size=int(total) // count if count else 0,
        type_distribution=[
            MimeTypeUsage(mime_type=mime_type, count=n, total_bytes=int(size))
            for mime_type, n, size in rows.all()
        ],
    )


@dataclass
class CheckStep:
    name: str
    success: bool
    elapsed_ms: float
    error: str | None = None


@dataclass
class StorageCheckResult:
    """Outcome of a storage check. steps lists every step attempted, in order."""

    action: StorageAction
    success: bool
    message: str
    elapsed_ms: float
    object_path: str | None = None
    error: str | None = None
    steps: list[CheckStep] = field(default_factory=list)


class _CheckFailed(Exception):
    """A step completed but returned something other than expected."""


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class _CheckRun:
    def __init__(self) -> None:
        self.steps: list[CheckStep] = []

    async def step(self, name: str, call: Awaitable[T]) -> T:
        started = time.perf_counter()
        try:
            result = await call
        except (StorageError, _CheckFailed) as e:
            self.steps.append(CheckStep(name, False, _elapsed_ms(started), str(e)))
            raise
        self.steps.append(CheckStep(name, True, _elapsed_ms(started)))
        return result


async def _expect_exists(storage: ObjectStorage, path: str, expected: bool) -> None:
    if await storage.exists(path) != expected:
        state = "missing after upload" if expected else "still present after delete"
        raise _CheckFailed(f"Test object {state}")


async def _expect_content(storage: ObjectStorage, path: str, expected: bytes) -> None:
    if await storage.get(path) != expected:
        raise _CheckFailed("Downloaded content does not match what was uploaded")


async def _round_trip(
    run: _CheckRun, storage: ObjectStorage, path: str, content: bytes, *, full: bool,
) -> None:
    await run.step("upload", storage.put(path, content, CHECK_CONTENT_TYPE))
    await run.step("verify_exists", _expect_exists(storage, path, True))
    if full:
        await run.step("download", _expect_content(storage, path, content))
    await run.step("delete", storage.delete(path))
    if full:
        await run.step("verify_deleted", _expect_exists(storage, path, False))


async def _cleanup(storage: ObjectStorage, path: str) -> None:
    try:
        if await storage.exists(path):
            await storage.delete(path)
    except StorageError as e:
        logger.warning("Failed to clean up storage test object %s: %s", path, e)


async def run_check(storage: ObjectStorage, action: StorageAction) -> StorageCheckResult:
    """
    Exercise the storage backend.

    test-connection asks whether a test object exists (it does not, so only
    the round trip to the bucket matters). test-upload uploads, verifies and
    deletes one object. test-full also downloads it and compares the bytes,
    then verifies the delete. A failing upload check removes its object.
    """
    started = time.perf_counter()
    run = _CheckRun()
    path = f"{CHECK_PREFIX}connectivity-test-{uuid7().hex}.txt"
    content = f"Storage check {path}".encode()

    try:
        if action == "test-connection":
            await run.step("connect", storage.exists(path))
        else:
            await _round_trip(run, storage, path, content, full=action == "test-full")
    except (StorageError, _CheckFailed) as e:
        if action != "test-connection":
            await _cleanup(storage, path)
        logger.warning("storage_check_failed action=%s error=%s", action, e)
        return StorageCheckResult(
            action=action,
            success=False,
            message="Storage check failed",
            elapsed_ms=_elapsed_ms(started),
            object_path=None if action == "test-connection" else path,
            error=str(e),
            steps=run.steps,
        )

    logger.info("storage_check_passed action=%s", action)
    return StorageCheckResult(
        action=action,
        success=True,
        message="Storage check passed",
        elapsed_ms=_elapsed_ms(started),
        object_path=None if action == "test-connection" else path,
        steps=run.steps,
    )
