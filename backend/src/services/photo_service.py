"""Service layer for photo records and their stored objects."""
import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from uuid6 import uuid7

from core.storage import ObjectStorage, StorageError
from models.collection import CollectionPhoto
from models.folder import Folder
from models.photo import Photo
from models.roster import Player
from models.tag import PhotoTag, PhotoTeamTag
from schemas.photo import PhotoCreate
from services.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PHOTO_PREFIX = "photos/"
THUMBNAIL_PREFIX = "thumbnails/"

ACCEPTED_MIME_TYPES = frozenset({
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/heic",
    "image/heif",
    "video/mp4",
    "video/quicktime",
    "video/webm",
})

_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class PhotoFilters:
    """
    Optional filters for photo listings.

    Multiple player/team ids match photos tagged with any of them. Provided
    filters combine with AND.
    """

    player_ids: list[UUID] = field(default_factory=list)
    team_ids: list[UUID] = field(default_factory=list)
    start_date: datetime | None = None
    end_date: datetime | None = None
    uploader_id: UUID | None = None
    folder_id: UUID | None = None
    no_folder: bool = False


def photo_load_options() -> list:
    """Eager-load everything a PhotoResponse serializes."""
    return [
        selectinload(Photo.folder),
        selectinload(Photo.tags).selectinload(PhotoTag.player).selectinload(Player.team),
        selectinload(Photo.team_tags).selectinload(PhotoTeamTag.team),
    ]


def is_accepted_mime_type(mime_type: str) -> bool:
    return mime_type.lower() in ACCEPTED_MIME_TYPES


def build_storage_path(original_filename: str) -> tuple[str, str]:
    """
    Build a unique object path for a new upload.

    Returns:
        Tuple of (storage_path, filename). The filename keeps a sanitized
        copy of the original name after a time-ordered unique prefix.
    """
    safe_name = _UNSAFE_FILENAME_RE.sub("-", original_filename).strip("-.")[:100] or "upload"
    filename = f"{uuid7().hex}-{safe_name}"
    return f"{PHOTO_PREFIX}{filename}", filename


def _validate_object_path(path: str, prefix: str) -> None:
    if not path.startswith(prefix) or ".." in path:
        raise ValidationError("Invalid file path")


async def get_photo(db: AsyncSession, photo_id: UUID) -> Photo:
    """
    Get a photo with tags and folder loaded.

    Raises:
        NotFoundError: If the photo does not exist.
    """
    result = await db.execute(
        select(Photo)
        .options(*photo_load_options())
        .where(Photo.id == photo_id)
        .execution_options(populate_existing=True),
    )
    photo = result.scalar_one_or_none()
    if photo is None:
        raise NotFoundError("Photo", photo_id)
    return photo


async def list_photos(db: AsyncSession, filters: PhotoFilters) -> list[Photo]:
    """Get photos matching the filters, newest upload first."""
    # Reload tags on photos this session already holds
    query = select(Photo).options(*photo_load_options()).execution_options(populate_existing=True)

    if filters.player_ids:
        query = query.where(
            Photo.tags.any(PhotoTag.player_id.in_(filters.player_ids)),
        )
    if filters.team_ids:
        query = query.where(
            Photo.team_tags.any(PhotoTeamTag.team_id.in_(filters.team_ids)),
        )
    if filters.start_date is not None:
        query = query.where(Photo.uploaded_at >= filters.start_date)
    if filters.end_date is not None:
        query = query.where(Photo.uploaded_at <= filters.end_date)
    if filters.uploader_id is not None:
        query = query.where(Photo.uploaded_by_id == filters.uploader_id)
    if filters.folder_id is not None:
        query = query.where(Photo.folder_id == filters.folder_id)
    elif filters.no_folder:
        query = query.where(Photo.folder_id.is_(None))

    result = await db.execute(query.order_by(Photo.uploaded_at.desc(), Photo.id.desc()))
    return list(result.scalars().all())


async def list_photos_page(
    db: AsyncSession,
    *,
    page: int,
    limit: int,
    uploader_id: UUID | None = None,
) -> tuple[list[Photo], int, dict[UUID, int]]:
    """
    Get one page of photos, newest upload first, for the admin listing.

    Returns:
        Tuple of (photos, total matching photos, collection count per photo id).
    """
    conditions = []
    if uploader_id is not None:
        conditions.append(Photo.uploaded_by_id == uploader_id)

    total = (
        await db.execute(select(func.count()).select_from(Photo).where(*conditions))
    ).scalar_one()

    result = await db.execute(
        select(Photo)
        .options(*photo_load_options())
        .where(*conditions)
        .order_by(Photo.uploaded_at.desc(), Photo.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .execution_options(populate_existing=True),
    )
    photos = list(result.scalars().all())

    counts: dict[UUID, int] = {}
    if photos:
        rows = await db.execute(
            select(CollectionPhoto.photo_id, func.count())
            .where(CollectionPhoto.photo_id.in_([p.id for p in photos]))
            .group_by(CollectionPhoto.photo_id),
        )
        counts = {photo_id: count for photo_id, count in rows.all()}
    return photos, total, counts


async def create_photo(
    db: AsyncSession,
    data: PhotoCreate,
    uploader_id: UUID,
    max_upload_bytes: int,
) -> Photo:
    """
    Register a photo whose object was already uploaded to storage.

    Upload and registration are separate steps; an upload that is never
    registered leaves an orphaned object in storage.

    Raises:
        ValidationError: Unsupported type, too large, or bad storage path.
        NotFoundError: If folder_id does not exist.
    """
    if not is_accepted_mime_type(data.mime_type):
        raise ValidationError("Invalid file type")
    if data.file_size > max_upload_bytes:
        raise ValidationError(
            f"File too large (max {max_upload_bytes // (1024 * 1024)}MB)",
        )
    _validate_object_path(data.storage_path, PHOTO_PREFIX)
    if data.thumbnail_path is not None:
        _validate_object_path(data.thumbnail_path, THUMBNAIL_PREFIX)
    if data.folder_id is not None and await db.get(Folder, data.folder_id) is None:
        raise NotFoundError("Folder", data.folder_id)

    photo = Photo(
        storage_path=data.storage_path,
        thumbnail_path=data.thumbnail_path,
        original_name=data.original_name,
        file_size=data.file_size,
        mime_type=data.mime_type.lower(),
        uploaded_by_id=uploader_id,
        folder_id=data.folder_id,
    )
    db.add(photo)
    await db.flush()
    return await get_photo(db, photo.id)


def object_paths(photo: Photo) -> list[str]:
    """Every storage path a photo owns."""
    paths = [photo.storage_path]
    if photo.thumbnail_path:
        paths.append(photo.thumbnail_path)
    return paths


async def delete_photo(db: AsyncSession, storage: ObjectStorage, photo_id: UUID) -> Photo:
    """
    Delete a photo's objects, then its row (tags and collection entries cascade).

    Storage errors propagate and the row is kept.

    Returns:
        The deleted photo (detached data, for audit details).

    Raises:
        NotFoundError: If the photo does not exist.
        StorageError: If object deletion fails.
    """
    photo = await get_photo(db, photo_id)
    for path in object_paths(photo):
        await storage.delete(path)
    await db.delete(photo)
    await db.flush()
    return photo


async def bulk_delete_photos(
    db: AsyncSession,
    storage: ObjectStorage,
    photo_ids: list[UUID],
) -> tuple[list[Photo], int]:
    """
    Delete many photos.

    Object deletion is best-effort: failures are logged and counted, and the
    rows are removed regardless (leaked objects are acceptable).

    Returns:
        Tuple of (deleted photos, number of failed object deletions).

    Raises:
        NotFoundError: If none of the ids exist.
    """
    result = await db.execute(
        select(Photo).options(*photo_load_options()).where(Photo.id.in_(photo_ids)),
    )
    photos = list(result.scalars().all())
    if not photos:
        raise NotFoundError("Photo")

    paths = [path for photo in photos for path in object_paths(photo)]
    outcomes = await asyncio.gather(
        *(storage.delete(path) for path in paths),
        return_exceptions=True,
    )
    failures = 0
    for path, outcome in zip(paths, outcomes, strict=True):
        if isinstance(outcome, StorageError):
            failures += 1
            logger.warning("bulk_delete_storage_failed path=%s error=%s", path, outcome)
        elif isinstance(outcome, BaseException):
            raise outcome

    for photo in photos:
        await db.delete(photo)
    await db.flush()
    return photos, failures
