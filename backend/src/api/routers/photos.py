"""Photo endpoints."""
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    ObjectStorage,
    SessionUser,
    UserCache,
    get_async_session,
    get_current_user,
    get_request_origin,
    get_settings,
    get_storage,
    get_user_cache,
    require_admin,
)
from api.helpers import enrich_photos, http_error
from core.config import Settings
from core.request_context import RequestOrigin
from models.audit_log import AuditAction, ResourceType
from schemas.photo import PhotoCreate, PhotoResponse, PhotoUrlsResponse
from services import photo_service
from services.audit_service import audit_service, parse_date_filter
from services.exceptions import ServiceError

router = APIRouter(prefix="/photos", tags=["photos"])


def _parse_id_list(value: str | None, name: str) -> list[UUID]:
    """Parse a comma-separated list of UUIDs from a query parameter (400 on junk)."""
    if not value:
        return []
    try:
        return [UUID(part.strip()) for part in value.split(",") if part.strip()]
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {name}",
        ) from e


def _parse_date(value: str | None, *, end_of_day: bool = False) -> datetime | None:
    if value is None:
        return None
    try:
        return parse_date_filter(value, end_of_day=end_of_day)
    except ServiceError as e:
        raise http_error(e) from e


@router.post("", response_model=PhotoResponse, status_code=status.HTTP_201_CREATED)
async def create_photo(
    data: PhotoCreate,
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
    cache: UserCache = Depends(get_user_cache),
    origin: RequestOrigin = Depends(get_request_origin),
) -> PhotoResponse:
    """
    Register a photo after its direct upload to storage.

    Returns 400 for an unsupported type, an oversized file or a bad path,
    and 404 when folder_id does not exist.
    """
    try:
        photo = await photo_service.create_photo(
            db, data, current_user.id, settings.max_upload_bytes,
        )
    except ServiceError as e:
        raise http_error(e) from e

    await audit_service.record(
        db,
        AuditAction.PHOTO_UPLOAD,
        current_user.actor,
        ResourceType.PHOTO,
        resource_id=photo.id,
        details={
            "original_name": photo.original_name,
            "file_size": photo.file_size,
            "mime_type": photo.mime_type,
            "folder_id": str(photo.folder_id) if photo.folder_id else None,
        },
        origin=origin,
    )
    return (await enrich_photos(cache, [photo]))[0]


@router.get("", response_model=list[PhotoResponse])
async def list_photos(
    player_ids: str | None = Query(default=None, description="Comma-separated player ids"),
    team_ids: str | None = Query(default=None, description="Comma-separated team ids"),
    start_date: str | None = Query(default=None, description="ISO date or datetime"),
    end_date: str | None = Query(default=None, description="ISO date or datetime (inclusive)"),
    uploader_id: UUID | None = None,
    folder_id: UUID | None = None,
    no_folder: bool = False,
    _current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    cache: UserCache = Depends(get_user_cache),
) -> list[PhotoResponse]:
    """
    List photos, newest upload first.

    Several player (or team) ids match photos tagged with any of them; the
    different filters combine with AND. Unparsable dates return 400.
    """
    filters = photo_service.PhotoFilters(
        player_ids=_parse_id_list(player_ids, "player_ids"),
        team_ids=_parse_id_list(team_ids, "team_ids"),
        start_date=_parse_date(start_date),
        end_date=_parse_date(end_date, end_of_day=True),
        uploader_id=uploader_id,
        folder_id=folder_id,
        no_folder=no_folder,
    )
    photos = await photo_service.list_photos(db, filters)
    return await enrich_photos(cache, photos)


@router.get("/{photo_id}", response_model=PhotoResponse)
async def get_photo(
    photo_id: UUID,
    _current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    cache: UserCache = Depends(get_user_cache),
) -> PhotoResponse:
    """Get a single photo with tags, folder and uploader."""
    try:
        photo = await photo_service.get_photo(db, photo_id)
    except ServiceError as e:
        raise http_error(e) from e
    return (await enrich_photos(cache, [photo]))[0]


@router.get("/{photo_id}/urls", response_model=PhotoUrlsResponse)
async def get_photo_urls(
    photo_id: UUID,
    _current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    storage: ObjectStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> PhotoUrlsResponse:
    """Issue short-lived download URLs for a photo and its thumbnail."""
    try:
        photo = await photo_service.get_photo(db, photo_id)
    except ServiceError as e:
        raise http_error(e) from e

    ttl = settings.download_url_ttl_seconds
    image_url = await storage.issue_download_url(photo.storage_path, ttl)
    thumbnail_url = (
        await storage.issue_download_url(photo.thumbnail_path, ttl)
        if photo.thumbnail_path else None
    )
    return PhotoUrlsResponse(
        id=photo.id, image_url=image_url, thumbnail_url=thumbnail_url, expires_in=ttl,
    )


@router.delete("/{photo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_photo(
    photo_id: UUID,
    current_user: SessionUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
    storage: ObjectStorage = Depends(get_storage),
    origin: RequestOrigin = Depends(get_request_origin),
) -> None:
    """
    Delete a photo (admin only).

    Stored objects go first; if storage fails the row is kept and the
    request fails with 500.
    """
    try:
        photo = await photo_service.delete_photo(db, storage, photo_id)
    except ServiceError as e:
        raise http_error(e) from e

    await audit_service.record(
        db,
        AuditAction.PHOTO_DELETE,
        current_user.actor,
        ResourceType.PHOTO,
        resource_id=photo.id,
        details={"original_name": photo.original_name, "storage_path": photo.storage_path},
        origin=origin,
    )


@router.get("/{photo_id}/thumbnail", response_class=RedirectResponse)
async def redirect_to_thumbnail(
    photo_id: UUID,
    _current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    storage: ObjectStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """Redirect to a signed URL for the thumbnail, or the original when there is none."""
    try:
        photo = await photo_service.get_photo(db, photo_id)
    except ServiceError as e:
        raise http_error(e) from e
    path = photo.thumbnail_path or photo.storage_path
    url = await storage.issue_download_url(path, settings.download_url_ttl_seconds)
    return RedirectResponse(url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
