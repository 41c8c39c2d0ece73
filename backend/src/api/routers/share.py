"""Public (anonymous) read of shared collections."""
import asyncio
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    ObjectStorage,
    UserCache,
    get_async_session,
    get_now,
    get_settings,
    get_storage,
    get_user_cache,
)
from api.helpers import display_name, http_error
from core.config import Settings
from models.photo import Photo
from schemas.collection import SharedCollectionResponse, SharedPhoto, SharedPhotoTag
from services import share_service
from services.exceptions import ServiceError

router = APIRouter(prefix="/share", tags=["share"])


async def _shared_photo(
    photo: Photo,
    uploader_name: str,
    storage: ObjectStorage,
    ttl: int,
) -> SharedPhoto:
    image_url = await storage.issue_download_url(photo.storage_path, ttl)
    thumbnail_url = (
        await storage.issue_download_url(photo.thumbnail_path, ttl)
        if photo.thumbnail_path else None
    )
    return SharedPhoto(
        id=photo.id,
        original_name=photo.original_name,
        mime_type=photo.mime_type,
        image_url=image_url,
        thumbnail_url=thumbnail_url,
        uploader_name=uploader_name,
        tags=[
            SharedPhotoTag(
                id=tag.player.id,
                name=tag.player.name,
                jersey_number=tag.player.jersey_number,
            )
            for tag in photo.tags
        ],
    )


@router.get("/{token}", response_model=SharedCollectionResponse)
async def get_shared_collection(
    token: str,
    db: AsyncSession = Depends(get_async_session),
    cache: UserCache = Depends(get_user_cache),
    storage: ObjectStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
    now: datetime = Depends(get_now),
) -> SharedCollectionResponse:
    """
    View a shared collection without signing in.

    Returns 400 for a malformed token, 404 for an unknown one and 410 once
    the link has expired. Photo URLs are freshly signed on every request.
    """
    try:
        collection = await share_service.resolve_share(db, token, now)
    except ServiceError as e:
        raise http_error(e) from e

    photos = [entry.photo for entry in collection.photos]
    users = await cache.get_users(
        [collection.user_id, *(photo.uploaded_by_id for photo in photos)],
    )
    ttl = settings.download_url_ttl_seconds
    shared_photos = await asyncio.gather(
        *(
            _shared_photo(photo, display_name(users, photo.uploaded_by_id), storage, ttl)
            for photo in photos
        ),
    )
    return SharedCollectionResponse(
        name=collection.name,
        description=collection.description,
        owner_name=display_name(users, collection.user_id),
        photo_count=len(photos),
        expires_at=collection.share_expires_at,
        photos=list(shared_photos),
    )
