"""Collection endpoints, including the owner's share-link controls."""
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    SessionUser,
    UserCache,
    get_async_session,
    get_current_user,
    get_now,
    get_request_origin,
    get_settings,
    get_user_cache,
)
from api.helpers import enrich_photos, http_error
from core.config import Settings
from core.request_context import RequestOrigin
from models.audit_log import AuditAction, ResourceType
from schemas.collection import (
    CollectionCreate,
    CollectionDetailResponse,
    CollectionListItem,
    CollectionPhotoAdd,
    CollectionPhotoResponse,
    CollectionResponse,
    CollectionUpdate,
    MessageResponse,
    PreviewPhoto,
    ShareCreate,
    ShareCreateResponse,
)
from services import collection_service, share_service
from services.audit_service import audit_service
from services.exceptions import ServiceError

router = APIRouter(prefix="/collections", tags=["collections"])


@router.get("", response_model=list[CollectionListItem])
async def list_collections(
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[CollectionListItem]:
    """Get the caller's collections, newest first, with up to four preview photos each."""
    summaries = await collection_service.list_collections(db, current_user.id)
    return [
        CollectionListItem.model_validate(
            {
                **CollectionResponse.model_validate(s.collection).model_dump(),
                "photo_count": s.photo_count,
                "preview_photos": [PreviewPhoto.model_validate(p) for p in s.preview_photos],
            },
        )
        for s in summaries
    ]


@router.post("", response_model=CollectionResponse, status_code=status.HTTP_201_CREATED)
async def create_collection(
    data: CollectionCreate,
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> CollectionResponse:
    """Create an empty, unshared collection."""
    collection = await collection_service.create_collection(db, current_user.id, data)
    return CollectionResponse.model_validate(collection)


@router.get("/{collection_id}", response_model=CollectionDetailResponse)
async def get_collection(
    collection_id: UUID,
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    cache: UserCache = Depends(get_user_cache),
) -> CollectionDetailResponse:
    """
    Get one of the caller's collections with its photos, newest-added first.

    Returns 404 for an unknown id and 403 for another user's collection.
    """
    try:
        collection = await collection_service.get_owned_collection(
            db, collection_id, current_user.id, load_photos=True,
        )
    except ServiceError as e:
        raise http_error(e) from e

    photos = await enrich_photos(cache, [entry.photo for entry in collection.photos])
    return CollectionDetailResponse(
        **CollectionResponse.model_validate(collection).model_dump(),
        photos=photos,
    )


@router.patch("/{collection_id}", response_model=CollectionResponse)
async def update_collection(
    collection_id: UUID,
    data: CollectionUpdate,
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> CollectionResponse:
    """Rename a collection or change its description."""
    try:
        collection = await collection_service.get_owned_collection(
            db, collection_id, current_user.id,
        )
    except ServiceError as e:
        raise http_error(e) from e
    collection = await collection_service.update_collection(db, collection, data)
    return CollectionResponse.model_validate(collection)


@router.delete("/{collection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_collection(
    collection_id: UUID,
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Delete a collection. The photos themselves are kept."""
    try:
        collection = await collection_service.get_owned_collection(
            db, collection_id, current_user.id,
        )
    except ServiceError as e:
        raise http_error(e) from e
    await collection_service.delete_collection(db, collection)


@router.post(
    "/{collection_id}/photos",
    response_model=CollectionPhotoResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_photo_to_collection(
    collection_id: UUID,
    data: CollectionPhotoAdd,
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    origin: RequestOrigin = Depends(get_request_origin),
) -> CollectionPhotoResponse:
    """
    Add a photo to a collection.

    Returns 404 if the photo does not exist and 409 if it is already there.
    """
    try:
        collection = await collection_service.get_owned_collection(
            db, collection_id, current_user.id,
        )
        entry = await collection_service.add_photo(db, collection, data.photo_id)
    except ServiceError as e:
        raise http_error(e) from e

    await audit_service.record(
        db,
        AuditAction.COLLECTION_PHOTO_ADD,
        current_user.actor,
        ResourceType.COLLECTION_PHOTO,
        resource_id=entry.id,
        details={
            "collection_id": str(collection.id),
            "collection_name": collection.name,
            "photo_id": str(data.photo_id),
        },
        origin=origin,
    )
    return CollectionPhotoResponse.model_validate(entry)


@router.delete("/{collection_id}/photos", response_model=MessageResponse)
async def remove_photo_from_collection(
    collection_id: UUID,
    photo_id: UUID = Query(...),
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    origin: RequestOrigin = Depends(get_request_origin),
) -> MessageResponse:
    """Remove a photo from a collection. Returns 404 if it is not in the collection."""
    try:
        collection = await collection_service.get_owned_collection(
            db, collection_id, current_user.id,
        )
        entry = await collection_service.remove_photo(db, collection, photo_id)
    except ServiceError as e:
        raise http_error(e) from e

    await audit_service.record(
        db,
        AuditAction.COLLECTION_PHOTO_REMOVE,
        current_user.actor,
        ResourceType.COLLECTION_PHOTO,
        resource_id=entry.id,
        details={
            "collection_id": str(collection.id),
            "collection_name": collection.name,
            "photo_id": str(photo_id),
        },
        origin=origin,
    )
    return MessageResponse(message="Photo removed from collection")


@router.post("/{collection_id}/share", response_model=ShareCreateResponse)
async def create_share_link(
    collection_id: UUID,
    data: ShareCreate | None = None,
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
    now: datetime = Depends(get_now),
    origin: RequestOrigin = Depends(get_request_origin),
) -> ShareCreateResponse:
    """
    Generate a public share link, replacing any previous one.

    The body is optional; without expires_in_days the link never expires.
    """
    try:
        collection = await collection_service.get_owned_collection(
            db, collection_id, current_user.id,
        )
    except ServiceError as e:
        raise http_error(e) from e

    expires_in_days = data.expires_in_days if data is not None else None
    collection = await share_service.create_share(
        db, collection, current_user.name, expires_in_days, now,
    )
    share_url = share_service.build_share_url(
        settings.app_url, collection.user_slug, collection.slug, collection.share_token,
    )

    await audit_service.record(
        db,
        AuditAction.COLLECTION_SHARE_CREATE,
        current_user.actor,
        ResourceType.COLLECTION,
        resource_id=collection.id,
        details={
            "share_url": share_url,
            "expires_at": (
                collection.share_expires_at.isoformat() if collection.share_expires_at else None
            ),
        },
        origin=origin,
    )
    return ShareCreateResponse(
        share_url=share_url,
        share_token=collection.share_token,
        expires_at=collection.share_expires_at,
    )


@router.delete("/{collection_id}/share", response_model=MessageResponse)
async def revoke_share_link(
    collection_id: UUID,
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    origin: RequestOrigin = Depends(get_request_origin),
) -> MessageResponse:
    """Revoke the share link. Succeeds even when the collection is not shared."""
    try:
        collection = await collection_service.get_owned_collection(
            db, collection_id, current_user.id,
        )
    except ServiceError as e:
        raise http_error(e) from e

    was_shared = await share_service.revoke_share(db, collection)
    await audit_service.record(
        db,
        AuditAction.COLLECTION_SHARE_REVOKE,
        current_user.actor,
        ResourceType.COLLECTION,
        resource_id=collection.id,
        details={"was_shared": was_shared},
        origin=origin,
    )
    return MessageResponse(message="Share link revoked")
