"""Admin endpoints: audit trail, users, stats, photos and storage."""
import logging
import math
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    ObjectStorage,
    SessionUser,
    UserCache,
    get_async_session,
    get_auth_session,
    get_request_origin,
    get_settings,
    get_storage,
    get_user_cache,
    require_admin,
)
from api.helpers import display_name, enrich_photos, http_error
from core.config import Settings
from core.request_context import RequestOrigin
from models.audit_log import AuditAction, ResourceType
from models.user import UserRole
from schemas.admin import (
    AdminPhotoListResponse,
    AdminPhotoResponse,
    AdminStats,
    MimeTypeUsageResponse,
    RecentPhoto,
    StorageCheckRequest,
    StorageCheckResponse,
    StorageConfigResponse,
    StorageOverview,
    StorageUsageResponse,
)
from schemas.audit import AuditLogListResponse, AuditLogResponse, Pagination
from schemas.photo import PhotoBulkDelete, PhotoBulkDeleteResponse
from schemas.user import RoleUpdate, UserResponse
from services import photo_service, stats_service, storage_service, user_service
from services.audit_service import AuditLogFilters, audit_service, parse_date_filter
from services.exceptions import ServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _pagination(page: int, limit: int, total: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))


@router.get("/audit-logs", response_model=AuditLogListResponse)
async def list_audit_logs(
    action: AuditAction | None = None,
    resource_type: ResourceType | None = None,
    user_id: str | None = Query(default=None, max_length=64),
    start_date: str | None = Query(default=None, description="ISO date or datetime"),
    end_date: str | None = Query(
        default=None, description="ISO date or datetime; a bare date includes the whole day",
    ),
    resource_type_camel: ResourceType | None = Query(default=None, alias="resourceType"),
    user_id_camel: str | None = Query(default=None, alias="userId", max_length=64),
    start_date_camel: str | None = Query(default=None, alias="startDate"),
    end_date_camel: str | None = Query(default=None, alias="endDate"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=100),
    _admin: SessionUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
) -> AuditLogListResponse:
    """
    Query the audit trail, newest first.

    All filters are optional and combine with AND. Each multi-word filter is
    also accepted in camelCase (resourceType, userId, startDate, endDate).
    Returns 400 when a date does not parse.
    """
    resource_type = resource_type or resource_type_camel
    user_id = user_id or user_id_camel
    start_date = start_date or start_date_camel
    end_date = end_date or end_date_camel
    try:
        filters = AuditLogFilters(
            action=action,
            resource_type=resource_type,
            user_id=user_id,
            start_date=parse_date_filter(start_date) if start_date else None,
            end_date=parse_date_filter(end_date, end_of_day=True) if end_date else None,
        )
    except ServiceError as e:
        raise http_error(e) from e

    entries, total = await audit_service.query(db, filters, page=page, limit=limit)
    return AuditLogListResponse(
        entries=[AuditLogResponse.model_validate(e) for e in entries],
        pagination=_pagination(page, limit, total),
    )


@router.get("/users", response_model=list[UserResponse])
async def list_users(
    _admin: SessionUser = Depends(require_admin),
    auth_db: AsyncSession = Depends(get_auth_session),
) -> list[UserResponse]:
    """List every account in the identity database."""
    users = await user_service.get_all_users(auth_db)
    return [UserResponse.model_validate(u) for u in users]


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    _admin: SessionUser = Depends(require_admin),
    auth_db: AsyncSession = Depends(get_auth_session),
) -> UserResponse:
    """Get one account, including its login and update timestamps."""
    user = await user_service.get_user_by_id(auth_db, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.model_validate(user)


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_user_role(
    user_id: UUID,
    data: RoleUpdate,
    current_user: SessionUser = Depends(require_admin),
    auth_db: AsyncSession = Depends(get_auth_session),
    cache: UserCache = Depends(get_user_cache),
) -> UserResponse:
    """
    Change a user's role.

    Admins cannot demote themselves (400). The role change is committed
    before the user's cached record is dropped, so a concurrent cache miss
    cannot reload the old role.
    """
    if user_id == current_user.id and data.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot remove your own admin role",
        )

    user = await user_service.update_role(auth_db, user_id, data.role)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    await auth_db.commit()
    cache.invalidate(user_id)
    logger.info(
        "user_role_changed user_id=%s role=%s by=%s", user_id, data.role, current_user.id,
    )
    return UserResponse.model_validate(user)


@router.get("/stats", response_model=AdminStats)
async def get_stats(
    _admin: SessionUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
    auth_db: AsyncSession = Depends(get_auth_session),
    cache: UserCache = Depends(get_user_cache),
) -> AdminStats:
    """Dashboard counts across both databases."""
    stats = await stats_service.get_app_stats(db)
    user_count = await stats_service.count_users(auth_db)
    users = await cache.get_users(p.uploaded_by_id for p in stats.recent_photos)
    return AdminStats(
        users=user_count,
        photos=stats.photos,
        players=stats.players,
        teams=stats.teams,
        folders=stats.folders,
        collections=stats.collections,
        shared_collections=stats.shared_collections,
        player_tags=stats.player_tags,
        team_tags=stats.team_tags,
        audit_entries=stats.audit_entries,
        total_storage_bytes=stats.total_storage_bytes,
        recent_photos=[
            RecentPhoto(
                id=p.id,
                original_name=p.original_name,
                uploaded_at=p.uploaded_at,
                uploader_name=display_name(users, p.uploaded_by_id),
            )
            for p in stats.recent_photos
        ],
    )


@router.delete("/photos", response_model=PhotoBulkDeleteResponse)
async def bulk_delete_photos(
    data: PhotoBulkDelete = Body(...),
    current_user: SessionUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
    storage: ObjectStorage = Depends(get_storage),
    origin: RequestOrigin = Depends(get_request_origin),
) -> PhotoBulkDeleteResponse:
    """
    Delete many photos at once.

    Storage deletion is best-effort: failures are logged and counted, and
    the records are removed either way. Returns 404 if none of the ids exist.
    """
    try:
        photos, storage_failures = await photo_service.bulk_delete_photos(
            db, storage, data.photo_ids,
        )
    except ServiceError as e:
        raise http_error(e) from e

    await audit_service.record(
        db,
        AuditAction.PHOTO_BULK_DELETE,
        current_user.actor,
        ResourceType.PHOTO,
        resource_ids=[p.id for p in photos],
        details={
            "count": len(photos),
            "file_names": [p.original_name for p in photos],
            "storage_failures": storage_failures,
        },
        origin=origin,
    )
    return PhotoBulkDeleteResponse(
        message=f"Deleted {len(photos)} photos",
        deleted=len(photos),
        storage_failures=storage_failures,
    )


@router.get("/photos", response_model=AdminPhotoListResponse)
async def list_photos(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=100),
    uploader_id: UUID | None = Query(default=None),
    uploader_id_camel: UUID | None = Query(default=None, alias="uploaderId"),
    _admin: SessionUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
    cache: UserCache = Depends(get_user_cache),
) -> AdminPhotoListResponse:
    """
    Page through every photo, newest first.

    Each photo carries its uploader and how many collections hold it.
    Filter by uploader with uploader_id (or uploaderId).
    """
    photos, total, collection_counts = await photo_service.list_photos_page(
        db, page=page, limit=limit, uploader_id=uploader_id or uploader_id_camel,
    )
    responses = await enrich_photos(cache, photos)
    return AdminPhotoListResponse(
        photos=[
            AdminPhotoResponse(
                **response.model_dump(),
                collections_count=collection_counts.get(response.id, 0),
            )
            for response in responses
        ],
        pagination=_pagination(page, limit, total),
    )


@router.get("/storage", response_model=StorageOverview)
async def get_storage_overview(
    _admin: SessionUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> StorageOverview:
    """Storage configuration (credentials masked) and usage by MIME type."""
    usage = await storage_service.get_usage(db)
    return StorageOverview(
        config=StorageConfigResponse.model_validate(storage_service.get_config(settings)),
        stats=StorageUsageResponse.model_validate(usage),
        type_distribution=[MimeTypeUsageResponse.model_validate(t) for t in usage.type_distribution],
    )


@router.post("/storage", response_model=StorageCheckResponse)
async def check_storage(
    data: StorageCheckRequest,
    response: Response,
    current_user: SessionUser = Depends(require_admin),
    storage: ObjectStorage = Depends(get_storage),
) -> StorageCheckResponse:
    """
    Run a live storage check: test-connection, test-upload or test-full.

    A failed check returns 500 with the per-step results.
    """
    result = await storage_service.run_check(storage, data.action)
    if not result.success:
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    logger.info(
        "storage_check action=%s success=%s by=%s", data.action, result.success, current_user.id,
    )
    return StorageCheckResponse.model_validate(result)
