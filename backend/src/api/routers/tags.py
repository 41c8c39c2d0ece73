"""Player and team tag endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import SessionUser, get_async_session, get_current_user, get_request_origin
from api.helpers import http_error
from core.request_context import RequestOrigin
from models.audit_log import AuditAction, ResourceType
from schemas.tag import (
    BulkTagResponse,
    PlayerTagBulkCreate,
    PlayerTagCreate,
    PlayerTagResponse,
    TeamTagBulkCreate,
    TeamTagCreate,
    TeamTagResponse,
)
from services import tag_service
from services.audit_service import audit_service
from services.exceptions import ServiceError

router = APIRouter(prefix="/tags", tags=["tags"])
team_router = APIRouter(prefix="/team-tags", tags=["tags"])


@router.post("", response_model=PlayerTagResponse, status_code=status.HTTP_201_CREATED)
async def create_player_tag(
    data: PlayerTagCreate,
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    origin: RequestOrigin = Depends(get_request_origin),
) -> PlayerTagResponse:
    """
    Tag a player in a photo.

    Returns 404 if the photo or player does not exist, 409 if already tagged.
    """
    try:
        tag = await tag_service.create_player_tag(db, data.photo_id, data.player_id)
    except ServiceError as e:
        raise http_error(e) from e

    await audit_service.record(
        db,
        AuditAction.PLAYER_TAG_CREATE,
        current_user.actor,
        ResourceType.PHOTO_TAG,
        resource_id=tag.id,
        details={
            "photo_id": str(tag.photo_id),
            "player_id": str(tag.player_id),
            "player_name": tag.player.name,
        },
        origin=origin,
    )
    return PlayerTagResponse.model_validate(tag)


@router.put("", response_model=BulkTagResponse)
async def bulk_create_player_tags(
    data: PlayerTagBulkCreate,
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    origin: RequestOrigin = Depends(get_request_origin),
) -> BulkTagResponse:
    """
    Tag every listed player in every listed photo.

    Existing tags are skipped. Returns 400 if any photo or player id does
    not exist.
    """
    try:
        created = await tag_service.bulk_create_player_tags(db, data.photo_ids, data.player_ids)
    except ServiceError as e:
        raise http_error(e) from e

    await audit_service.record(
        db,
        AuditAction.PLAYER_TAG_BULK_CREATE,
        current_user.actor,
        ResourceType.PHOTO_TAG,
        resource_ids=data.photo_ids,
        details={
            "player_ids": [str(p) for p in data.player_ids],
            "photo_count": len(data.photo_ids),
            "tags_created": created,
        },
        origin=origin,
    )
    return BulkTagResponse(message=f"Created {created} tags", created=created)


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_player_tag(
    tag_id: UUID,
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    origin: RequestOrigin = Depends(get_request_origin),
) -> None:
    """Remove a player tag. Returns 404 if it does not exist."""
    try:
        tag = await tag_service.delete_player_tag(db, tag_id)
    except ServiceError as e:
        raise http_error(e) from e

    await audit_service.record(
        db,
        AuditAction.PLAYER_TAG_DELETE,
        current_user.actor,
        ResourceType.PHOTO_TAG,
        resource_id=tag_id,
        details={
            "photo_id": str(tag.photo_id),
            "player_id": str(tag.player_id),
            "player_name": tag.player.name,
        },
        origin=origin,
    )


@team_router.post("", response_model=TeamTagResponse, status_code=status.HTTP_201_CREATED)
async def create_team_tag(
    data: TeamTagCreate,
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    origin: RequestOrigin = Depends(get_request_origin),
) -> TeamTagResponse:
    """
    Tag a team in a photo.

    Returns 404 if the photo or team does not exist, 409 if already tagged.
    """
    try:
        tag = await tag_service.create_team_tag(db, data.photo_id, data.team_id)
    except ServiceError as e:
        raise http_error(e) from e

    await audit_service.record(
        db,
        AuditAction.TEAM_TAG_CREATE,
        current_user.actor,
        ResourceType.PHOTO_TEAM_TAG,
        resource_id=tag.id,
        details={
            "photo_id": str(tag.photo_id),
            "team_id": str(tag.team_id),
            "team_name": tag.team.name,
        },
        origin=origin,
    )
    return TeamTagResponse.model_validate(tag)


@team_router.put("", response_model=BulkTagResponse)
async def bulk_create_team_tags(
    data: TeamTagBulkCreate,
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    origin: RequestOrigin = Depends(get_request_origin),
) -> BulkTagResponse:
    """Tag every listed team in every listed photo, skipping existing tags."""
    try:
        created = await tag_service.bulk_create_team_tags(db, data.photo_ids, data.team_ids)
    except ServiceError as e:
        raise http_error(e) from e

    await audit_service.record(
        db,
        AuditAction.TEAM_TAG_BULK_CREATE,
        current_user.actor,
        ResourceType.PHOTO_TEAM_TAG,
        resource_ids=data.photo_ids,
        details={
            "team_ids": [str(t) for t in data.team_ids],
            "photo_count": len(data.photo_ids),
            "tags_created": created,
        },
        origin=origin,
    )
    return BulkTagResponse(message=f"Created {created} team tags", created=created)


@team_router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team_tag(
    tag_id: UUID,
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    origin: RequestOrigin = Depends(get_request_origin),
) -> None:
    """Remove a team tag. Returns 404 if it does not exist."""
    try:
        tag = await tag_service.delete_team_tag(db, tag_id)
    except ServiceError as e:
        raise http_error(e) from e

    await audit_service.record(
        db,
        AuditAction.TEAM_TAG_DELETE,
        current_user.actor,
        ResourceType.PHOTO_TEAM_TAG,
        resource_id=tag_id,
        details={
            "photo_id": str(tag.photo_id),
            "team_id": str(tag.team_id),
            "team_name": tag.team.name,
        },
        origin=origin,
    )
