"""Player endpoints."""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import SessionUser, get_async_session, get_current_user, require_admin
from api.helpers import http_error
from schemas.roster import (
    PlayerCreate,
    PlayerImport,
    PlayerImportResponse,
    PlayerResponse,
    PlayerUpdate,
)
from services import roster_service
from services.exceptions import ServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/players", tags=["players"])


@router.get("", response_model=list[PlayerResponse])
async def list_players(
    team_id: UUID | None = None,
    _current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[PlayerResponse]:
    """Get players ordered by name, optionally only one team's."""
    players = await roster_service.list_players(db, team_id)
    return [PlayerResponse.model_validate(p) for p in players]


@router.post("", response_model=PlayerResponse, status_code=status.HTTP_201_CREATED)
async def create_player(
    data: PlayerCreate,
    _admin: SessionUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
) -> PlayerResponse:
    """Create a player (admin only). Returns 404 if team_id does not exist."""
    try:
        player = await roster_service.create_player(db, data)
    except ServiceError as e:
        raise http_error(e) from e
    return PlayerResponse.model_validate(player)


@router.put("", response_model=PlayerImportResponse, status_code=status.HTTP_201_CREATED)
async def import_players(
    data: PlayerImport,
    _admin: SessionUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
) -> PlayerImportResponse:
    """
    Bulk-create players (admin only).

    Each row names its team; names are matched ignoring case. Unknown teams
    do not fail the import: those players are created without a team and
    the names are listed in the response.
    """
    players, unmatched = await roster_service.import_players(db, data.players)
    message = f"Successfully created {len(players)} players"
    if unmatched:
        message += f" (Warning: Teams not found: {', '.join(unmatched)})"
        logger.warning("player_import_unmatched_teams teams=%s", unmatched)
    return PlayerImportResponse(
        message=message, created=len(players), unmatched_teams=unmatched,
    )


@router.patch("/{player_id}", response_model=PlayerResponse)
async def update_player(
    player_id: UUID,
    data: PlayerUpdate,
    _admin: SessionUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
) -> PlayerResponse:
    """Update a player (admin only). Only provided fields change."""
    try:
        player = await roster_service.update_player(db, player_id, data)
    except ServiceError as e:
        raise http_error(e) from e
    return PlayerResponse.model_validate(player)


@router.delete("/{player_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_player(
    player_id: UUID,
    _admin: SessionUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Delete a player and their photo tags (admin only)."""
    try:
        await roster_service.delete_player(db, player_id)
    except ServiceError as e:
        raise http_error(e) from e
