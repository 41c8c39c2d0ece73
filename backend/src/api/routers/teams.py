"""Team endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import SessionUser, get_async_session, get_current_user, require_admin
from api.helpers import http_error
from schemas.roster import TeamCreate, TeamResponse
from services import roster_service
from services.exceptions import ServiceError

router = APIRouter(prefix="/teams", tags=["teams"])


@router.get("", response_model=list[TeamResponse])
async def list_teams(
    _current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[TeamResponse]:
    """Get all teams ordered by name."""
    teams = await roster_service.list_teams(db)
    return [TeamResponse.model_validate(t) for t in teams]


@router.post("", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(
    data: TeamCreate,
    _admin: SessionUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
) -> TeamResponse:
    """Create a team (admin only). Returns 409 if the name is taken."""
    try:
        team = await roster_service.create_team(db, data)
    except ServiceError as e:
        raise http_error(e) from e
    return TeamResponse.model_validate(team)


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team(
    team_id: UUID,
    _admin: SessionUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Delete a team (admin only). Its players stay, without a team."""
    try:
        await roster_service.delete_team(db, team_id)
    except ServiceError as e:
        raise http_error(e) from e
