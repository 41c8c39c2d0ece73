"""Pydantic schemas for player and team tags."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from schemas.roster import PlayerResponse, TeamResponse


class PlayerTagCreate(BaseModel):
    """Tag one player in one photo."""

    photo_id: UUID
    player_id: UUID


class PlayerTagBulkCreate(BaseModel):
    """Tag every listed player in every listed photo."""

    photo_ids: list[UUID] = Field(..., min_length=1, max_length=500)
    player_ids: list[UUID] = Field(..., min_length=1, max_length=100)


class TeamTagCreate(BaseModel):
    """Tag one team in one photo."""

    photo_id: UUID
    team_id: UUID


class TeamTagBulkCreate(BaseModel):
    """Tag every listed team in every listed photo."""

    photo_ids: list[UUID] = Field(..., min_length=1, max_length=500)
    team_ids: list[UUID] = Field(..., min_length=1, max_length=100)


class PlayerTagResponse(BaseModel):
    """A player tag on a photo."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    photo_id: UUID
    player_id: UUID
    created_at: datetime
    player: PlayerResponse


class TeamTagResponse(BaseModel):
    """A team tag on a photo."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    photo_id: UUID
    team_id: UUID
    created_at: datetime
    team: TeamResponse


class BulkTagResponse(BaseModel):
    """Result of a bulk tag request."""

    message: str
    created: int
