"""Pydantic schemas for teams and players."""
from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class TeamCreate(BaseModel):
    """Schema for creating a team."""

    name: str = Field(..., min_length=1, max_length=255)


class TeamResponse(BaseModel):
    """Schema for team responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    created_at: datetime


class PlayerCreate(BaseModel):
    """Schema for creating a player."""

    name: str = Field(..., min_length=1, max_length=255)
    jersey_number: int | None = Field(default=None, ge=0, le=999)
    position: str | None = Field(default=None, max_length=100)
    team_id: UUID | None = None


class PlayerUpdate(BaseModel):
    """Schema for updating a player. Only provided fields change."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    jersey_number: int | None = Field(default=None, ge=0, le=999)
    position: str | None = Field(default=None, max_length=100)
    team_id: UUID | None = None


class PlayerResponse(BaseModel):
    """Schema for player responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    jersey_number: int | None
    position: str | None
    team_id: UUID | None
    team: TeamResponse | None = None


class PlayerImportRow(BaseModel):
    """One player in a bulk import. team is a team name, matched ignoring case."""

    name: str = Field(..., min_length=1, max_length=255)
    jersey_number: int | None = Field(
        default=None,
        validation_alias=AliasChoices("jersey_number", "jerseyNumber"),
        ge=0,
        le=999,
    )
    position: str | None = Field(default=None, max_length=100)
    team: str | None = Field(default=None, max_length=255)


class PlayerImport(BaseModel):
    """Body for PUT /players."""

    players: list[PlayerImportRow] = Field(..., min_length=1, max_length=1000)


class PlayerImportResponse(BaseModel):
    """Result of a bulk import. Players whose team was not found are created without one."""

    message: str
    created: int
    unmatched_teams: list[str]
