"""Pydantic schemas for admin endpoints."""
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from schemas.audit import Pagination
from schemas.photo import PhotoResponse


class RecentPhoto(BaseModel):
    """A recently uploaded photo on the admin dashboard."""

    id: UUID
    original_name: str
    uploaded_at: datetime
    uploader_name: str


class AdminStats(BaseModel):
    """System-wide counts for the admin dashboard."""

    users: int
    photos: int
    players: int
    teams: int
    folders: int
    collections: int
    shared_collections: int
    player_tags: int
    team_tags: int
    audit_entries: int
    total_storage_bytes: int
    recent_photos: list[RecentPhoto]


class AdminPhotoResponse(PhotoResponse):
    """A photo in the admin listing, with the number of collections holding it."""

    collections_count: int = 0


class AdminPhotoListResponse(BaseModel):
    photos: list[AdminPhotoResponse]
    pagination: Pagination


class StorageConfigResponse(BaseModel):
    """Storage settings with credentials masked."""

    model_config = ConfigDict(from_attributes=True)

    bucket_name: str
    region: str | None
    endpoint_url: str | None
    access_key_id: str | None
    secret_access_key_configured: bool


class MimeTypeUsageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    mime_type: str
    count: int
    total_bytes: int


class StorageUsageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    photo_count: int
    total_bytes: int
    average_file_size: int


class StorageOverview(BaseModel):
    """Response for GET /admin/storage."""

    config: StorageConfigResponse
    stats: StorageUsageResponse
    type_distribution: list[MimeTypeUsageResponse]


class StorageCheckRequest(BaseModel):
    """Body for POST /admin/storage."""

    action: Literal["test-connection", "test-upload", "test-full"] = Field(
        ..., description="Which storage check to run",
    )


class StorageCheckStepResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    success: bool
    elapsed_ms: float
    error: str | None = None


class StorageCheckResponse(BaseModel):
    """Result of a storage check. success=false comes back with status 500."""

    model_config = ConfigDict(from_attributes=True)

    action: str
    success: bool
    message: str
    elapsed_ms: float
    object_path: str | None = None
    error: str | None = None
    steps: list[StorageCheckStepResponse]
