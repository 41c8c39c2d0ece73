"""Pydantic schemas for photo and upload endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from schemas.folder import FolderResponse
from schemas.tag import PlayerTagResponse, TeamTagResponse
from schemas.user import UploaderResponse


class SignedUploadRequest(BaseModel):
    """Request a signed URL for a direct-to-storage upload."""

    original_filename: str = Field(..., min_length=1, max_length=255)
    content_type: str = Field(..., min_length=1, max_length=100)


class SignedUploadResponse(BaseModel):
    """
    Signed upload URL.

    The client PUTs the file to signed_url with the same Content-Type, then
    calls POST /photos with storage_path.
    """

    signed_url: str
    storage_path: str
    filename: str
    expires_in: int


class PhotoCreate(BaseModel):
    """Register a photo after its upload to storage completed."""

    storage_path: str = Field(..., min_length=1, max_length=512)
    original_name: str = Field(..., min_length=1, max_length=255)
    file_size: int = Field(..., gt=0)
    mime_type: str = Field(..., min_length=1, max_length=100)
    folder_id: UUID | None = None
    thumbnail_path: str | None = Field(default=None, max_length=512)


class PhotoResponse(BaseModel):
    """A photo with its tags, folder and uploader (null when unknown)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    storage_path: str
    thumbnail_path: str | None
    original_name: str
    file_size: int
    mime_type: str
    uploaded_by_id: UUID
    folder_id: UUID | None
    uploaded_at: datetime
    folder: FolderResponse | None = None
    tags: list[PlayerTagResponse] = []
    team_tags: list[TeamTagResponse] = []
    uploader: UploaderResponse | None = None


class PhotoUrlsResponse(BaseModel):
    """Freshly signed download URLs for one photo."""

    id: UUID
    image_url: str
    thumbnail_url: str | None
    expires_in: int


class PhotoBulkDelete(BaseModel):
    """Body for bulk photo deletion."""

    photo_ids: list[UUID] = Field(..., min_length=1, max_length=500)


class PhotoBulkDeleteResponse(BaseModel):
    """Result of a bulk delete."""

    message: str
    deleted: int
    storage_failures: int
