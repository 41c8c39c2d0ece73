"""Pydantic schemas for collection and share endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from schemas.photo import PhotoResponse


class CollectionCreate(BaseModel):
    """Schema for creating a collection."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)


class CollectionUpdate(BaseModel):
    """Schema for updating a collection. Only provided fields change."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)


class CollectionPhotoAdd(BaseModel):
    """Body for adding a photo to a collection."""

    photo_id: UUID


class CollectionPhotoResponse(BaseModel):
    """A photo's membership in a collection."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    collection_id: UUID
    photo_id: UUID
    added_at: datetime


class PreviewPhoto(BaseModel):
    """Minimal photo data for collection cards."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    storage_path: str
    thumbnail_path: str | None


class CollectionResponse(BaseModel):
    """Collection metadata including its share state."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    user_id: UUID
    created_at: datetime
    updated_at: datetime
    is_shared: bool
    slug: str | None
    user_slug: str | None
    share_expires_at: datetime | None


class CollectionListItem(CollectionResponse):
    """Collection card: metadata, photo count and up to four preview photos."""

    photo_count: int
    preview_photos: list[PreviewPhoto]


class CollectionDetailResponse(CollectionResponse):
    """Collection with every photo, newest-added first."""

    photos: list[PhotoResponse]


class ShareCreate(BaseModel):
    """
    Body for generating a share link. Omit expires_in_days for a link that never expires.

    Accepts expiresInDays as well. Unknown fields are rejected so a misspelled
    expiry never silently produces a permanent link.
    """

    model_config = ConfigDict(extra="forbid")

    expires_in_days: int | None = Field(
        default=None,
        validation_alias=AliasChoices("expires_in_days", "expiresInDays"),
        ge=1,
        le=3650,
        description="Days until the link stops working. None means no expiration.",
    )


class ShareCreateResponse(BaseModel):
    """
    A freshly generated share link.

    Any previously issued token for the collection no longer works.
    """

    share_url: str
    share_token: str
    expires_at: datetime | None


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


class SharedPhotoTag(BaseModel):
    """Player tag as shown on a public share page."""

    id: UUID
    name: str
    jersey_number: int | None


class SharedPhoto(BaseModel):
    """Photo as shown on a public share page, with signed URLs."""

    id: UUID
    original_name: str
    mime_type: str
    image_url: str
    thumbnail_url: str | None
    uploader_name: str
    tags: list[SharedPhotoTag]


class SharedCollectionResponse(BaseModel):
    """Public view of a shared collection."""

    name: str
    description: str | None
    owner_name: str
    photo_count: int
    expires_at: datetime | None
    photos: list[SharedPhoto]
