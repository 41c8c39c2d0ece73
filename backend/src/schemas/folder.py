"""Pydantic schemas for folder endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class FolderCreate(BaseModel):
    """Schema for creating a folder."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    parent_id: UUID | None = None


class FolderUpdate(BaseModel):
    """Schema for updating a folder. Only provided fields change."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    parent_id: UUID | None = None
    sort_order: int | None = Field(default=None, ge=0)


class FolderResponse(BaseModel):
    """Schema for folder responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    parent_id: UUID | None
    sort_order: int
    created_at: datetime
    photo_count: int = 0
    child_count: int = 0


class FolderTreeNode(FolderResponse):
    """
    A folder in a listing.

    children is the nested subtree when the full tree was requested, and
    null for a single-level listing.
    """

    children: list["FolderTreeNode"] | None = None


class FolderDetailResponse(FolderResponse):
    """A folder with its parent and direct children (each with counts)."""

    parent: FolderResponse | None = None
    children: list[FolderResponse] = []
