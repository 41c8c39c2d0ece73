"""Pydantic schemas for audit log endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, computed_field

from models.audit_log import AuditAction, ResourceType


class AuditLogResponse(BaseModel):
    """Schema for a single audit entry."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    action: AuditAction
    user_id: str
    user_name: str | None
    user_role: str | None
    resource_type: ResourceType
    resource_id: str | None
    resource_ids: list[str]
    details: dict | None
    ip_address: str | None
    user_agent: str | None
    created_at: datetime


class Pagination(BaseModel):
    """Page-based pagination info."""

    page: int
    limit: int
    total: int  # Total count of entries matching the query (before pagination)
    total_pages: int

    @computed_field(alias="totalPages")
    @property
    def total_pages_camel(self) -> int:
        return self.total_pages


class AuditLogListResponse(BaseModel):
    """Schema for paginated audit log responses."""

    entries: list[AuditLogResponse]
    pagination: Pagination
