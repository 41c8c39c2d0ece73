"""Read-only user projection handed out by the identity store."""
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class UserInfo:
    """
    Lightweight, immutable copy of an identity-database user record.

    Used by the enrichment cache and for joining uploader/owner data into
    listings. Never carries the password hash.
    """

    id: UUID
    email: str
    name: str
    role: str
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
