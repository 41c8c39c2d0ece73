"""SQLAlchemy models."""
from models.base import AuthBase, Base, TimestampMixin, UTCDateTime, UUIDv7Mixin
from models.roster import Player, Team
from models.folder import Folder
from models.photo import Photo
from models.tag import PhotoTag, PhotoTeamTag
from models.collection import Collection, CollectionPhoto
from models.audit_log import AuditAction, AuditLog, ResourceType
from models.user import User, UserRole

__all__ = [
    "AuditAction",
    "AuditLog",
    "AuthBase",
    "Base",
    "Collection",
    "CollectionPhoto",
    "Folder",
    "Photo",
    "PhotoTag",
    "PhotoTeamTag",
    "Player",
    "ResourceType",
    "Team",
    "TimestampMixin",
    "UTCDateTime",
    "UUIDv7Mixin",
    "User",
    "UserRole",
]
