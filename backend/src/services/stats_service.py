"""Aggregate counts for the admin dashboard."""
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.audit_log import AuditLog
from models.collection import Collection
from models.folder import Folder
from models.photo import Photo
from models.roster import Player, Team
from models.tag import PhotoTag, PhotoTeamTag
from models.user import User

RECENT_PHOTO_LIMIT = 5


@dataclass
class AppStats:
    """Counts from the application database."""

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
    recent_photos: list[Photo]


async def _count(db: AsyncSession, model: type, *conditions: object) -> int:
    return (await db.execute(select(func.count()).select_from(model).where(*conditions))).scalar_one()


async def get_app_stats(db: AsyncSession) -> AppStats:
    """Count everything in the application database."""
    total_bytes = (
        await db.execute(select(func.coalesce(func.sum(Photo.file_size), 0)))
    ).scalar_one()
    recent = await db.execute(
        select(Photo).order_by(Photo.uploaded_at.desc(), Photo.id.desc()).limit(RECENT_PHOTO_LIMIT),
    )
    return AppStats(
        photos=await _count(db, Photo),
        players=await _count(db, Player),
        teams=await _count(db, Team),
        folders=await _count(db, Folder),
        collections=await _count(db, Collection),
        shared_collections=await _count(db, Collection, Collection.share_token.is_not(None)),
        player_tags=await _count(db, PhotoTag),
        team_tags=await _count(db, PhotoTeamTag),
        audit_entries=await _count(db, AuditLog),
        total_storage_bytes=int(total_bytes),
        recent_photos=list(recent.scalars().all()),
    )


async def count_users(auth_db: AsyncSession) -> int:
    """Count accounts in the identity database."""
    return await _count(auth_db, User)
