"""Service layer for tagging photos with players and teams."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.photo import Photo
from models.roster import Player, Team
from models.tag import PhotoTag, PhotoTeamTag
from services.exceptions import ConflictError, NotFoundError, ValidationError


async def _require(db: AsyncSession, model: type, resource: str, resource_id: UUID) -> object:
    obj = await db.get(model, resource_id)
    if obj is None:
        raise NotFoundError(resource, resource_id)
    return obj


async def _require_all(db: AsyncSession, model: type, resource: str, ids: list[UUID]) -> None:
    unique_ids = set(ids)
    result = await db.execute(select(model.id).where(model.id.in_(unique_ids)))
    if len(result.scalars().all()) != len(unique_ids):
        raise ValidationError(f"One or more {resource.lower()}s not found")


async def _insert_unique(db: AsyncSession, tag: PhotoTag | PhotoTeamTag, message: str) -> None:
    try:
        async with db.begin_nested():
            db.add(tag)
            await db.flush()
    except IntegrityError as e:
        # Concurrent insert of the same pair
        raise ConflictError(message) from e


async def get_player_tag(db: AsyncSession, tag_id: UUID) -> PhotoTag:
    result = await db.execute(
        select(PhotoTag)
        .options(selectinload(PhotoTag.player).selectinload(Player.team))
        .where(PhotoTag.id == tag_id),
    )
    tag = result.scalar_one_or_none()
    if tag is None:
        raise NotFoundError("Tag", tag_id)
    return tag


async def create_player_tag(db: AsyncSession, photo_id: UUID, player_id: UUID) -> PhotoTag:
    """
    Tag a player in a photo.

    Raises:
        NotFoundError: If the photo or player does not exist.
        ConflictError: If the tag already exists.
    """
    await _require(db, Photo, "Photo", photo_id)
    await _require(db, Player, "Player", player_id)

    existing = await db.execute(
        select(PhotoTag.id).where(PhotoTag.photo_id == photo_id, PhotoTag.player_id == player_id),
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Tag already exists")

    tag = PhotoTag(photo_id=photo_id, player_id=player_id)
    await _insert_unique(db, tag, "Tag already exists")
    return await get_player_tag(db, tag.id)


async def bulk_create_player_tags(
    db: AsyncSession,
    photo_ids: list[UUID],
    player_ids: list[UUID],
) -> int:
    """
    Tag every player in every photo, skipping pairs that already exist.

    Returns:
        Number of tags created.

    Raises:
        ValidationError: If any photo or player id does not exist.
    """
    await _require_all(db, Photo, "Photo", photo_ids)
    await _require_all(db, Player, "Player", player_ids)

    existing = await db.execute(
        select(PhotoTag.photo_id, PhotoTag.player_id).where(
            PhotoTag.photo_id.in_(photo_ids),
            PhotoTag.player_id.in_(player_ids),
        ),
    )
    present = {tuple(row) for row in existing.all()}
    wanted = dict.fromkeys((photo_id, player_id) for photo_id in photo_ids for player_id in player_ids)
    new_tags = [
        PhotoTag(photo_id=photo_id, player_id=player_id)
        for photo_id, player_id in wanted
        if (photo_id, player_id) not in present
    ]
    db.add_all(new_tags)
    await db.flush()
    return len(new_tags)


async def delete_player_tag(db: AsyncSession, tag_id: UUID) -> PhotoTag:
    """
    Remove a player tag.

    Returns:
        The deleted tag (player loaded, for audit details).

    Raises:
        NotFoundError: If the tag does not exist.
    """
    tag = await get_player_tag(db, tag_id)
    await db.delete(tag)
    await db.flush()
    return tag


async def get_team_tag(db: AsyncSession, tag_id: UUID) -> PhotoTeamTag:
    result = await db.execute(
        select(PhotoTeamTag)
        .options(selectinload(PhotoTeamTag.team))
        .where(PhotoTeamTag.id == tag_id),
    )
    tag = result.scalar_one_or_none()
    if tag is None:
        raise NotFoundError("Team tag", tag_id)
    return tag


async def create_team_tag(db: AsyncSession, photo_id: UUID, team_id: UUID) -> PhotoTeamTag:
    """
    Tag a team in a photo.

    Raises:
        NotFoundError: If the photo or team does not exist.
        ConflictError: If the tag already exists.
    """
    await _require(db, Photo, "Photo", photo_id)
    await _require(db, Team, "Team", team_id)

    existing = await db.execute(
        select(PhotoTeamTag.id).where(
            PhotoTeamTag.photo_id == photo_id, PhotoTeamTag.team_id == team_id,
        ),
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Team tag already exists")

    tag = PhotoTeamTag(photo_id=photo_id, team_id=team_id)
    await _insert_unique(db, tag, "Team tag already exists")
    return await get_team_tag(db, tag.id)


async def bulk_create_team_tags(
    db: AsyncSession,
    photo_ids: list[UUID],
    team_ids: list[UUID],
) -> int:
    """
    Tag every team in every photo, skipping pairs that already exist.

    Returns:
        Number of tags created.

    Raises:
        ValidationError: If any photo or team id does not exist.
    """
    await _require_all(db, Photo, "Photo", photo_ids)
    await _require_all(db, Team, "Team", team_ids)

    existing = await db.execute(
        select(PhotoTeamTag.photo_id, PhotoTeamTag.team_id).where(
            PhotoTeamTag.photo_id.in_(photo_ids),
            PhotoTeamTag.team_id.in_(team_ids),
        ),
    )
    present = {tuple(row) for row in existing.all()}
    wanted = dict.fromkeys((photo_id, team_id) for photo_id in photo_ids for team_id in team_ids)
    new_tags = [
        PhotoTeamTag(photo_id=photo_id, team_id=team_id)
        for photo_id, team_id in wanted
        if (photo_id, team_id) not in present
    ]
    db.add_all(new_tags)
    await db.flush()
    return len(new_tags)


async def delete_team_tag(db: AsyncSession, tag_id: UUID) -> PhotoTeamTag:
    """
    Remove a team tag.

    Raises:
        NotFoundError: If the tag does not exist.
    """
    tag = await get_team_tag(db, tag_id)
    await db.delete(tag)
    await db.flush()
    return tag
