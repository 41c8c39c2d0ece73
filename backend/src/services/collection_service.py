"""Service layer for personal photo collections."""
from collections import defaultdict
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.collection import Collection, CollectionPhoto
from models.photo import Photo
from schemas.collection import CollectionCreate, CollectionUpdate
from services.exceptions import ConflictError, ForbiddenError, NotFoundError
from services.photo_service import photo_load_options

PREVIEW_PHOTO_LIMIT = 4


@dataclass
class CollectionSummary:
    """A collection plus what its listing card shows."""

    collection: Collection
    photo_count: int
    preview_photos: list[Photo]


def collection_photo_options() -> list:
    """Eager-load member photos with everything a PhotoResponse serializes."""
    return [
        selectinload(Collection.photos)
        .selectinload(CollectionPhoto.photo)
        .options(*photo_load_options()),
    ]


async def list_collections(db: AsyncSession, user_id: UUID) -> list[CollectionSummary]:
    """Get a user's collections, newest first, with counts and preview photos."""
    result = await db.execute(
        select(Collection)
        .where(Collection.user_id == user_id)
        .order_by(Collection.created_at.desc(), Collection.id.desc()),
    )
    collections = list(result.scalars().all())
    if not collections:
        return []

    ids = [c.id for c in collections]
    counts = dict(
        (await db.execute(
            select(CollectionPhoto.collection_id, func.count())
            .where(CollectionPhoto.collection_id.in_(ids))
            .group_by(CollectionPhoto.collection_id),
        )).all(),
    )

    # Rank members per collection so only the newest few rows leave the database
    ranked = (
        select(
            CollectionPhoto.collection_id,
            CollectionPhoto.photo_id,
            func.row_number()
            .over(
                partition_by=CollectionPhoto.collection_id,
                order_by=(CollectionPhoto.added_at.desc(), CollectionPhoto.id.desc()),
            )
            .label("preview_rank"),
        )
        .where(CollectionPhoto.collection_id.in_(ids))
        .subquery()
    )
    previews: dict[UUID, list[Photo]] = defaultdict(list)
    rows = await db.execute(
        select(ranked.c.collection_id, Photo)
        .join(Photo, Photo.id == ranked.c.photo_id)
        .where(ranked.c.preview_rank <= PREVIEW_PHOTO_LIMIT)
        .order_by(ranked.c.collection_id, ranked.c.preview_rank),
    )
    for collection_id, photo in rows.all():
        previews[collection_id].append(photo)

    return [
        CollectionSummary(
            collection=c,
            photo_count=counts.get(c.id, 0),
            preview_photos=previews.get(c.id, []),
        )
        for c in collections
    ]


async def create_collection(db: AsyncSession, user_id: UUID, data: CollectionCreate) -> Collection:
    """Create an (unshared) collection owned by user_id."""
    collection = Collection(
        name=data.name.strip(),
        description=(data.description or "").strip() or None,
        user_id=user_id,
    )
    db.add(collection)
    await db.flush()
    await db.refresh(collection)
    return collection


async def get_owned_collection(
    db: AsyncSession,
    collection_id: UUID,
    user_id: UUID,
    *,
    load_photos: bool = False,
) -> Collection:
    """
    Get a collection the caller owns.

    Existence is checked before ownership, so callers see 404 for unknown ids
    and 403 for other users' collections.

    Raises:
        NotFoundError: If the collection does not exist.
        ForbiddenError: If it belongs to another user.
    """
    query = select(Collection).where(Collection.id == collection_id)
    if load_photos:
        query = query.options(*collection_photo_options()).execution_options(
            populate_existing=True,
        )
    collection = (await db.execute(query)).scalar_one_or_none()
    if collection is None:
        raise NotFoundError("Collection", collection_id)
    if collection.user_id != user_id:
        raise ForbiddenError()
    return collection


async def update_collection(
    db: AsyncSession,
    collection: Collection,
    data: CollectionUpdate,
) -> Collection:
    """Apply the provided name/description changes."""
    changes = data.model_dump(exclude_unset=True)
    if changes.get("name") is not None:
        collection.name = changes["name"].strip()
    if "description" in changes:
        collection.description = (changes["description"] or "").strip() or None
    await db.flush()
    await db.refresh(collection)
    return collection


async def delete_collection(db: AsyncSession, collection: Collection) -> None:
    """Delete a collection and its memberships (photos themselves are kept)."""
    await db.delete(collection)
    await db.flush()


async def add_photo(db: AsyncSession, collection: Collection, photo_id: UUID) -> CollectionPhoto:
    """
    Add a photo to a collection.

    Raises:
        NotFoundError: If the photo does not exist.
        ConflictError: If the photo is already in the collection.
    """
    if await db.get(Photo, photo_id) is None:
        raise NotFoundError("Photo", photo_id)

    existing = await db.execute(
        select(CollectionPhoto.id).where(
            CollectionPhoto.collection_id == collection.id,
            CollectionPhoto.photo_id == photo_id,
        ),
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Photo already in collection")

    entry = CollectionPhoto(collection_id=collection.id, photo_id=photo_id)
    try:
        async with db.begin_nested():
            db.add(entry)
            await db.flush()
    except IntegrityError as e:
        # Concurrent add of the same photo
        raise ConflictError("Photo already in collection") from e
    return entry


async def remove_photo(db: AsyncSession, collection: Collection, photo_id: UUID) -> CollectionPhoto:
    """
    Remove a photo from a collection.

    Raises:
        NotFoundError: If the photo is not in the collection.
    """
    result = await db.execute(
        select(CollectionPhoto).where(
            CollectionPhoto.collection_id == collection.id,
            CollectionPhoto.photo_id == photo_id,
        ),
    )
    entry = result.scalar_one_or_none()
    if entry is None:
        raise NotFoundError("Photo in collection", photo_id)
    await db.delete(entry)
    await db.flush()
    return entry
