"""Service layer for the folder tree."""
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.folder import Folder
from models.photo import Photo
from schemas.folder import FolderCreate, FolderUpdate
from services.exceptions import NotFoundError, ValidationError


@dataclass
class FolderWithCounts:
    """A folder plus the number of photos and direct children it holds."""

    folder: Folder
    photo_count: int
    child_count: int


async def get_folder(db: AsyncSession, folder_id: UUID) -> Folder:
    """
    Get a folder by id.

    Raises:
        NotFoundError: If the folder does not exist.
    """
    folder = await db.get(Folder, folder_id)
    if folder is None:
        raise NotFoundError("Folder", folder_id)
    return folder


async def _with_counts(db: AsyncSession, folders: list[Folder]) -> list[FolderWithCounts]:
    if not folders:
        return []
    ids = [f.id for f in folders]
    photo_counts = dict(
        (await db.execute(
            select(Photo.folder_id, func.count())
            .where(Photo.folder_id.in_(ids))
            .group_by(Photo.folder_id),
        )).all(),
    )
    child_counts = dict(
        (await db.execute(
            select(Folder.parent_id, func.count())
            .where(Folder.parent_id.in_(ids))
            .group_by(Folder.parent_id),
        )).all(),
    )
    return [
        FolderWithCounts(
            folder=f,
            photo_count=photo_counts.get(f.id, 0),
            child_count=child_counts.get(f.id, 0),
        )
        for f in folders
    ]


async def list_folders(db: AsyncSession, parent_id: UUID | None = None) -> list[FolderWithCounts]:
    """Get one level of the tree (root level when parent_id is None), in sort order."""
    query = select(Folder).order_by(Folder.sort_order, Folder.name)
    if parent_id is None:
        query = query.where(Folder.parent_id.is_(None))
    else:
        query = query.where(Folder.parent_id == parent_id)
    result = await db.execute(query)
    return await _with_counts(db, list(result.scalars().all()))


async def get_folder_with_counts(db: AsyncSession, folder_id: UUID) -> FolderWithCounts:
    folder = await get_folder(db, folder_id)
    return (await _with_counts(db, [folder]))[0]


@dataclass
class FolderDetail:
    folder: FolderWithCounts
    parent: FolderWithCounts | None
    children: list[FolderWithCounts]


async def get_folder_detail(db: AsyncSession, folder_id: UUID) -> FolderDetail:
    """
    Get a folder with its parent and direct children, all with counts.

    Raises:
        NotFoundError: If the folder does not exist.
    """
    folder = await get_folder(db, folder_id)
    parent = await db.get(Folder, folder.parent_id) if folder.parent_id is not None else None
    counted = await _with_counts(db, [folder] if parent is None else [folder, parent])
    return FolderDetail(
        folder=counted[0],
        parent=counted[1] if parent is not None else None,
        children=await list_folders(db, folder_id),
    )


@dataclass
class FolderNode:
    item: FolderWithCounts
    children: list["FolderNode"] = field(default_factory=list)


async def get_folder_tree(db: AsyncSession) -> list[FolderNode]:
    """
    Get the whole folder tree, every level in sort order, with counts.

    Loads all folders and their counts in three queries and nests them in
    memory.
    """
    result = await db.execute(select(Folder).order_by(Folder.sort_order, Folder.name))
    nodes = [FolderNode(item) for item in await _with_counts(db, list(result.scalars().all()))]
    by_id = {node.item.folder.id: node for node in nodes}

    roots: list[FolderNode] = []
    for node in nodes:
        parent = by_id.get(node.item.folder.parent_id) if node.item.folder.parent_id else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)
    return roots


async def create_folder(db: AsyncSession, data: FolderCreate) -> Folder:
    """
    Create a folder at the end of its level.

    Raises:
        NotFoundError: If parent_id does not exist.
    """
    if data.parent_id is not None:
        await get_folder(db, data.parent_id)

    level = (
        Folder.parent_id.is_(None) if data.parent_id is None
        else Folder.parent_id == data.parent_id
    )
    max_sort_order = (
        await db.execute(select(func.max(Folder.sort_order)).where(level))
    ).scalar_one_or_none()

    folder = Folder(
        name=data.name.strip(),
        description=(data.description or "").strip() or None,
        parent_id=data.parent_id,
        sort_order=(max_sort_order or 0) + 1,
    )
    db.add(folder)
    await db.flush()
    return folder


async def _is_descendant(db: AsyncSession, candidate_id: UUID, ancestor_id: UUID) -> bool:
    """True if candidate_id is ancestor_id or lies anywhere beneath it."""
    current: UUID | None = candidate_id
    seen: set[UUID] = set()
    while current is not None and current not in seen:
        if current == ancestor_id:
            return True
        seen.add(current)
        current = (
            await db.execute(select(Folder.parent_id).where(Folder.id == current))
        ).scalar_one_or_none()
    return False


async def update_folder(db: AsyncSession, folder_id: UUID, data: FolderUpdate) -> Folder:
    """
    Update the provided fields of a folder.

    Raises:
        NotFoundError: If the folder or the new parent does not exist.
        ValidationError: If the move would put the folder inside itself.
    """
    folder = await get_folder(db, folder_id)
    changes = data.model_dump(exclude_unset=True)

    new_parent = changes.get("parent_id")
    if new_parent is not None:
        await get_folder(db, new_parent)
        if await _is_descendant(db, new_parent, folder_id):
            raise ValidationError("A folder cannot be moved into itself or its descendants")

    if changes.get("name") is not None:
        changes["name"] = changes["name"].strip()
    if "description" in changes:
        changes["description"] = (changes["description"] or "").strip() or None

    for attr, value in changes.items():
        if attr in ("name", "sort_order") and value is None:
            continue
        setattr(folder, attr, value)
    await db.flush()
    return folder


async def delete_folder(db: AsyncSession, folder_id: UUID) -> None:
    """
    Delete a folder.

    Its photos become unfiled and its child folders move up to its parent.

    Raises:
        NotFoundError: If the folder does not exist.
    """
    folder = await get_folder(db, folder_id)
    await db.execute(
        update(Photo).where(Photo.folder_id == folder_id).values(folder_id=None),
    )
    await db.execute(
        update(Folder).where(Folder.parent_id == folder_id).values(parent_id=folder.parent_id),
    )
    await db.delete(folder)
    await db.flush()
