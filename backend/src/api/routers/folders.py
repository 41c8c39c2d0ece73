"""Folder endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import SessionUser, get_async_session, get_current_user, require_admin
from api.helpers import http_error
from schemas.folder import (
    FolderCreate,
    FolderDetailResponse,
    FolderResponse,
    FolderTreeNode,
    FolderUpdate,
)
from services import folder_service
from services.exceptions import ServiceError
from services.folder_service import FolderNode, FolderWithCounts

router = APIRouter(prefix="/folders", tags=["folders"])


def _to_response(item: FolderWithCounts) -> FolderResponse:
    return FolderResponse.model_validate(item.folder).model_copy(
        update={"photo_count": item.photo_count, "child_count": item.child_count},
    )


def _to_tree_node(node: FolderNode) -> FolderTreeNode:
    return FolderTreeNode(
        **_to_response(node.item).model_dump(),
        children=[_to_tree_node(child) for child in node.children],
    )


@router.get("", response_model=list[FolderTreeNode])
async def list_folders(
    parent_id: UUID | None = None,
    tree: bool = False,
    _current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[FolderTreeNode]:
    """
    Get one level of the folder tree, or the whole tree.

    Without parent_id returns the root level. With tree=true returns the
    root folders with every descendant nested under children (parent_id is
    ignored). Each folder carries its photo and direct child counts.
    """
    if tree:
        return [_to_tree_node(node) for node in await folder_service.get_folder_tree(db)]
    items = await folder_service.list_folders(db, parent_id)
    return [FolderTreeNode(**_to_response(item).model_dump()) for item in items]


@router.get("/{folder_id}", response_model=FolderDetailResponse)
async def get_folder(
    folder_id: UUID,
    _current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> FolderDetailResponse:
    """Get a folder with its parent and direct children. Returns 404 if it does not exist."""
    try:
        detail = await folder_service.get_folder_detail(db, folder_id)
    except ServiceError as e:
        raise http_error(e) from e
    return FolderDetailResponse(
        **_to_response(detail.folder).model_dump(),
        parent=_to_response(detail.parent) if detail.parent is not None else None,
        children=[_to_response(child) for child in detail.children],
    )


@router.post("", response_model=FolderResponse, status_code=status.HTTP_201_CREATED)
async def create_folder(
    data: FolderCreate,
    _admin: SessionUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
) -> FolderResponse:
    """Create a folder at the end of its level (admin only)."""
    try:
        folder = await folder_service.create_folder(db, data)
    except ServiceError as e:
        raise http_error(e) from e
    return FolderResponse.model_validate(folder)


@router.patch("/{folder_id}", response_model=FolderResponse)
async def update_folder(
    folder_id: UUID,
    data: FolderUpdate,
    _admin: SessionUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
) -> FolderResponse:
    """
    Update a folder (admin only).

    Returns 400 when the new parent is the folder itself or one of its
    descendants.
    """
    try:
        await folder_service.update_folder(db, folder_id, data)
        item = await folder_service.get_folder_with_counts(db, folder_id)
    except ServiceError as e:
        raise http_error(e) from e
    return _to_response(item)


@router.delete("/{folder_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_folder(
    folder_id: UUID,
    _admin: SessionUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Delete a folder (admin only). Photos become unfiled; subfolders move up a level."""
    try:
        await folder_service.delete_folder(db, folder_id)
    except ServiceError as e:
        raise http_error(e) from e
