"""Workspace routes — the folder/draft tree in the sidebar."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Any

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, TypeAdapter

from folio.auth import current_user_id
from folio.routes import drafts_repo, folders_repo, views
from folio.services.workspace import (
    DELETE_DRAFT_PROMPT,
    DELETE_FOLDER_PROMPT,
    TreeNode,
)

if TYPE_CHECKING:
    from folio.services.workspace import Workspace

router = APIRouter(prefix="/workspace", tags=["workspace"])

UserId = Annotated[str, Depends(current_user_id)]

_tree_adapter: TypeAdapter[list[TreeNode]] = TypeAdapter(list[TreeNode])


class FolderCreate(BaseModel):
    name: str


class FolderRename(BaseModel):
    name: str


class DraftChange(BaseModel):
    title: str | None = None
    folder_id: str | None = None


async def _workspace(request: Request, user_id: str) -> Workspace:
    return await views(request).workspace(user_id, drafts_repo(request), folders_repo(request))


def _render(workspace: Workspace, query: str = "") -> list[dict[str, Any]]:
    return _tree_adapter.dump_python(workspace.tree(query), mode="json")


@router.get("")
async def tree(request: Request, user_id: UserId, q: str = ""):
    """Render the tree filtered by a live title search."""
    workspace = await _workspace(request, user_id)
    return {"query": q, "nodes": _render(workspace, q)}


@router.post("/folders", status_code=status.HTTP_201_CREATED)
async def create_folder(request: Request, body: FolderCreate, user_id: UserId):
    workspace = await _workspace(request, user_id)
    folder = await workspace.create_folder(body.name)
    return {"folder": folder.model_dump(mode="json"), "nodes": _render(workspace)}


@router.patch("/folders/{folder_id}")
async def rename_folder(request: Request, folder_id: str, body: FolderRename, user_id: UserId):
    workspace = await _workspace(request, user_id)
    changed = await workspace.rename_folder(folder_id, body.name)
    return {"changed": changed, "nodes": _render(workspace)}


@router.post("/folders/{folder_id}/toggle")
async def toggle_folder(request: Request, folder_id: str, user_id: UserId):
    workspace = await _workspace(request, user_id)
    return {"id": folder_id, "expanded": workspace.toggle(folder_id)}


@router.delete("/folders/{folder_id}")
async def delete_folder(
    request: Request,
    folder_id: str,
    user_id: UserId,
    confirm: Annotated[bool, Query()] = False,
):
    """Delete a folder once confirmed; its drafts move to Unfiled."""
    workspace = await _workspace(request, user_id)
    if not confirm:
        return {"deleted": False, "confirm": DELETE_FOLDER_PROMPT}
    deleted = await workspace.delete_folder(folder_id, confirmed=True)
    return {"deleted": deleted, "nodes": _render(workspace)}


@router.patch("/drafts/{draft_id}")
async def change_draft(request: Request, draft_id: str, body: DraftChange, user_id: UserId):
    """Rename a draft, move it between folders, or both."""
    workspace = await _workspace(request, user_id)
    changed = False
    if body.title is not None:
        changed = await workspace.rename_draft(draft_id, body.title)
    if "folder_id" in body.model_fields_set:
        await workspace.move_draft(draft_id, body.folder_id)
        changed = True
    return {"changed": changed, "nodes": _render(workspace)}


@router.delete("/drafts/{draft_id}")
async def delete_draft(
    request: Request,
    draft_id: str,
    user_id: UserId,
    confirm: Annotated[bool, Query()] = False,
):
    workspace = await _workspace(request, user_id)
    if not confirm:
        return {"deleted": False, "confirm": DELETE_DRAFT_PROMPT}
    deleted = await workspace.delete_draft(draft_id, confirmed=True)
    return {"deleted": deleted, "nodes": _render(workspace)}


@router.post("/rename/cancel")
async def cancel_rename(request: Request, user_id: UserId):
    workspace = await _workspace(request, user_id)
    workspace.cancel_rename()
    return {"nodes": _render(workspace)}
