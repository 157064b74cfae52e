"""Draft routes — create, list, open, autosave, snapshot, publish."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from folio.auth import current_user_id
from folio.errors import NotFoundError
from folio.models.content import ElementNode
from folio.models.draft import Draft, PublishMetadata
from folio.routes import bus, drafts_repo, snapshots_repo, views
from folio.services.drafts import create_draft, list_draft_cards, open_draft
from folio.services.publishing import prefill_publish_metadata, publish_draft, unpublish_draft
from folio.services.snapshots import list_snapshots, record_snapshot

router = APIRouter(prefix="/drafts", tags=["drafts"])

UserId = Annotated[str, Depends(current_user_id)]


class DraftCreate(BaseModel):
    folder_id: str | None = None


class DraftEdit(BaseModel):
    title: str | None = None
    content: ElementNode | None = None


class PublishRequest(PublishMetadata):
    content: ElementNode | None = None


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


async def _owned_draft(request: Request, draft_id: str, user_id: str) -> Draft:
    draft = await drafts_repo(request).get(draft_id, draft_id)
    if draft is None or draft.author_id != user_id:
        raise NotFoundError(f"Draft {draft_id} not found")
    return draft


@router.post("", status_code=status.HTTP_201_CREATED)
async def new_draft(request: Request, user_id: UserId, body: DraftCreate | None = None):
    """Create an empty draft and let the workspace know."""
    draft = await create_draft(
        user_id, drafts_repo(request), folder_id=body.folder_id if body else None
    )
    await bus(request).refresh_drafts()
    return _dump(draft)


@router.get("")
async def list_drafts(request: Request, user_id: UserId):
    """Return the author's listing cards, all statuses."""
    limit = request.app.state.settings.editor.draft_list_limit
    cards = await list_draft_cards(user_id, drafts_repo(request), limit=limit)
    return [_dump(card) for card in cards]


@router.get("/{slug}")
async def open_editor(request: Request, slug: str, user_id: UserId):
    """Resolve a draft by slug and mount its editor session."""
    repo = drafts_repo(request)
    try:
        draft = await open_draft(slug, repo)
    except NotFoundError:
        return RedirectResponse("/drafts", status_code=status.HTTP_303_SEE_OTHER)
    if draft.author_id != user_id:
        return RedirectResponse("/drafts", status_code=status.HTTP_303_SEE_OTHER)

    session = views(request).open_session(draft, repo)
    return {"draft": _dump(draft), "save_state": session.state}


@router.post("/{draft_id}/edits", status_code=status.HTTP_202_ACCEPTED)
async def edit_draft(request: Request, draft_id: str, body: DraftEdit, user_id: UserId):
    """Record an editor change; it is persisted after the debounce window."""
    await _owned_draft(request, draft_id, user_id)
    session = await views(request).resolve_session(draft_id, drafts_repo(request))
    session.edit(title=body.title, content=body.content)
    return {"save_state": session.state, "pending": session.has_pending_edit}


@router.post("/{draft_id}/save")
async def save_draft(request: Request, draft_id: str, user_id: UserId, body: DraftEdit | None = None):
    """Manual save: write immediately, collapsing any pending debounce."""
    await _owned_draft(request, draft_id, user_id)
    session = await views(request).resolve_session(draft_id, drafts_repo(request))
    if body is not None and (body.title is not None or body.content is not None):
        session.edit(title=body.title, content=body.content)
    written = await session.save_now()
    return {"save_state": session.state, "written": written}


@router.delete("/{draft_id}/session", status_code=status.HTTP_204_NO_CONTENT)
async def close_editor(request: Request, draft_id: str, user_id: UserId) -> None:
    """Unmount the editor; a pending debounce is dropped, not flushed."""
    await views(request).close_session(draft_id)


@router.post("/{draft_id}/snapshots", status_code=status.HTTP_201_CREATED)
async def create_snapshot(request: Request, draft_id: str, user_id: UserId):
    """Checkpoint the editor's current title and content."""
    draft = await _owned_draft(request, draft_id, user_id)
    session = views(request).session(draft_id)
    title = session.title if session else draft.title
    content = session.content if session else draft.content
    snapshot = await record_snapshot(draft_id, user_id, title, content, snapshots_repo(request))
    return _dump(snapshot)


@router.get("/{draft_id}/snapshots")
async def snapshot_history(request: Request, draft_id: str, user_id: UserId):
    await _owned_draft(request, draft_id, user_id)
    snapshots = await list_snapshots(draft_id, snapshots_repo(request))
    return [_dump(snapshot) for snapshot in snapshots]


@router.get("/{draft_id}/publish")
async def publish_form(request: Request, draft_id: str, user_id: UserId):
    """Starting values for the publish form, seeded from the editor's content."""
    draft = await _owned_draft(request, draft_id, user_id)
    session = views(request).session(draft_id)
    if session is not None:
        draft = draft.model_copy(update={"title": session.title})
    max_len = request.app.state.settings.editor.excerpt_max_length
    metadata = prefill_publish_metadata(
        draft, content=session.content if session else None, max_len=max_len
    )
    return _dump(metadata)


@router.post("/{draft_id}/publish")
async def publish(request: Request, draft_id: str, body: PublishRequest, user_id: UserId):
    """Publish a draft with the collected metadata."""
    draft = await _owned_draft(request, draft_id, user_id)
    if draft.is_published:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Draft is already published")

    registry = views(request)
    metadata = PublishMetadata.model_validate(body.model_dump(exclude={"content"}))
    published = await publish_draft(
        draft_id,
        metadata,
        drafts_repo(request),
        bus(request),
        content=body.content,
        session=registry.session(draft_id),
        guard=registry.guard,
    )
    return _dump(published)


@router.post("/{draft_id}/unpublish")
async def unpublish(request: Request, draft_id: str, user_id: UserId):
    """Return a published draft to private."""
    await _owned_draft(request, draft_id, user_id)
    draft = await unpublish_draft(
        draft_id, drafts_repo(request), bus(request), guard=views(request).guard
    )
    return _dump(draft) if draft else None
