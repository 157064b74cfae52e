"""Public routes — the published feed and single posts. No sign-in required."""

from __future__ import annotations

from fastapi import APIRouter, Request

from folio.routes import drafts_repo
from folio.services.drafts import get_published_post, list_feed

router = APIRouter(tags=["feed"])


@router.get("/feed")
async def feed(request: Request):
    """Return published posts, newest first."""
    limit = request.app.state.settings.editor.draft_list_limit
    cards = await list_feed(drafts_repo(request), limit=limit)
    return [card.model_dump(mode="json") for card in cards]


@router.get("/posts/{slug}")
async def post(request: Request, slug: str):
    published = await get_published_post(slug, drafts_repo(request))
    return published.model_dump(mode="json", by_alias=True)
