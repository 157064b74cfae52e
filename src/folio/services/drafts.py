"""Draft creation, lookup and the listing/feed card projections."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from folio.errors import NotFoundError
from folio.models.content import ElementNode, empty_document
from folio.models.draft import DEFAULT_TITLE, Draft, DraftStatus
from folio.services.excerpt import excerpt_or_placeholder, extract_excerpt
from folio.services.publishing import normalize_tags
from folio.services.slugs import unique_slug

if TYPE_CHECKING:
    from folio.database.repositories.drafts import DraftRepository

logger = logging.getLogger(__name__)

LISTING_EXCERPT_LENGTH = 157
FEED_EXCERPT_LENGTH = 200


class Thumbnail(BaseModel):
    src: str
    alt: str


class DraftCard(BaseModel):
    """An author's post as shown in their own listing."""

    id: str
    title: str
    slug: str
    status: DraftStatus
    updated_at: datetime | None = None
    published_at: datetime | None = None
    excerpt: str
    tags: list[str] = Field(default_factory=list)
    thumbnail: Thumbnail | None = None


class PostCard(BaseModel):
    """A published post as shown on the public feed."""

    id: str
    slug: str
    title: str
    excerpt: str
    tags: list[str] = Field(default_factory=list)
    published_at: datetime | None = None
    thumbnail: Thumbnail | None = None


class PublishedPost(BaseModel):
    slug: str
    title: str
    intro: str
    content: ElementNode
    published_at: datetime | None = None


def display_title(title: str | None, default: str = DEFAULT_TITLE) -> str:
    cleaned = (title or "").strip()
    return cleaned or default


async def create_draft(
    author_id: str,
    drafts_repo: DraftRepository,
    *,
    folder_id: str | None = None,
) -> Draft:
    """Create an empty, untitled draft with a randomly suffixed slug."""
    draft = Draft(
        title=DEFAULT_TITLE,
        slug=unique_slug(DEFAULT_TITLE, "untitled"),
        content=empty_document(),
        author_id=author_id,
        folder_id=folder_id,
    )
    await drafts_repo.create(draft)
    logger.info("Draft created — id=%s slug=%s", draft.id, draft.slug)
    return draft


async def open_draft(slug: str, drafts_repo: DraftRepository) -> Draft:
    """Resolve a visible draft by slug or raise ``NotFoundError``."""
    draft = await drafts_repo.get_by_slug(slug)
    if draft is None:
        raise NotFoundError(f"Draft {slug!r} not found")
    return draft


def to_draft_card(draft: Draft) -> DraftCard:
    title = display_title(draft.title)
    thumbnail = None
    if draft.thumbnail_url and draft.thumbnail_url.strip():
        alt = (draft.thumbnail_alt or "").strip() or f"Cover image for {title}"
        thumbnail = Thumbnail(src=draft.thumbnail_url, alt=alt)
    return DraftCard(
        id=draft.id,
        title=title,
        slug=draft.slug,
        status=draft.status,
        updated_at=draft.updated_at or draft.created_at,
        published_at=draft.published_at,
        excerpt=excerpt_or_placeholder(draft.content, draft.excerpt, LISTING_EXCERPT_LENGTH),
        tags=normalize_tags(draft.tags),
        thumbnail=thumbnail,
    )


def to_post_card(draft: Draft) -> PostCard:
    title = draft.title or DEFAULT_TITLE
    thumbnail_url = (draft.thumbnail_url or "").strip()
    thumbnail = None
    if thumbnail_url:
        thumbnail = Thumbnail(src=thumbnail_url, alt=(draft.thumbnail_alt or "").strip() or title)
    return PostCard(
        id=draft.id,
        slug=draft.slug,
        title=title,
        excerpt=extract_excerpt(draft.content, draft.excerpt, FEED_EXCERPT_LENGTH),
        tags=normalize_tags(draft.tags),
        published_at=draft.published_at or draft.updated_at,
        thumbnail=thumbnail,
    )


async def list_draft_cards(
    author_id: str, drafts_repo: DraftRepository, *, limit: int = 100
) -> list[DraftCard]:
    drafts = await drafts_repo.list_for_author(author_id, limit=limit)
    return [to_draft_card(draft) for draft in drafts]


async def list_feed(drafts_repo: DraftRepository, *, limit: int = 100) -> list[PostCard]:
    drafts = await drafts_repo.list_published(limit=limit)
    return [to_post_card(draft) for draft in drafts]


async def get_published_post(slug: str, drafts_repo: DraftRepository) -> PublishedPost:
    """Resolve a live post for readers; drafts and deleted posts read as missing."""
    draft = await drafts_repo.get_by_slug(slug)
    if draft is None or not draft.is_published:
        raise NotFoundError(f"Post {slug!r} not found")
    return PublishedPost(
        slug=draft.slug,
        title=draft.title or DEFAULT_TITLE,
        intro=draft.excerpt or "",
        content=draft.content,
        published_at=draft.published_at,
    )
