"""Publish state machine — moves a draft between ``draft`` and ``published``.

``publish_draft`` does not reject a draft that is already published; callers
disable the publish action while a draft is live.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from folio.errors import NotFoundError, ValidationError
from folio.models.base import utcnow
from folio.models.draft import DraftStatus, PublishMetadata
from folio.services.autosave import DraftWriteGuard
from folio.services.excerpt import DEFAULT_MAX_LENGTH, extract_excerpt

if TYPE_CHECKING:
    from collections.abc import Iterable

    from folio.database.repositories.drafts import DraftRepository
    from folio.events.bus import NotificationBus
    from folio.models.content import ElementNode
    from folio.models.draft import Draft
    from folio.services.autosave import AutosaveCoordinator

logger = logging.getLogger(__name__)


def normalize_tags(tags: Iterable[str] | str | None) -> list[str]:
    """Trim tags, drop blanks and duplicates, keep first-seen order.

    A single string is treated as a comma-separated list.
    """
    if tags is None:
        return []
    raw = tags.split(",") if isinstance(tags, str) else tags
    seen: dict[str, None] = {}
    for tag in raw:
        if not isinstance(tag, str):
            continue
        cleaned = tag.strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


def validate_publish_metadata(metadata: PublishMetadata) -> PublishMetadata:
    """Return trimmed metadata or raise a field-specific ``ValidationError``."""
    title = metadata.title.strip()
    if not title:
        raise ValidationError("title", "Add a title before publishing.")
    summary = metadata.summary.strip()
    if not summary:
        raise ValidationError("summary", "Add a summary before publishing.")
    tags = normalize_tags(metadata.tags)
    if not tags:
        raise ValidationError("tags", "Choose at least one tag before publishing.")
    thumbnail_url = metadata.thumbnail_url.strip()
    if not thumbnail_url:
        raise ValidationError("thumbnail_url", "Choose a thumbnail before publishing.")
    return PublishMetadata(
        title=title,
        summary=summary,
        tags=tags,
        thumbnail_url=thumbnail_url,
        thumbnail_alt=metadata.thumbnail_alt.strip(),
    )


def prefill_publish_metadata(
    draft: Draft,
    *,
    content: ElementNode | None = None,
    max_len: int = DEFAULT_MAX_LENGTH,
) -> PublishMetadata:
    """Starting values for the publish form; nothing is persisted."""
    source = content if content is not None else draft.content
    return PublishMetadata(
        title=draft.title.strip(),
        summary=extract_excerpt(source, draft.excerpt, max_len),
        tags=list(draft.tags),
        thumbnail_url=draft.thumbnail_url or "",
        thumbnail_alt=draft.thumbnail_alt or "",
    )


async def publish_draft(
    draft_id: str,
    metadata: PublishMetadata,
    drafts_repo: DraftRepository,
    bus: NotificationBus,
    *,
    content: ElementNode | None = None,
    session: AutosaveCoordinator | None = None,
    guard: DraftWriteGuard | None = None,
) -> Draft:
    """Validate metadata and mark the draft published.

    Validation happens before any read or write, so a rejected publish leaves
    the stored draft untouched. The write holds the draft's write guard. An
    open editor ``session`` drops its pending autosave, supplies the content
    when none is given, and adopts the published title afterwards.
    """
    checked = validate_publish_metadata(metadata)
    revision = 0
    if session is not None:
        session.cancel_pending()
        revision = session.revision
        guard = guard or session.guard
        if content is None:
            content = session.content
    guard = guard or DraftWriteGuard()

    async with guard.hold(draft_id):
        draft = await drafts_repo.get(draft_id, draft_id)
        if draft is None:
            raise NotFoundError(f"Draft {draft_id} not found")

        fields = {
            "status": DraftStatus.PUBLISHED,
            "published_at": utcnow(),
            "title": checked.title,
            "excerpt": checked.summary,
            "tags": checked.tags,
            "thumbnail_url": checked.thumbnail_url,
            "thumbnail_alt": checked.thumbnail_alt or None,
            "content": content if content is not None else draft.content,
        }
        published = await drafts_repo.patch(draft_id, draft_id, fields)
    if session is not None:
        session.adopt_persisted(published, revision)
    logger.info("Draft published — id=%s slug=%s", draft_id, published.slug)

    await bus.draft_updated(draft_id, title=published.title, slug=published.slug)
    await bus.refresh_drafts()
    return published


async def unpublish_draft(
    draft_id: str,
    drafts_repo: DraftRepository,
    bus: NotificationBus,
    *,
    guard: DraftWriteGuard | None = None,
) -> Draft | None:
    """Return a draft to private. Unknown ids and already-private drafts are no-ops."""
    async with (guard or DraftWriteGuard()).hold(draft_id):
        draft = await drafts_repo.get(draft_id, draft_id)
        if draft is None:
            logger.info("Unpublish skipped, draft=%s does not resolve", draft_id)
            return None
        if draft.status == DraftStatus.DRAFT and draft.published_at is None:
            return draft

        unpublished = await drafts_repo.patch(
            draft_id, draft_id, {"status": DraftStatus.DRAFT, "published_at": None}
        )
    logger.info("Draft unpublished — id=%s", draft_id)
    await bus.refresh_drafts()
    return unpublished
