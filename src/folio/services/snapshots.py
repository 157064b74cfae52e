"""Version snapshots — explicit, append-only checkpoints of a draft."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from folio.errors import ValidationError
from folio.models.snapshot import VersionSnapshot

if TYPE_CHECKING:
    from folio.database.repositories.snapshots import SnapshotRepository
    from folio.models.content import ElementNode

logger = logging.getLogger(__name__)


async def record_snapshot(
    draft_id: str | None,
    actor_id: str | None,
    title: str,
    content: ElementNode | None,
    snapshots_repo: SnapshotRepository,
) -> VersionSnapshot:
    """Append one snapshot row. Identical calls create identical, separate rows."""
    if not draft_id:
        raise ValidationError("draft_id", "Open a draft before saving a snapshot.")
    if content is None:
        raise ValidationError("content", "Nothing to snapshot yet: the draft has no content.")
    if not actor_id:
        raise ValidationError("actor_id", "Sign in to save a snapshot.")

    snapshot = VersionSnapshot(post_id=draft_id, actor_id=actor_id, title=title, content=content)
    await snapshots_repo.append(snapshot)
    logger.info("Snapshot recorded — draft=%s snapshot=%s", draft_id, snapshot.id)
    return snapshot


async def list_snapshots(draft_id: str, snapshots_repo: SnapshotRepository) -> list[VersionSnapshot]:
    return await snapshots_repo.list_for_post(draft_id)
