"""Tests for the draft routes."""

import asyncio

import pytest
from fastapi import HTTPException
from fastapi.responses import RedirectResponse

from folio.errors import NotFoundError, ValidationError
from folio.models.content import paragraph_document
from folio.models.draft import Draft, DraftStatus
from folio.routes.drafts import (
    DraftCreate,
    DraftEdit,
    PublishRequest,
    close_editor,
    create_snapshot,
    edit_draft,
    list_drafts,
    new_draft,
    open_editor,
    publish,
    publish_form,
    save_draft,
    snapshot_history,
    unpublish,
)

USER = "u-1"


@pytest.fixture
def draft(drafts_repo) -> Draft:
    return drafts_repo.add(
        Draft(slug="essay-abc123", title="Essay", author_id=USER, content=paragraph_document("Body"))
    )


def _publish_body(**overrides) -> PublishRequest:
    values = {"title": "Essay", "summary": "S", "tags": ["t"], "thumbnail_url": "https://img/a.png"}
    values.update(overrides)
    return PublishRequest(**values)


class TestCreateAndList:
    """Test draft creation and listing."""

    async def test_new_draft_refreshes_lists(self, route_request, drafts_repo, recorded_events) -> None:
        """Verify a created draft is stored and lists are told to refresh."""
        body = await new_draft(route_request, USER, DraftCreate(folder_id="f-1"))

        assert body["folder_id"] == "f-1"
        assert body["id"] in drafts_repo.items
        assert recorded_events == [("refresh-drafts", {})]

    async def test_list_drafts(self, route_request, draft) -> None:
        """Verify listing returns cards for the author."""
        cards = await list_drafts(route_request, USER)
        assert [card["slug"] for card in cards] == [draft.slug]
        assert cards[0]["excerpt"] == "Body"


class TestEditor:
    """Test opening, editing and saving."""

    async def test_open_mounts_session(self, route_request, draft) -> None:
        """Verify opening a draft mounts its editor session."""
        body = await open_editor(route_request, draft.slug, USER)

        assert body["draft"]["id"] == draft.id
        assert body["save_state"] == "idle"
        assert route_request.app.state.views.session(draft.id) is not None

    async def test_open_missing_redirects_to_listing(self, route_request) -> None:
        """Verify a bad slug sends the author back to the listing."""
        response = await open_editor(route_request, "missing", USER)
        assert isinstance(response, RedirectResponse)
        assert response.headers["location"] == "/drafts"

    async def test_open_someone_elses_draft_redirects(self, route_request, draft) -> None:
        """Verify drafts of other authors do not open."""
        response = await open_editor(route_request, draft.slug, "intruder")
        assert isinstance(response, RedirectResponse)

    async def test_edit_then_autosave(self, route_request, draft, drafts_repo) -> None:
        """Verify an edit is persisted after the debounce window."""
        body = await edit_draft(route_request, draft.id, DraftEdit(title="Edited"), USER)
        assert body["pending"] is True

        await asyncio.sleep(0.2)

        assert drafts_repo.items[draft.id].title == "Edited"

    async def test_manual_save(self, route_request, draft, drafts_repo) -> None:
        """Verify a manual save writes immediately."""
        body = await save_draft(route_request, draft.id, USER, DraftEdit(title="Now"))

        assert body["written"] is True
        assert drafts_repo.saves == [(draft.id, "Now")]

    async def test_close_drops_pending(self, route_request, draft, drafts_repo) -> None:
        """Verify unmount discards an unflushed edit."""
        await edit_draft(route_request, draft.id, DraftEdit(title="Lost"), USER)
        await close_editor(route_request, draft.id, USER)
        await asyncio.sleep(0.2)

        assert drafts_repo.saves == []

    async def test_edit_other_authors_draft(self, route_request, draft) -> None:
        """Verify edits are limited to the author."""
        with pytest.raises(NotFoundError):
            await edit_draft(route_request, draft.id, DraftEdit(title="x"), "intruder")


class TestSnapshots:
    """Test snapshot routes."""

    async def test_snapshot_uses_editor_state(self, route_request, draft, snapshots_repo) -> None:
        """Verify a snapshot captures the editor's unsaved title."""
        await edit_draft(route_request, draft.id, DraftEdit(title="Unsaved"), USER)

        body = await create_snapshot(route_request, draft.id, USER)

        assert body["title"] == "Unsaved"
        assert body["actor_id"] == USER
        history = await snapshot_history(route_request, draft.id, USER)
        assert [row["id"] for row in history] == [body["id"]]


class TestPublishRoutes:
    """Test publish and unpublish routes."""

    async def test_prefill(self, route_request, draft) -> None:
        """Verify the form is seeded from title and content."""
        body = await publish_form(route_request, draft.id, USER)
        assert body["title"] == "Essay"
        assert body["summary"] == "Body"

    async def test_publish(self, route_request, draft) -> None:
        """Verify publishing returns the published draft."""
        body = await publish(route_request, draft.id, _publish_body(), USER)
        assert body["status"] == "published"

    async def test_publish_supersedes_pending_editor_edit(
        self, route_request, draft, drafts_repo
    ) -> None:
        """Verify a debounced editor edit does not overwrite the published title."""
        await open_editor(route_request, draft.slug, USER)
        await edit_draft(route_request, draft.id, DraftEdit(title="Working"), USER)

        await publish(route_request, draft.id, _publish_body(title="Published"), USER)
        await asyncio.sleep(0.2)

        session = route_request.app.state.views.session(draft.id)
        assert drafts_repo.saves == []
        assert drafts_repo.items[draft.id].title == "Published"
        assert session.title == "Published"

    async def test_publish_twice_conflicts(self, route_request, draft, drafts_repo) -> None:
        """Verify an already-published draft cannot be published again."""
        drafts_repo.items[draft.id] = draft.model_copy(update={"status": DraftStatus.PUBLISHED})
        with pytest.raises(HTTPException) as exc_info:
            await publish(route_request, draft.id, _publish_body(), USER)
        assert exc_info.value.status_code == 409

    async def test_publish_validation(self, route_request, draft) -> None:
        """Verify missing metadata is reported per field."""
        with pytest.raises(ValidationError) as exc_info:
            await publish(route_request, draft.id, _publish_body(tags=[]), USER)
        assert exc_info.value.field == "tags"

    async def test_unpublish(self, route_request, draft) -> None:
        """Verify unpublish returns the draft to private."""
        await publish(route_request, draft.id, _publish_body(), USER)
        body = await unpublish(route_request, draft.id, USER)
        assert body["status"] == "draft"
        assert body["published_at"] is None
