"""Status route — store reachability and mounted view counts."""

from __future__ import annotations

import time

from fastapi import APIRouter, Request

from folio.health import check_cosmos

router = APIRouter(tags=["status"])


@router.get("/status")
async def status(request: Request):
    """Report live health probe results and basic runtime info."""
    cosmos = request.app.state.cosmos
    settings = request.app.state.settings
    start_time = request.app.state.start_time
    registry = request.app.state.views

    check = await check_cosmos(cosmos.database)
    return {
        "checks": [check],
        "info": {
            "environment": settings.app.env,
            "uptime_seconds": int(time.monotonic() - start_time),
            "editor_sessions": registry.session_count,
            "workspaces": registry.workspace_count,
        },
    }
