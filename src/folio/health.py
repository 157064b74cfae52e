"""Pre-flight and runtime health checks for the document store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from urllib.parse import urlparse

import httpx
from azure.cosmos.exceptions import CosmosHttpResponseError

if TYPE_CHECKING:
    from azure.cosmos.aio import DatabaseProxy

    from folio.config import Settings

logger = logging.getLogger(__name__)


async def check_emulators(settings: Settings) -> bool:
    """Verify the local Cosmos DB emulator is reachable. Return False if it is down."""
    failures: list[str] = []
    async with httpx.AsyncClient(timeout=3, verify=False) as client:
        cosmos_url = settings.cosmos.endpoint
        if not cosmos_url:
            failures.append("COSMOS_ENDPOINT is not set — add it to .env (see .env.example)")
        elif "localhost" in cosmos_url or "127.0.0.1" in cosmos_url:
            try:
                await client.get(f"{cosmos_url.rstrip('/')}/")
            except httpx.ConnectError:
                parsed = urlparse(cosmos_url)
                failures.append(f"Cosmos DB emulator is not running at {parsed.netloc}")

    if failures:
        for failure in failures:
            logger.error(failure)
        logger.error("Start the emulator with: docker compose up -d")
        return False
    return True


async def check_cosmos(database: DatabaseProxy) -> dict[str, str]:
    """Probe the configured database and report its reachability."""
    try:
        await database.read()
    except CosmosHttpResponseError as exc:
        logger.warning("Cosmos health probe failed: %s", exc)
        return {"name": "cosmos", "status": "unhealthy", "detail": str(exc)}
    except RuntimeError as exc:
        return {"name": "cosmos", "status": "unhealthy", "detail": str(exc)}
    return {"name": "cosmos", "status": "healthy"}
