"""Web entry point — FastAPI app hosting the draft lifecycle core."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import uvicorn
from azure.monitor.opentelemetry import configure_azure_monitor
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from opentelemetry.sdk.resources import Resource
from starlette.middleware.sessions import SessionMiddleware

from folio.config import load_settings
from folio.database.client import CosmosClient
from folio.errors import FolioError, NotFoundError, PersistenceError, ValidationError
from folio.events.bus import NotificationBus
from folio.health import check_emulators
from folio.logging import configure_logging
from folio.routes import drafts, feed, workspace
from folio.routes import status as status_routes
from folio.services.views import ViewRegistry

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from folio.config import Settings

logger = logging.getLogger(__name__)

SERVICE_NAME = "folio"

_STATUS_BY_ERROR: dict[type[FolioError], int] = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    PersistenceError: status.HTTP_502_BAD_GATEWAY,
    NotFoundError: status.HTTP_404_NOT_FOUND,
}


async def init_database(settings: Settings) -> CosmosClient:
    """Connect to Cosmos DB, raising ``ConnectionError`` when unreachable."""
    cosmos = CosmosClient(settings.cosmos)
    try:
        await cosmos.initialize()
    except Exception as exc:  # noqa: BLE001
        await cosmos.close()
        msg = f"Unable to connect to Cosmos DB at {settings.cosmos.endpoint}: {exc}"
        raise ConnectionError(msg) from exc
    logger.info("Cosmos DB connected — database=%s", settings.cosmos.database)
    return cosmos


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Wire settings, store, bus and view registry for the app's lifetime."""
    settings = app.state.settings
    configure_logging(settings.app.log_level)

    if settings.monitor.connection_string:
        configure_azure_monitor(
            connection_string=settings.monitor.connection_string,
            resource=Resource.create({"service.name": SERVICE_NAME}),
        )
        logger.info("Azure Monitor OpenTelemetry configured")

    if settings.app.is_development and not await check_emulators(settings):
        msg = "Local dependencies are not reachable"
        raise RuntimeError(msg)

    cosmos = await init_database(settings)
    bus = NotificationBus()
    app.state.cosmos = cosmos
    app.state.bus = bus
    app.state.views = ViewRegistry(bus, settings.editor)
    app.state.start_time = time.monotonic()
    logger.info("Web app started — env=%s", settings.app.env)

    try:
        yield
    finally:
        await app.state.views.close_all()
        await cosmos.close()
        logger.info("Web app shutdown complete")


async def folio_error_handler(request: Request, exc: FolioError) -> JSONResponse:
    """Render core errors as JSON with a status matching their kind."""
    code = next(
        (code for kind, code in _STATUS_BY_ERROR.items() if isinstance(exc, kind)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    if code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=code, content=exc.to_dict())


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    settings = load_settings()
    app = FastAPI(title="Folio", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(SessionMiddleware, secret_key=settings.app.secret_key)
    app.add_exception_handler(FolioError, folio_error_handler)

    app.include_router(drafts.router)
    app.include_router(workspace.router)
    app.include_router(feed.router)
    app.include_router(status_routes.router)
    return app


def main() -> None:
    """Entry point for the web process."""
    uvicorn.run("folio.app:create_app", factory=True, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
