"""FastAPI trigger endpoint for the sync-and-rebuild pipeline."""

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from estate_refresh import __version__
from estate_refresh.config import Settings, get_settings
from estate_refresh.observability import initialize_logfire
from estate_refresh.pipeline.models import TriggerRequest
from estate_refresh.pipeline.orchestrator import SyncRebuildOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


def _orchestrator(request: Request) -> SyncRebuildOrchestrator:
    return request.app.state.orchestrator


@router.api_route("/api/cron/sync", methods=["GET", "POST"], tags=["Cron"])
async def cron_sync(request: Request) -> JSONResponse:
    """Sync listings and rebuild the site. Requires the cron marker header."""
    trigger = TriggerRequest(headers=dict(request.headers), source="http")
    outcome = await _orchestrator(request).run(trigger)

    status_code, body = outcome.to_response()
    return JSONResponse(status_code=status_code, content=body)


@router.get("/health", tags=["Health"])
async def health_check(request: Request) -> dict[str, str]:
    """Health check endpoint for load balancers and monitoring."""
    return {
        "status": "healthy",
        "service": "estate-refresh",
        "version": __version__,
        "pipeline_state": _orchestrator(request).state.value,
    }


def create_app(
    orchestrator: SyncRebuildOrchestrator | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the API app. Without an orchestrator, one is created from settings at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.orchestrator is None:
            resolved = settings or get_settings()
            initialize_logfire(resolved)
            app.state.orchestrator = SyncRebuildOrchestrator(resolved)
        logger.info("Refresh API startup complete")
        yield
        logger.info("Shutting down refresh API")

    app = FastAPI(
        title="Estate Index Refresh API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator
    app.include_router(router)
    return app


app = create_app()
