"""
Health Routes
=============

FastAPI routes for health check endpoints.
"""

from fastapi import APIRouter, Depends

from pagepdf import __version__
from pagepdf.config.logging import get_logger
from pagepdf.core.coordinator import RenderCoordinator, get_render_coordinator
from pagepdf.core.storage.index import IndexCorruptionError
from pagepdf.models.schemas import HealthStatus

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthStatus)
async def health_check(
    coordinator: RenderCoordinator = Depends(get_render_coordinator),
) -> HealthStatus:
    """
    Get application health status.

    The browser starts on the first render, so a browser that has not been
    launched yet is still healthy. A corrupt cache index is reported as
    degraded until the cache is cleared.
    """
    engine_status = coordinator.engine.status()

    cached_entries = None
    index_error = None
    try:
        cached_entries = len(await coordinator.index.read())
    except IndexCorruptionError as e:
        index_error = str(e)

    degraded = index_error is not None or (
        engine_status["started"] and not engine_status["connected"]
    )

    health = HealthStatus(
        status="degraded" if degraded else "healthy",
        version=__version__,
        browser_started=engine_status["started"],
        browser_connected=engine_status["connected"],
        cached_entries=cached_entries,
        artifact_count=len(await coordinator.store.list_artifacts()),
        renders_in_flight=len(coordinator.in_flight()),
        index_error=index_error,
    )

    logger.info("Health check completed", status=health.status, cached_entries=cached_entries)
    return health
