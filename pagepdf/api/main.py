"""
FastAPI Application
==================

Main FastAPI application: the render endpoint, the static mount that serves
stored artifacts, and health/info endpoints.
"""

from contextlib import asynccontextmanager
import uuid
from typing import AsyncGenerator, Any, Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
import uvicorn
from starlette.exceptions import HTTPException as StarletteHTTPException

from pagepdf import __version__
from pagepdf.config.settings import get_settings, Settings
from pagepdf.config.logging import get_logger
from pagepdf.core.rendering.engine import close_render_engine
from pagepdf.core.storage.artifacts import ArtifactStore
from pagepdf.models.schemas import ApiResponse
from pagepdf.api.routes.health import router as health_router
from pagepdf.api.routes.pdf import build_router, method_not_allowed

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("Starting FastAPI application")

    # The static mount needs the directory; the browser itself starts on first render
    await ArtifactStore(app.state.settings.artifact_dir).ensure_directory()

    try:
        yield
    finally:
        logger.info("Shutting down FastAPI application")

        try:
            await close_render_engine()
            logger.info("Render engine closed")
        except Exception as e:
            logger.error("Error closing render engine", error=str(e))


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory function for creating FastAPI app instance.

    Args:
        settings: Configuration for this app; the process-wide settings by default

    Returns:
        FastAPI application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Render pages to PDF on demand and cache the artifacts",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_hosts,
        allow_credentials=True,
        allow_methods=["GET", "DELETE"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next) -> JSONResponse:  # type: ignore
        """Add request ID to all requests."""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)  # type: ignore
        response.headers["X-Request-ID"] = request_id  # type: ignore

        return response  # type: ignore

    @app.exception_handler(StarletteHTTPException)
    async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException) -> Any:
        """Non-standard methods on the render endpoint get the JSON envelope too."""
        if exc.status_code == 405 and request.url.path == settings.api_path:
            return method_not_allowed()
        return await http_exception_handler(request, exc)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """General exception handler for unexpected errors."""
        logger.error(
            "Unhandled exception",
            exception=str(exc),
            request_id=getattr(request.state, "request_id", None),
            exc_info=True,
        )
        message = str(exc) if settings.debug else "Internal server error"
        return JSONResponse(status_code=500, content=ApiResponse.failure(message).to_content())

    @app.get("/", tags=["General"])
    async def root() -> dict[str, Any]:
        """Root endpoint with basic API information."""
        return {
            "name": settings.app_name,
            "version": __version__,
            "health_check": "/health",
            "endpoints": {
                "render": f"GET {settings.api_path}?targetPath=/path",
                "clear_cache": f"DELETE {settings.api_path}",
                "artifacts": f"GET {settings.public_prefix}/{{pdfFileName}}",
            },
        }

    app.include_router(health_router)
    app.include_router(build_router(settings.api_path))

    # Artifacts are served read-only; the lifespan creates the directory
    app.mount(
        settings.public_prefix,
        StaticFiles(directory=settings.artifact_dir, check_dir=False),
        name="artifacts",
    )

    return app


app = create_app()


def run_development_server() -> None:
    """Run development server with auto-reload."""
    settings = get_settings()
    uvicorn.run(
        "pagepdf.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    run_development_server()
