"""
PDF Routes
==========

Single method-dispatched endpoint of the render cache.

- GET: render ``targetPath`` (plus forwarded query) or serve it from cache
- DELETE: clear every artifact and the index
- anything else: 405
"""

from typing import Optional, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from pagepdf.config.logging import get_logger
from pagepdf.config.settings import Settings
from pagepdf.core.coordinator import (
    InvalidRequestError,
    MethodNotAllowedError,
    RenderCoordinator,
    get_render_coordinator,
)
from pagepdf.core.storage.index import IndexCorruptionError
from pagepdf.models.schemas import ApiResponse

logger = get_logger(__name__)

# Every standard method reaches the handler so the 405 body is the JSON envelope
DISPATCH_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"]


def resolve_base_url(request: Request) -> str:
    """Base address of rendered pages: configured, or the port this request arrived on."""
    settings: Settings = request.app.state.settings
    if settings.render_base_url:
        return settings.render_base_url

    server = request.scope.get("server")
    port = server[1] if server and server[1] else settings.port
    return f"http://localhost:{port}"


def public_base_url(request: Request) -> str:
    """Address clients reached this service at; artifact links are built on it."""
    return str(request.base_url).rstrip("/")


def method_not_allowed() -> JSONResponse:
    return _error(405, "Method Not Allowed")


def _error(status_code: int, message: str, cache: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=ApiResponse.failure(message, cache).to_content()
    )


async def _cache_snapshot(
    request: Request, coordinator: RenderCoordinator
) -> Optional[Dict[str, str]]:
    if not request.app.state.settings.debug:
        return None
    try:
        return await coordinator.index.read()
    except IndexCorruptionError:
        return None


async def pdf_endpoint(
    request: Request, coordinator: RenderCoordinator = Depends(get_render_coordinator)
) -> JSONResponse:
    """Render a page to PDF, serve it from cache, or clear the cache."""
    request_id = getattr(request.state, "request_id", None)

    try:
        data = await coordinator.handle(
            request.method,
            resolve_base_url(request),
            request.query_params.multi_items(),
            public_base_url(request),
        )
    except MethodNotAllowedError as e:
        logger.warning("Method not allowed", method=e.method, request_id=request_id)
        return method_not_allowed()
    except InvalidRequestError as e:
        logger.warning("Invalid render request", error=e.message, request_id=request_id)
        cache = await _cache_snapshot(request, coordinator) if e.attach_cache else None
        return _error(400, e.message, cache)
    except Exception as e:
        logger.error(
            "Render request failed", error=str(e), request_id=request_id, exc_info=True
        )
        return _error(500, str(e) or "Unknown Server Error")

    return JSONResponse(status_code=200, content=ApiResponse.success(data).to_content())


def build_router(api_path: str) -> APIRouter:
    """Router with the endpoint mounted at ``api_path``."""
    router = APIRouter(tags=["Rendering"])
    router.add_api_route(api_path, pdf_endpoint, methods=DISPATCH_METHODS)
    return router
