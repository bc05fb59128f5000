"""
Render Coordinator
==================

Request orchestration for the render cache:

    validate -> look up -> (hit) respond
                        -> (miss) ensure directory -> render -> record -> respond

The coordinator owns no state on disk. It drives the render engine, the
artifact store and the cache index, and keeps an in-memory table of targets
currently being rendered so that identical concurrent requests share one
render.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator, Dict, List, Optional, Sequence, Tuple, Union
from urllib.parse import urlencode
import asyncio
import time
import uuid

from pydantic import BaseModel

from pagepdf.config.logging import get_logger
from pagepdf.config.settings import get_settings, Settings
from pagepdf.core.rendering.engine import RenderEngine, get_render_engine
from pagepdf.core.storage.artifacts import ArtifactStore
from pagepdf.core.storage.index import CacheIndex
from pagepdf.models.schemas import ClearData, RenderData

logger = get_logger(__name__)

RENDER_METHOD = "GET"
CLEAR_METHOD = "DELETE"
ARTIFACT_SUFFIX = ".pdf"


class InvalidRequestError(Exception):
    """Raised when the routing parameter is missing or malformed."""

    def __init__(self, message: str, attach_cache: bool = False):
        super().__init__(message)
        self.message = message
        self.attach_cache = attach_cache


class MethodNotAllowedError(Exception):
    """Raised for methods other than render and clear."""

    def __init__(self, method: str):
        super().__init__("Method Not Allowed")
        self.method = method


@dataclass
class RenderTarget:
    """Page a request points at."""

    base_url: str
    path: str
    params: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def url(self) -> str:
        """Canonical address, used as the cache key."""
        query = urlencode(self.params)
        return f"{self.base_url}{self.path}{'?' + query if query else ''}"


@dataclass
class _InFlight:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    waiters: int = 0


class RenderCoordinator:
    """Handles render and clear requests against the shared cache."""

    def __init__(
        self,
        engine: Optional[RenderEngine] = None,
        store: Optional[ArtifactStore] = None,
        index: Optional[CacheIndex] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.engine = engine or get_render_engine()
        self.store = store or ArtifactStore(self.settings.artifact_dir)
        self.index = index or CacheIndex(self.settings.index_file)
        self._inflight: Dict[str, _InFlight] = {}
        # Bumped by clear(); renders that straddle a clear are not recorded
        self._generation = 0
        self.logger: Any = logger.bind(component="render_coordinator")

    def build_target(self, base_url: str, params: Sequence[Tuple[str, str]]) -> RenderTarget:
        """
        Validate request parameters and build the render target.

        Args:
            base_url: Address the target path is resolved against
            params: Query parameters in arrival order

        Raises:
            InvalidRequestError: If the routing parameter is missing or relative
        """
        name = self.settings.target_param
        target_path = next((value for key, value in params if key == name), None)

        if not target_path:
            raise InvalidRequestError(f"{name} is required", attach_cache=True)
        if not target_path.startswith("/"):
            raise InvalidRequestError("Target path should start with /")

        forwarded = [(key, value) for key, value in params if key != name]
        if self.settings.sort_query_params:
            forwarded.sort(key=lambda item: item[0])

        return RenderTarget(base_url=base_url.rstrip("/"), path=target_path, params=forwarded)

    async def handle(
        self,
        method: str,
        base_url: str,
        params: Sequence[Tuple[str, str]],
        public_base_url: Optional[str] = None,
    ) -> BaseModel:
        """Dispatch a request by HTTP method."""
        method = method.upper()
        if method == RENDER_METHOD:
            return await self.fetch(base_url, params, public_base_url)
        if method == CLEAR_METHOD:
            return await self.clear()
        raise MethodNotAllowedError(method)

    async def fetch(
        self,
        base_url: str,
        params: Sequence[Tuple[str, str]],
        public_base_url: Optional[str] = None,
    ) -> RenderData:
        """
        Return the artifact for a target, rendering it on a cache miss.

        Args:
            base_url: Address the target page is rendered from
            params: Query parameters in arrival order
            public_base_url: Address this service is reached at, used for the
                artifact link. Defaults to ``base_url``.
        """
        start_time = time.perf_counter()
        target = self.build_target(base_url, params)
        key = target.url

        filename = await self._cached_filename(key)
        cache_hit = filename is not None

        if filename is None:
            async with self._target_lock(key):
                # Another request may have rendered this target while we waited
                filename = await self._cached_filename(key)
                cache_hit = filename is not None
                if filename is None:
                    filename = await self._render_and_record(key)

        time_taken = int((time.perf_counter() - start_time) * 1000)

        self.logger.info(
            "Render request served",
            url=key,
            pdf_file_name=filename,
            cache_hit=cache_hit,
            time_taken_ms=time_taken,
        )

        link_base = (public_base_url or target.base_url).rstrip("/")
        return RenderData(
            url=key,
            psd_url=f"{link_base}{self.settings.public_prefix}/{filename}",
            pdf_file_name=filename,
            time_taken=time_taken,
            cache_hit=cache_hit,
        )

    async def _cached_filename(self, key: str) -> Optional[str]:
        """Recorded artifact for ``key``; an entry whose file is gone counts as a miss."""
        filename = await self.index.lookup(key)
        if filename is not None and not await self.store.exists(filename):
            self.logger.warning(
                "Cached artifact missing, rendering again", url=key, pdf_file_name=filename
            )
            return None
        return filename

    async def _render_and_record(self, key: str) -> str:
        await self.store.ensure_directory()

        filename = f"{uuid.uuid4().hex}{ARTIFACT_SUFFIX}"
        output_path = self.store.path_for(filename)
        generation = self._generation

        self.logger.info("Cache miss, rendering", url=key, pdf_file_name=filename)
        await self.engine.render(key, output_path)

        if generation != self._generation:
            # The cache was cleared mid-render; the artifact may already be purged
            self.logger.warning("Cache cleared during render, entry not recorded", url=key)
            return filename

        # Only recorded once the artifact is fully written
        await self.index.record(key, filename)
        return filename

    async def clear(self) -> ClearData:
        """Delete every artifact and reset the index."""
        self._generation += 1
        removed = await self.store.purge()
        await self.index.clear()

        self.logger.info("Cache cleared", artifacts_removed=removed)
        return ClearData()

    @asynccontextmanager
    async def _target_lock(self, key: str) -> AsyncGenerator[None, None]:
        """Hold the per-target lock; the table entry goes away with its last waiter."""
        entry = self._inflight.setdefault(key, _InFlight())
        entry.waiters += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.waiters -= 1
            if entry.waiters == 0:
                del self._inflight[key]

    def in_flight(self) -> List[str]:
        """Targets with a render currently running or queued."""
        return list(self._inflight)


# Global coordinator instance
_render_coordinator: Optional[RenderCoordinator] = None


def get_render_coordinator() -> RenderCoordinator:
    """Get the process-wide render coordinator."""
    global _render_coordinator
    if _render_coordinator is None:
        _render_coordinator = RenderCoordinator()
    return _render_coordinator


def reset_render_coordinator(coordinator: Union[RenderCoordinator, None] = None) -> None:
    """Replace (or drop) the process-wide coordinator."""
    global _render_coordinator
    _render_coordinator = coordinator
