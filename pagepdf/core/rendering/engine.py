"""
Render Engine
=============

Playwright-based PDF export of live pages.
Owns one long-lived headless Chromium that is launched on first use and shared
by every request; each render runs in its own page on that browser.
"""

from typing import Optional, Dict, Any, Union
from pathlib import Path
import asyncio

from playwright.async_api import async_playwright, Browser, Playwright

from pagepdf.config.logging import get_logger
from pagepdf.config.settings import get_settings, Settings

logger = get_logger(__name__)


class RenderError(Exception):
    """Exception raised when a page cannot be rendered to PDF."""

    pass


class RenderEngine:
    """Shared headless browser used for every render."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._launch_lock = asyncio.Lock()
        self.logger: Any = logger.bind(component="render_engine")

    @property
    def is_running(self) -> bool:
        """True while a launched browser is still connected."""
        return self._browser is not None and self._browser.is_connected()

    async def acquire(self) -> Browser:
        """
        Return the shared browser, launching it if needed.

        Concurrent first callers wait on the launch lock, so at most one
        browser process exists at a time. A browser that has disconnected is
        replaced; a live one is never restarted.
        """
        if self.is_running:
            return self._browser  # type: ignore[return-value]

        async with self._launch_lock:
            if not self.is_running:
                await self._launch()
            return self._browser  # type: ignore[return-value]

    async def _launch(self) -> None:
        if self._browser is not None:
            self.logger.warning("Browser disconnected, launching a new one")
            self._browser = None

        try:
            if self._playwright is None:
                self._playwright = await async_playwright().start()

            self._browser = await self._playwright.chromium.launch(
                headless=self.settings.playwright_headless,
                args=self.settings.browser_args,
            )
        except Exception as e:
            self.logger.error("Failed to launch browser", error=str(e))
            raise RenderError(f"Browser launch failed: {e}") from e

        self.logger.info("Browser launched", headless=self.settings.playwright_headless)

    async def render(self, target_url: str, output_path: Union[str, Path]) -> None:
        """
        Render a page to a PDF file.

        Args:
            target_url: Fully qualified address of the page
            output_path: File the PDF is written to

        Raises:
            RenderError: If navigation or export fails. The browser stays up.
        """
        browser = await self.acquire()

        try:
            page = await browser.new_page()
        except Exception as e:
            self.logger.error("Failed to open page", url=target_url, error=str(e))
            raise RenderError(f"Failed to open page: {e}") from e

        try:
            page.set_default_timeout(self.settings.playwright_timeout)

            await page.goto(target_url, wait_until="networkidle")
            await page.pdf(
                path=str(output_path),
                format=self.settings.pdf_format,
                print_background=self.settings.print_background,
            )

            self.logger.info("Page rendered", url=target_url, output=str(output_path))

        except Exception as e:
            self.logger.error("Render failed", url=target_url, error=str(e))
            raise RenderError(str(e)) from e

        finally:
            await page.close()

    async def close(self) -> None:
        """Close the browser and stop the Playwright driver."""
        async with self._launch_lock:
            if self._browser is not None:
                await self._browser.close()
                self._browser = None

            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None

        self.logger.info("Render engine closed")

    def status(self) -> Dict[str, Any]:
        """Health snapshot of the engine."""
        return {
            "started": self._browser is not None,
            "connected": self.is_running,
        }


# Global engine instance
_render_engine: Optional[RenderEngine] = None


def get_render_engine() -> RenderEngine:
    """Get the process-wide render engine. The browser itself starts lazily."""
    global _render_engine
    if _render_engine is None:
        _render_engine = RenderEngine()
    return _render_engine


async def close_render_engine() -> None:
    """Close the process-wide render engine if one was created."""
    global _render_engine
    if _render_engine is not None:
        await _render_engine.close()
        _render_engine = None
