"""
Browser Session
===============
Owns the single long-lived Playwright browser shared by every request, and
hands out short-lived page handles bound to it.

Architecture:
- One browser per process, launched lazily by ``ensure_session()``
- One BrowserContext + Page per logical operation (``open_page()``)
- Route-based resource blocking declared per handle via ``ResourceFilter``
- ``shutdown()`` closes the browser and stops the driver at most once

Contexts are never shared between concurrent operations; the browser itself
supports many open contexts, so only the launch is serialized.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, FrozenSet, Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page
from playwright.async_api import TimeoutError as PlaywrightTimeout

from .errors import NavigationTimeout, SessionCreationFailure
from .run_config import ScraperRunConfig

logger = logging.getLogger(__name__)

# Readiness states accepted by ``PageHandle.navigate``
READY_NETWORK_IDLE = "networkidle"
READY_DOM_PARSED = "domcontentloaded"


# ---------------------------------------------------------------------------
# Request filtering
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ResourceFilter:
    """Declarative request filter: abort every request of these resource types."""
    blocked_types: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def active(self) -> bool:
        return bool(self.blocked_types)

    def should_abort(self, resource_type: str) -> bool:
        return resource_type in self.blocked_types


NO_FILTER = ResourceFilter()
LEAN_FILTER = ResourceFilter(frozenset(["image", "stylesheet", "font", "media"]))


def _make_route_handler(resource_filter: ResourceFilter):
    async def _route_handler(route) -> None:
        """Block non-essential resources for speed."""
        if resource_filter.should_abort(route.request.resource_type):
            await route.abort()
            return
        await route.continue_()
    return _route_handler


# ---------------------------------------------------------------------------
# Page handle
# ---------------------------------------------------------------------------

class PageHandle:
    """
    One browsing context + page for a single logical operation.

    Obtain through ``BrowserSession.open_page()`` so the context is closed on
    every exit path.
    """

    def __init__(self, context: BrowserContext, page: Page):
        self.context = context
        self.page = page
        self._closed = False

    @classmethod
    async def open(
        cls,
        browser: Browser,
        config: ScraperRunConfig,
        resource_filter: ResourceFilter = NO_FILTER,
    ) -> "PageHandle":
        context = await browser.new_context(
            user_agent=config.user_agent,
            viewport={
                'width': config.viewport_width,
                'height': config.viewport_height,
            },
            locale=config.locale,
        )
        try:
            if resource_filter.active:
                await context.route("**/*", _make_route_handler(resource_filter))
            page = await context.new_page()
        except BaseException:
            await context.close()
            raise
        return cls(context, page)

    @property
    def closed(self) -> bool:
        return self._closed

    async def navigate(
        self,
        url: str,
        readiness: str = READY_NETWORK_IDLE,
        timeout_ms: Optional[int] = None,
    ):
        """Load ``url`` and wait for ``readiness``; a timeout raises ``NavigationTimeout``."""
        try:
            return await self.page.goto(url, wait_until=readiness, timeout=timeout_ms)
        except PlaywrightTimeout as e:
            raise NavigationTimeout(
                f"{url} did not reach '{readiness}' within {timeout_ms} ms"
            ) from e

    async def content(self) -> str:
        return await self.page.content()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self.context.close()
        except Exception as e:
            logger.debug(f"[SESSION] Context close failed: {e}")


# ---------------------------------------------------------------------------
# Session manager
# ---------------------------------------------------------------------------

class BrowserSession:
    """
    Process-scoped owner of the shared browser.

    Invariant: at most one live browser; reused until ``shutdown()``.
    """

    def __init__(
        self,
        config: Optional[ScraperRunConfig] = None,
        playwright_factory: Callable = async_playwright,
    ):
        self.config = config or ScraperRunConfig()
        self._playwright_factory = playwright_factory
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()
        self.launch_count = 0

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def ensure_session(self) -> Browser:
        """Return the shared browser, launching it on first use."""
        async with self._lock:
            if self._browser is not None:
                if self._browser.is_connected():
                    return self._browser
                logger.warning("[SESSION] Browser disconnected, relaunching")
                await self._release()

            try:
                self._playwright = await self._playwright_factory().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=self.config.headless,
                    args=list(self.config.launch_args),
                )
            except Exception as e:
                logger.error(f"[SESSION] Browser launch failed: {e}")
                await self._release()
                raise SessionCreationFailure(f"Browser launch failed: {e}") from e

            self.launch_count += 1
            logger.info(
                f"[SESSION] Browser launched (headless={self.config.headless}, "
                f"args={' '.join(self.config.launch_args)})"
            )
            return self._browser

    @asynccontextmanager
    async def open_page(self, resource_filter: ResourceFilter = NO_FILTER) -> AsyncIterator[PageHandle]:
        """Scoped page handle: the context is closed however the block exits."""
        browser = await self.ensure_session()
        handle = await PageHandle.open(browser, self.config, resource_filter)
        try:
            yield handle
        finally:
            await handle.close()

    async def shutdown(self) -> None:
        """Close the browser if one is running. Safe to call repeatedly."""
        async with self._lock:
            if self._browser is None and self._playwright is None:
                return
            await self._release()
            logger.info("[SESSION] Browser shut down")

    async def _release(self) -> None:
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None
        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                logger.warning(f"[SESSION] Browser close failed: {e}")
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as e:
                logger.warning(f"[SESSION] Playwright stop failed: {e}")
