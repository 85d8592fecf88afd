"""
Single reusable headless browser session for the scraper service.

The session owns one Playwright driver, browser, context and page. Callers go
through `run`, which holds a lock so only one navigation or extraction uses the
page at a time.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright_stealth import Stealth

from logging_utils import log_event
from settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

LAUNCH_ARGS = ["--no-sandbox", "--start-maximized"]


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CLOSING = "closing"
    CLOSED = "closed"


class SessionClosedError(RuntimeError):
    pass


class BrowserSession:
    def __init__(self, settings: Settings):
        self.settings = settings
        self.state = SessionState.UNINITIALIZED
        self._lock = asyncio.Lock()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def acquire(self) -> Page:
        """
        Return a usable page, launching a fresh browser when the current one
        fails its liveness probe. Launch errors propagate to the caller.
        """
        if self.state in (SessionState.CLOSING, SessionState.CLOSED):
            raise SessionClosedError(f"Browser session is {self.state.value}")

        if self._page is not None:
            if await self._is_usable():
                log_event(logger, logging.DEBUG, "session_reused")
                return self._page
            log_event(logger, logging.WARNING, "session_unusable", action="relaunch")
            await self._teardown()
            self.state = SessionState.UNINITIALIZED

        return await self._launch()

    async def run(self, operation: Callable[[Page], Awaitable[T]]) -> T:
        async with self._lock:
            page = await self.acquire()
            return await operation(page)

    async def close(self) -> None:
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSING
        async with self._lock:
            await self._teardown()
            self.state = SessionState.CLOSED
        log_event(logger, logging.INFO, "session_closed")

    async def _is_usable(self) -> bool:
        page = self._page
        if page is None or page.is_closed():
            return False
        if self._browser is None or not self._browser.is_connected():
            return False
        try:
            await page.evaluate("1")
        except Exception as exc:
            log_event(logger, logging.WARNING, "session_probe_failed", error=str(exc))
            return False
        return True

    async def _launch(self) -> Page:
        log_event(logger, logging.INFO, "session_launching")
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=True, args=LAUNCH_ARGS)
            self._context = await self._browser.new_context(user_agent=self.settings.user_agent, no_viewport=True)
            page = await self._context.new_page()
            await Stealth().apply_stealth_async(page)
            page.set_default_navigation_timeout(self.settings.navigation_timeout_ms)
            await page.goto(self.settings.landing_url)
        except Exception:
            await self._teardown()
            raise

        self._page = page
        self.state = SessionState.READY
        log_event(logger, logging.INFO, "session_ready", landing_url=self.settings.landing_url)
        return page

    async def _teardown(self) -> None:
        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as exc:
                log_event(logger, logging.WARNING, "session_close_failed", target="browser", error=str(exc))
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as exc:
                log_event(logger, logging.WARNING, "session_close_failed", target="playwright", error=str(exc))
        self._page = None
        self._context = None
        self._browser = None
        self._playwright = None
