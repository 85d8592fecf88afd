"""
Shared fakes standing in for Playwright objects, so tests never launch a browser.
"""

from pathlib import Path
from typing import Dict, List, Optional

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from settings import Settings


class FakeRequest:
    def __init__(self, url: str):
        self.url = url


class FakeRoute:
    def __init__(self, url: str, fail_continue: bool = False, fail_abort: bool = False):
        self.request = FakeRequest(url)
        self.fail_continue = fail_continue
        self.fail_abort = fail_abort
        self.continued = False
        self.aborted_with: Optional[str] = None

    async def continue_(self) -> None:
        if self.fail_continue:
            raise RuntimeError("Target page, context or browser has been closed")
        self.continued = True

    async def abort(self, error_code: Optional[str] = None) -> None:
        if self.fail_abort:
            raise RuntimeError("Route is already handled!")
        self.aborted_with = error_code or "failed"


class FakeCheckPage:
    """Page that replays a fixed list of request URLs through the registered route handler."""

    def __init__(self, request_urls: List[str], goto_error: Optional[Exception] = None):
        self.request_urls = request_urls
        self.goto_error = goto_error
        self.handler = None
        self.routes: List[FakeRoute] = []
        self.screenshots: List[Dict] = []

    async def route(self, pattern: str, handler) -> None:
        self.handler = handler

    async def goto(self, url: str, wait_until: Optional[str] = None, timeout: Optional[int] = None) -> None:
        for request_url in self.request_urls:
            route = FakeRoute(request_url)
            self.routes.append(route)
            await self.handler(route)
        if self.goto_error is not None:
            raise self.goto_error

    async def screenshot(self, path: Optional[str] = None, full_page: bool = False, type: Optional[str] = None):
        self.screenshots.append({"path": path, "full_page": full_page})
        if path:
            Path(path).write_bytes(b"\x89PNG fake")
        return b"\x89PNG fake"


class FakeCheckContext:
    def __init__(self, pages):
        self.pages = pages


class FakeCheckBrowser:
    def __init__(self, page: FakeCheckPage):
        self.page = page
        self.closed = False
        self.contexts = [FakeCheckContext([page])]

    async def new_page(self) -> FakeCheckPage:
        return self.page

    async def close(self) -> None:
        self.closed = True


class FakeChromium:
    def __init__(self, browser):
        self.browser = browser
        self.launch_kwargs: Optional[Dict] = None

    async def launch(self, **kwargs):
        self.launch_kwargs = kwargs
        return self.browser


class FakeTabPage:
    """Page holding text for a few CSS selectors; missing selectors time out."""

    def __init__(self, texts: Dict[str, Optional[str]], goto_error: Optional[Exception] = None):
        self.texts = texts
        self.goto_error = goto_error
        self.visited: List[Dict] = []
        self.waited: List[str] = []

    async def goto(self, url: str, wait_until: Optional[str] = None, timeout: Optional[int] = None) -> None:
        self.visited.append({"url": url, "wait_until": wait_until, "timeout": timeout})
        if self.goto_error is not None:
            raise self.goto_error

    async def wait_for_selector(self, selector: str, state: Optional[str] = None, timeout: Optional[int] = None) -> None:
        assert state == "attached"
        self.waited.append(selector)
        if selector not in self.texts:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    async def text_content(self, selector: str) -> Optional[str]:
        return self.texts.get(selector)


@pytest.fixture
def settings() -> Settings:
    return Settings(page_timeout_ms=1000, selector_timeout_ms=500, landing_url="https://tabs.example.com")
