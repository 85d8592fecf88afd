"""
Tab page extraction: artist, song title and chord sheet text.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from logging_utils import log_event
from settings import Settings

logger = logging.getLogger(__name__)

ARTIST_SELECTOR = "main div > span > span > a"
TITLE_SELECTOR = "main div > span > h1"
CONTENT_SELECTOR = "section > code > pre"


class ExtractionError(RuntimeError):
    pass


class SelectorNotFoundError(ExtractionError):
    def __init__(self, field: str, selector: str, url: str):
        super().__init__(f"{field.capitalize()} selector not found on page: {url}")
        self.field = field
        self.selector = selector
        self.url = url


class ContentExtractionError(ExtractionError):
    pass


@dataclass
class TabExtraction:
    artist: Optional[str]
    title: Optional[str]
    body: Optional[str]


def strip_last_word(text: Optional[str]) -> str:
    """Drop the trailing whitespace-delimited token ("Wonderwall Chords" -> "Wonderwall")."""
    parts = (text or "").strip().rsplit(maxsplit=1)
    if len(parts) < 2:
        return ""
    return parts[0]


async def wait_for_text(page: Page, field: str, selector: str, url: str, timeout_ms: int) -> Optional[str]:
    try:
        await page.wait_for_selector(selector, state="attached", timeout=timeout_ms)
    except PlaywrightTimeoutError as exc:
        log_event(logger, logging.ERROR, "selector_timeout", field=field, selector=selector, url=url, error=str(exc))
        raise SelectorNotFoundError(field, selector, url) from exc
    return await page.text_content(selector)


async def extract_tab(page: Page, url: str, settings: Settings) -> TabExtraction:
    log_event(logger, logging.INFO, "scrape_navigate", url=url)
    await page.goto(url, wait_until="domcontentloaded", timeout=settings.page_timeout_ms)

    timeout_ms = settings.selector_timeout_ms
    artist = await wait_for_text(page, "artist", ARTIST_SELECTOR, url, timeout_ms)
    title = await wait_for_text(page, "title", TITLE_SELECTOR, url, timeout_ms)
    body = await wait_for_text(page, "content", CONTENT_SELECTOR, url, timeout_ms)

    if not body:
        log_event(logger, logging.ERROR, "content_missing", selector=CONTENT_SELECTOR, url=url)
        raise ContentExtractionError("Could not extract song content.")

    return TabExtraction(artist=artist, title=strip_last_word(title), body=body)
