"""
Origin allow-list policy for outgoing page requests.

Every request the page makes is classified against a fixed set of origins.
Requests to other origins are recorded as violations and aborted before they
reach the network.
"""

import logging
from enum import Enum
from typing import Awaitable, Callable, FrozenSet, Iterable, List
from urllib.parse import urlsplit

from playwright.async_api import Page, Route

from logging_utils import log_event

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443, "ftp": 21}

# Schemes that embed their payload and never hit the network.
EMBEDDED_SCHEMES = ("data:",)


class Verdict(str, Enum):
    PERMIT = "permit"
    VIOLATE = "violate"


def origin_of(url: str) -> str:
    """
    Return the normalized origin (scheme://host[:port]) of an absolute URL.

    Non-ASCII hosts are converted to punycode, matching what the browser
    reports. Raises ValueError when the URL has no scheme or host, an invalid
    port, or a host that cannot be IDNA-encoded.
    """
    parts = urlsplit(url.strip())
    scheme = parts.scheme.lower()
    host = parts.hostname
    if not scheme or not host:
        raise ValueError(f"URL has no network origin: {url!r}")
    port = parts.port
    if not host.isascii():
        host = host.encode("idna").decode("ascii")
    if ":" in host:
        host = f"[{host}]"
    if port is None or DEFAULT_PORTS.get(scheme) == port:
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def build_allow_set(target_url: str, extra_origins: Iterable[str] = ()) -> FrozenSet[str]:
    allowed = {origin_of(target_url)}
    for extra in extra_origins:
        if extra.strip():
            allowed.add(origin_of(extra))
    return frozenset(allowed)


def classify(request_url: str, allow_set: FrozenSet[str]) -> Verdict:
    """
    Decide whether a request may proceed.

    Embedded-data URLs are always permitted. URLs that cannot be parsed are
    permitted too, with a warning, so a malformed URL never blocks page load.
    """
    if request_url.lower().startswith(EMBEDDED_SCHEMES):
        return Verdict.PERMIT
    try:
        request_origin = origin_of(request_url)
    except ValueError as exc:
        log_event(logger, logging.WARNING, "unparsable_request_url", url=request_url, error=str(exc))
        return Verdict.PERMIT
    if request_origin in allow_set:
        return Verdict.PERMIT
    return Verdict.VIOLATE


class OriginGuard:
    """Route handler that enforces an allow-set and collects violations."""

    def __init__(self, allow_set: FrozenSet[str]):
        self.allow_set = allow_set
        self.violations: List[str] = []

    @property
    def clean(self) -> bool:
        return not self.violations

    async def attach(self, page: Page) -> None:
        await page.route("**/*", self.handle_route)

    async def handle_route(self, route: Route) -> None:
        url = route.request.url
        if classify(url, self.allow_set) is Verdict.VIOLATE:
            self.violations.append(url)
            log_event(logger, logging.WARNING, "origin_violation", url=url)
            await settle(route.abort, "abort", url, "aborted")
            return
        await settle(route.continue_, "continue", url)

    def record_error(self, message: str) -> None:
        self.violations.append(message)


async def settle(action: Callable[..., Awaitable[None]], name: str, url: str, *args: str) -> bool:
    """
    Run a route continue/abort call; failures are logged and reported as False.

    These calls race against page teardown, so they must never raise.
    """
    try:
        await action(*args)
    except Exception as exc:
        log_event(logger, logging.WARNING, "route_settle_failed", action=name, url=url, error=str(exc))
        return False
    return True
