#!/usr/bin/env python3
"""
Ethos Guard - CI check for third-party network calls.

Loads a page in headless Chromium, aborts every request that leaves the allowed
origins, saves a full-page screenshot and writes a markdown summary.

Exit codes: 0 clean, 1 violations found, 2 bad arguments, 3 internal error.
"""

import argparse
import asyncio
import logging
import sys
from io import BytesIO
from pathlib import Path
from typing import FrozenSet, List, Optional

from PIL import Image
from playwright.async_api import Browser, Page, async_playwright

from logging_utils import configure_logging, log_event
from origin_policy import OriginGuard, build_allow_set
from report import render_report, write_report
from settings import get_settings

logger = logging.getLogger("check_tool")

EXIT_CLEAN = 0
EXIT_VIOLATIONS = 1
EXIT_BAD_ARGS = 2
EXIT_INTERNAL_ERROR = 3

SCREENSHOT_SUFFIXES = (".png", ".jpeg", ".webp")

# Largest width or height the WebP encoder accepts.
WEBP_MAX_DIMENSION = 16383

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


def parse_origins(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [o.strip() for o in raw.split(",") if o.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ethos-check",
        description="Fail when a page makes network calls outside its allowed origins",
    )
    parser.add_argument("target_url", help="Page to load and audit")
    parser.add_argument("--outputSummaryFile", dest="output_summary_file", required=True, help="Markdown report path")
    parser.add_argument(
        "--screenshotPath",
        dest="screenshot_path",
        required=True,
        help="Full-page screenshot path (.png, .jpeg or .webp)",
    )
    parser.add_argument(
        "--allowedOrigins",
        dest="allowed_origins",
        help="Comma-separated extra origins, e.g. https://cdn.example.com,https://fonts.example.com",
    )
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse and validate CLI arguments; any problem exits with status 2."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.screenshot_path.endswith(SCREENSHOT_SUFFIXES):
        parser.error(f'screenshotPath "{args.screenshot_path}" must end with .png, .jpeg, or .webp')
    try:
        args.allow_set = build_allow_set(args.target_url, parse_origins(args.allowed_origins))
    except ValueError as exc:
        parser.error(str(exc))
    return args


async def save_screenshot(page: Page, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix == ".webp":
        buf = await page.screenshot(full_page=True, type="png")
        image = Image.open(BytesIO(buf))
        if max(image.size) > WEBP_MAX_DIMENSION:
            log_event(logger, logging.WARNING, "screenshot_downscaled", path=str(path), size=image.size)
            image.thumbnail((WEBP_MAX_DIMENSION, WEBP_MAX_DIMENSION))
        image.save(path, "WEBP")
        return
    await page.screenshot(path=str(path), full_page=True)


async def capture_error_screenshot(browser: Browser, path: Path) -> None:
    try:
        pages = [p for context in browser.contexts for p in context.pages]
        if pages:
            print(f"📸 Attempting error screenshot: {path}")
            await save_screenshot(pages[0], path)
    except Exception as exc:
        log_event(logger, logging.ERROR, "error_screenshot_failed", path=str(path), error=str(exc))


async def run_check(
    target_url: str,
    allow_set: FrozenSet[str],
    screenshot_path: Path,
    timeout_ms: int,
) -> OriginGuard:
    guard = OriginGuard(allow_set)
    async with async_playwright() as p:
        browser: Optional[Browser] = None
        try:
            browser = await p.chromium.launch(headless=True, args=LAUNCH_ARGS)
            page = await browser.new_page()
            await guard.attach(page)

            print(f"🌐 Navigating to {target_url}...")
            await page.goto(target_url, wait_until="networkidle", timeout=timeout_ms)
            print(f"📸 Taking screenshot: {screenshot_path}")
            await save_screenshot(page, screenshot_path)
        except Exception as exc:
            log_event(logger, logging.ERROR, "browser_execution_error", url=target_url, error=str(exc))
            guard.record_error(f"Browser execution error: {exc}")
            if browser is not None:
                await capture_error_screenshot(browser, screenshot_path)
        finally:
            if browser is not None:
                try:
                    await browser.close()
                except Exception as exc:
                    log_event(logger, logging.WARNING, "browser_close_failed", error=str(exc))
    return guard


async def main_async(args: argparse.Namespace) -> int:
    settings = get_settings()
    summary_path = Path(args.output_summary_file)
    screenshot_path = Path(args.screenshot_path)

    print(f"🔎 Starting check for: {args.target_url}")
    print(f"Allowed origins: {', '.join(sorted(args.allow_set))}")

    guard = await run_check(args.target_url, args.allow_set, screenshot_path, settings.check_timeout_ms)

    screenshot_taken = screenshot_path.exists()
    if not screenshot_taken:
        log_event(logger, logging.WARNING, "screenshot_missing", path=str(screenshot_path))

    write_report(summary_path, render_report(guard.violations, screenshot_taken))

    if guard.clean:
        print(f"\n✅ Check PASSED. Summary written to {summary_path}")
        return EXIT_CLEAN
    print(f"\n❌ Check FAILED ({len(guard.violations)} violation(s)). Summary written to {summary_path}")
    return EXIT_VIOLATIONS


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(get_settings().log_level)
    try:
        return asyncio.run(main_async(args))
    except Exception as exc:
        log_event(logger, logging.CRITICAL, "unhandled_error", error=str(exc))
        return EXIT_INTERNAL_ERROR


if __name__ == "__main__":
    sys.exit(main())
