#!/usr/bin/env python3
"""
Tab scraper HTTP service.

POST /scrape with {"url": "<tab page url>"} returns the artist, song title and
chord sheet text extracted by a shared headless browser session.
Run with: python scripts/scraper_server.py
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

from browser_session import BrowserSession
from extraction import extract_tab
from logging_utils import configure_logging, log_event
from settings import Settings, get_settings

logger = logging.getLogger("scraper_server")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

NOT_FOUND_MESSAGE = "Not Found. Use POST /scrape"
INVALID_BODY_MESSAGE = 'Invalid request body: "url" string is required.'


class ScrapeRequest(BaseModel):
    url: StrictStr = Field(min_length=1)


class ScrapeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    requested_url: str = Field(alias="requestedUrl")
    chords: Optional[str]
    song: Optional[str]
    artist: Optional[str]


def error_response(status_code: int, **payload: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=payload)


def create_app(session: Optional[BrowserSession] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the scraper app around one browser session.

    When no session is given, one is created and warmed up at startup; a launch
    failure aborts startup. The session is closed on shutdown.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.session is None:
            app.state.session = BrowserSession(settings)
            await app.state.session.acquire()
        log_event(logger, logging.INFO, "scraper_started", port=settings.scraper_port)
        try:
            yield
        finally:
            log_event(logger, logging.INFO, "scraper_stopping")
            await app.state.session.close()

    app = FastAPI(title="Tab Scraper", lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)
    app.state.session = session
    app.state.settings = settings

    @app.middleware("http")
    async def cors(request: Request, call_next):
        log_event(logger, logging.INFO, "request_received", method=request.method, path=request.url.path)
        if request.method == "OPTIONS":
            response = Response(status_code=204)
        elif (request.method, request.url.path) != ("POST", "/scrape"):
            response = error_response(404, error=NOT_FOUND_MESSAGE)
        else:
            response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    @app.post("/scrape", response_model=ScrapeResponse, response_model_by_alias=True)
    async def scrape(request: Request):
        raw = await request.body()
        try:
            payload = json.loads(raw or b"null")
        except ValueError:
            return error_response(400, error=INVALID_BODY_MESSAGE)
        try:
            body = ScrapeRequest.model_validate(payload)
        except ValidationError:
            return error_response(400, error=INVALID_BODY_MESSAGE)

        log_event(logger, logging.INFO, "scrape_requested", url=body.url)
        try:
            result = await app.state.session.run(lambda page: extract_tab(page, body.url, app.state.settings))
        except Exception as exc:
            log_event(logger, logging.ERROR, "scrape_failed", url=body.url, error=str(exc))
            return error_response(
                500,
                error="Failed to scrape the page.",
                details=str(exc),
                requestedUrl=body.url,
            )

        return ScrapeResponse(requested_url=body.url, chords=result.body, song=result.title, artist=result.artist)

    return app


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings=settings), host=settings.scraper_host, port=settings.scraper_port)


if __name__ == "__main__":
    main()
