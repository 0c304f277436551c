"""
FastAPI app exposing the scraper service.

- GET /scrape?url=&limit=           → listing records
- GET /scrape/enriched?url=&limit=  → listing records merged with product details
- GET /info?asin=                   → one product's details
- GET /health                       → liveness + whether the browser is up

The shared browser is closed when the app shuts down.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from .errors import ScraperError
from .run_config import ScraperRunConfig
from .service import WishlistScraperService

logger = logging.getLogger(__name__)


def create_app(service: Optional[WishlistScraperService] = None) -> FastAPI:
    """Build the app around ``service`` (a fresh one from env config by default)."""
    service = service or WishlistScraperService(ScraperRunConfig.from_env())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        logger.info("Shutting down, closing browser session")
        await service.shutdown()

    app = FastAPI(title="Wishlist Scraper", lifespan=lifespan)
    app.state.service = service

    @app.exception_handler(ScraperError)
    async def scraper_error_handler(request: Request, exc: ScraperError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.get("/scrape")
    async def scrape(url: Optional[str] = None, limit: Optional[str] = None):
        return await service.fetch_listing(url, limit)

    @app.get("/scrape/enriched")
    async def scrape_enriched(url: Optional[str] = None, limit: Optional[str] = None):
        return await service.fetch_listing_enriched(url, limit)

    @app.get("/info")
    async def info(asin: Optional[str] = Query(None)):
        return await service.fetch_detail(asin)

    @app.get("/health")
    async def health():
        return {"status": "ok", "browser": service.session.is_running}

    return app
