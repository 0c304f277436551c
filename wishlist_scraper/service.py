"""
Scraper Service
===============
The request surface shared by the HTTP app, the CLI and the Streamlit page:

- ``fetch_listing(url, limit)``           → ``{"records": [listing dicts]}``
- ``fetch_listing_enriched(url, limit)``  → ``{"records": [enriched dicts]}``
- ``fetch_detail(external_id)``           → detail dict

One service owns one ``BrowserSession``; call ``shutdown()`` (or use the
service as an async context manager) before the process exits.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Union

from .batch import BatchScheduler
from .detail_extractor import DetailFetcher
from .errors import BadRequest, DetailFetchFailure, ScrapeFailure, SessionCreationFailure
from .listing_extractor import ListingExtractor
from .models import ListingRecord
from .run_config import ScraperRunConfig
from .session import NO_FILTER, BrowserSession
from .stabilizer import stabilize_listing, wait_for_items

logger = logging.getLogger(__name__)

# Errors that cross the service boundary unwrapped
_PASSTHROUGH_ERRORS = (BadRequest, SessionCreationFailure)


def coerce_limit(limit: Union[int, str, None]) -> int:
    """Query-string tolerant limit: anything unparseable or non-positive means 'all'."""
    if limit is None or limit == "":
        return 0
    try:
        value = int(limit)
    except (TypeError, ValueError):
        return 0
    return value if value > 0 else 0


class WishlistScraperService:
    """Listing fetch, listing + enrichment, and single detail fetch."""

    def __init__(
        self,
        config: Optional[ScraperRunConfig] = None,
        session: Optional[BrowserSession] = None,
        extractor: Optional[ListingExtractor] = None,
    ):
        self.config = config or ScraperRunConfig()
        self.session = session or BrowserSession(self.config)
        self.extractor = extractor or ListingExtractor()
        self.detail_fetcher = DetailFetcher(self.session, self.config)
        self.scheduler = BatchScheduler(
            self.detail_fetcher,
            window_size=self.config.batch_window_size,
            window_delay_s=self.config.window_delay_s,
            item_delay_s=self.config.item_delay_s,
        )

    async def __aenter__(self) -> "WishlistScraperService":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.shutdown()

    # ------------------------------------------------------------------
    # Request surface
    # ------------------------------------------------------------------

    async def fetch_listing(self, url: Optional[str], limit: Union[int, str, None] = None) -> Dict[str, Any]:
        records = await self.scrape_listing(url, limit)
        return {"records": [record.to_dict() for record in records]}

    async def fetch_listing_enriched(
        self, url: Optional[str], limit: Union[int, str, None] = None
    ) -> Dict[str, Any]:
        records = await self.scrape_listing(url, limit)
        try:
            enriched = await self.scheduler.enrich(records)
        except Exception as e:
            logger.error(f"[BATCH] Enrichment aborted for {url}: {e}", exc_info=True)
            raise ScrapeFailure(str(e)) from e
        return {"records": enriched}

    async def fetch_detail(self, external_id: Optional[str]) -> Dict[str, Any]:
        external_id = (external_id or "").strip()
        if not external_id:
            raise BadRequest("An external id (ASIN) is required")
        try:
            record = await self.detail_fetcher.fetch(external_id)
        except _PASSTHROUGH_ERRORS:
            raise
        except Exception as e:
            logger.error(f"[DETAIL] Error scraping product {external_id}: {e}")
            raise DetailFetchFailure(f"Failed to scrape product data: {e}") from e
        return record.to_dict()

    async def shutdown(self) -> None:
        await self.session.shutdown()

    # ------------------------------------------------------------------
    # Listing pipeline
    # ------------------------------------------------------------------

    async def scrape_listing(self, url: Optional[str], limit: Union[int, str, None] = None) -> List[ListingRecord]:
        """Navigate, stabilize, extract. Raises ``ScrapeFailure`` on any pipeline error."""
        url = (url or "").strip()
        if not url:
            raise BadRequest("Please provide a wishlist URL")
        limit = coerce_limit(limit)
        cfg = self.config
        start = time.monotonic()

        try:
            async with self.session.open_page(NO_FILTER) as handle:
                await handle.navigate(url, cfg.listing_wait_until, cfg.listing_timeout_ms)
                await stabilize_listing(
                    handle.page,
                    patience=cfg.stable_patience,
                    scroll_settle_s=cfg.scroll_settle_s,
                    reveal_settle_s=cfg.reveal_settle_s,
                    single_pass=limit > 0,
                    max_iterations=cfg.max_reveal_iterations,
                    reveal_selectors=cfg.reveal_selectors,
                    click_timeout_ms=cfg.click_timeout_ms,
                )
                await wait_for_items(handle.page, self.extractor.item_selector, cfg.item_marker_timeout_ms)
                html = await handle.content()
            records = self.extractor.extract(html, limit=limit, base_url=url)
        except _PASSTHROUGH_ERRORS:
            raise
        except Exception as e:
            logger.error(f"[LISTING] Scraping error for {url}: {e}")
            raise ScrapeFailure(str(e)) from e

        logger.info(
            f"[LISTING] {len(records)} products found in {time.monotonic() - start:.1f}s"
            + (f" (limit={limit})" if limit else "")
        )
        return records
