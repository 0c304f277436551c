"""
Product Detail Extraction
=========================
Turns one product page into a ``DetailRecord``.

Every field is looked up through an ordered list of candidates; the first
non-empty match wins.  The candidate lists live in the tables below so a new
fallback is a one-line change.

``DetailFetcher.fetch`` raises on failure; ``DetailFetcher.fetch_outcome`` is
the best-effort variant used by batch enrichment and never raises.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence
from urllib.parse import quote

from bs4 import BeautifulSoup
from playwright.async_api import TimeoutError as PlaywrightTimeout

from .errors import DetailExtractionFailure
from .models import DetailOutcome, DetailRecord
from .run_config import ScraperRunConfig
from .session import LEAN_FILTER, NO_FILTER, BrowserSession
from .utils import absolute_url, clean_price, clean_rating, clean_text, digits_only, unique

logger = logging.getLogger(__name__)

_BS_PARSER = "lxml"


# ---------------------------------------------------------------------------
# Selector tables
# ---------------------------------------------------------------------------

# Single-value text fields, candidates in priority order
TEXT_FIELD_SELECTORS: Dict[str, List[str]] = {
    "title": ["#productTitle"],
    "current_price": [
        ".a-price .a-offscreen",
        "#price_inside_buybox",
        "#priceblock_ourprice",
        "#priceblock_dealprice",
        ".a-price-whole",
    ],
    "original_price": [".basisPrice .a-text-price"],
    "rating": ["#acrPopover", ".a-icon-star"],
    "rating_count": ["#acrCustomerReviewText"],
    "availability": ["#availability"],
    "manufacturer": ["#bylineInfo"],
    "category": ["#wayfinding-breadcrumbs_feature_div"],
    "dimensions": ["#productDetails_detailBullets_sections1 tr:nth-child(1) td"],
    "weight": ["#productDetails_detailBullets_sections1 tr:nth-child(2) td"],
}

# Post-processing per field; fields not listed keep their collapsed text
FIELD_CLEANERS: Dict[str, Callable[[Optional[str]], Optional[str]]] = {
    "current_price": clean_price,
    "rating": clean_rating,
    "rating_count": digits_only,
}

DESCRIPTION_SELECTORS = ["#productDescription p", "#bookDescription_feature_div"]
FEATURE_SELECTOR = "#feature-bullets li span"
FEATURE_BOILERPLATE_MARKERS = ("Hide",)
FEATURE_SEPARATOR = " | "

MAIN_IMAGE_SELECTORS = ["#landingImage", "#imgBlkFront"]
ADDITIONAL_IMAGE_SELECTOR = "#altImages img"
DECORATIVE_IMAGE_MARKERS = ("sprite", "grey-pixel", "transparent-pixel")

# Any of these present means the product page rendered enough to extract
DETAIL_READY_SELECTOR = "#productTitle, #price, .a-price"


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------

def first_text(soup, selectors: Sequence[str]) -> Optional[str]:
    """Text of the first selector whose element has non-empty text."""
    for selector in selectors:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = clean_text(element.get_text(" "))
        if text:
            return text
    return None


def first_of(candidates: Sequence[Callable[[], Optional[str]]]) -> Optional[str]:
    """Evaluate candidates in order and short-circuit on the first non-empty one."""
    for candidate in candidates:
        value = candidate()
        if value:
            return value
    return None


def first_image(soup, selectors: Sequence[str], base_url: str = "") -> Optional[str]:
    for selector in selectors:
        element = soup.select_one(selector)
        if element is None:
            continue
        url = absolute_url(element.get("src"), base_url)
        if url:
            return url
    return None


def _features(soup) -> List[str]:
    features = []
    for element in soup.select(FEATURE_SELECTOR):
        text = clean_text(element.get_text(" "))
        if not text:
            continue
        if any(marker in text for marker in FEATURE_BOILERPLATE_MARKERS):
            continue
        features.append(text)
    return features


def _additional_images(soup, base_url: str) -> List[str]:
    urls = []
    for img in soup.select(ADDITIONAL_IMAGE_SELECTOR):
        url = absolute_url(img.get("src"), base_url)
        if not url:
            continue
        if any(marker in url for marker in DECORATIVE_IMAGE_MARKERS):
            continue
        urls.append(url)
    return unique(urls)


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def extract_detail(html: str, base_url: str = "") -> DetailRecord:
    """Build a ``DetailRecord`` from a rendered product page. Pure function."""
    soup = BeautifulSoup(html, _BS_PARSER)

    values = {}
    for name, selectors in TEXT_FIELD_SELECTORS.items():
        raw = first_text(soup, selectors)
        cleaner = FIELD_CLEANERS.get(name)
        values[name] = cleaner(raw) if cleaner else raw

    features = _features(soup)
    description = first_of([
        lambda: first_text(soup, DESCRIPTION_SELECTORS),
        lambda: FEATURE_SEPARATOR.join(features),
    ])

    return DetailRecord(
        description=description,
        features=features,
        main_image_url=first_image(soup, MAIN_IMAGE_SELECTORS, base_url),
        additional_image_urls=_additional_images(soup, base_url),
        **values,
    )


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------

class DetailFetcher:
    """Loads one product page per external id through the shared session."""

    def __init__(self, session: BrowserSession, config: Optional[ScraperRunConfig] = None):
        self.session = session
        self.config = config or session.config

    def detail_url(self, external_id: str) -> str:
        return self.config.detail_url_template.format(external_id=quote(external_id, safe=""))

    async def fetch(self, external_id: str) -> DetailRecord:
        """Fetch and extract one product page. Raises on any failure."""
        url = self.detail_url(external_id)
        resource_filter = LEAN_FILTER if self.config.block_detail_resources else NO_FILTER

        async with self.session.open_page(resource_filter) as handle:
            logger.info(f"[DETAIL] Loading {url}")
            await handle.navigate(url, self.config.detail_wait_until, self.config.detail_timeout_ms)
            try:
                await handle.page.wait_for_selector(
                    DETAIL_READY_SELECTOR,
                    state="attached",
                    timeout=self.config.detail_marker_timeout_ms,
                )
            except PlaywrightTimeout:
                logger.info(f"[DETAIL] {external_id}: some elements not found, continuing anyway")
            html = await handle.content()

        try:
            record = extract_detail(html, url)
        except Exception as e:
            raise DetailExtractionFailure(f"Could not extract {external_id}: {e}") from e

        logger.info(
            f"[DETAIL] {external_id}: {len(record.present_fields())} fields, "
            f"{len(record.features)} features, {len(record.additional_image_urls)} images"
        )
        return record

    async def fetch_outcome(self, external_id: str) -> DetailOutcome:
        """Best-effort fetch: any failure for this id becomes an empty outcome."""
        try:
            record = await self.fetch(external_id)
        except Exception as e:
            logger.warning(f"[DETAIL] {external_id}: enrichment skipped ({e})")
            return DetailOutcome.empty(external_id, str(e))
        return DetailOutcome.success(external_id, record)
