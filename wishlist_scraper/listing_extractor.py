"""
Listing Extractor
Maps each revealed wishlist item to a ``ListingRecord``.
"""

import json
import logging
import re
from typing import List, Optional, Sequence

from bs4 import BeautifulSoup, Tag

from .models import ListingRecord
from .utils import absolute_url, clean_text

logger = logging.getLogger(__name__)

_BS_PARSER = "lxml"


class ListingExtractor:
    """
    Extracts ``ListingRecord`` objects from a rendered listing page.

    Every optional field is extracted independently; one field failing never
    drops the record.  Items without the identifier attribute are dropped.
    """

    ITEM_SELECTOR = "li[data-id]"
    ITEM_ID_ATTR = "data-itemid"
    PARAMS_ATTR = "data-reposition-action-params"
    EXTERNAL_ID_KEY = "itemExternalId"
    EXTERNAL_ID_PATTERN = re.compile(r"ASIN:([A-Z0-9]+)")

    # Tried in order, first non-empty wins
    TITLE_SELECTORS = ["h2", "h3", "[class*='a-text-normal']"]

    PRICE_WHOLE_SELECTOR = ".a-price-whole"
    PRICE_FRACTION_SELECTOR = ".a-price-fraction"
    PRICE_SYMBOL_SELECTOR = ".a-price-symbol"
    DEFAULT_CURRENCY_SYMBOL = "€"

    SHIPPING_SELECTOR = "[class*='a-color-secondary']"
    THUMBNAIL_SELECTOR = "img[src]"

    def __init__(
        self,
        item_selector: str = ITEM_SELECTOR,
        title_selectors: Optional[Sequence[str]] = None,
        default_currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
    ):
        self.item_selector = item_selector
        self.title_selectors = list(title_selectors or self.TITLE_SELECTORS)
        self.default_currency_symbol = default_currency_symbol

    def extract(self, html: str, limit: int = 0, base_url: str = "") -> List[ListingRecord]:
        """
        Extract listing records from HTML.

        Args:
            html: Rendered page HTML
            limit: Keep only the first ``limit`` candidates (0 = all).  Applied
                before any field is read.
            base_url: Page URL for resolving relative image sources

        Returns:
            Records in document order
        """
        soup = BeautifulSoup(html, _BS_PARSER)
        candidates = soup.select(self.item_selector)
        total = len(candidates)
        if limit and limit > 0:
            candidates = candidates[:limit]

        records = []
        for item in candidates:
            record = self.extract_record(item, base_url)
            if record is not None:
                records.append(record)

        logger.info(
            f"[LISTING] {len(records)} records from {len(candidates)} candidates "
            f"({total} items on page)"
        )
        return records

    def extract_record(self, item: Tag, base_url: str = "") -> Optional[ListingRecord]:
        """Build one record, or None when the item has no identifier."""
        item_id = (item.get(self.ITEM_ID_ATTR) or "").strip()
        if not item_id:
            return None

        return ListingRecord(
            item_id=item_id,
            external_id=self._external_id(item),
            title=self._title(item),
            price=self._price(item),
            shipping_note=self._shipping_note(item),
            thumbnail_url=self._thumbnail(item, base_url),
        )

    # ------------------------------------------------------------------
    # Field extractors
    # ------------------------------------------------------------------

    def _external_id(self, item: Tag) -> Optional[str]:
        raw = item.get(self.PARAMS_ATTR)
        if not raw:
            return None
        try:
            params = json.loads(raw)
        except ValueError as e:
            logger.debug(f"[LISTING] Unparseable {self.PARAMS_ATTR}: {e}")
            return None
        if not isinstance(params, dict):
            return None
        value = params.get(self.EXTERNAL_ID_KEY) or ""
        match = self.EXTERNAL_ID_PATTERN.search(str(value))
        return match.group(1) if match else None

    def _title(self, item: Tag) -> Optional[str]:
        for selector in self.title_selectors:
            element = item.select_one(selector)
            if element is None:
                continue
            text = element.get_text().strip()
            if text:
                return text
        return None

    def _price(self, item: Tag) -> Optional[str]:
        whole_el = item.select_one(self.PRICE_WHOLE_SELECTOR)
        fraction_el = item.select_one(self.PRICE_FRACTION_SELECTOR)
        if whole_el is None and fraction_el is None:
            return None

        symbol_el = item.select_one(self.PRICE_SYMBOL_SELECTOR)

        # "1.299," / "1,299." -> "1299"; the decimal mark lives in the fraction
        whole = re.sub(r"\D", "", whole_el.get_text()) if whole_el else ""
        fraction = fraction_el.get_text().strip() if fraction_el else ""
        symbol = symbol_el.get_text().strip() if symbol_el else ""

        return f"{symbol or self.default_currency_symbol}{whole or '0'}.{fraction or '00'}"

    def _shipping_note(self, item: Tag) -> Optional[str]:
        element = item.select_one(self.SHIPPING_SELECTOR)
        if element is None:
            return None
        return clean_text(element.get_text()) or None

    def _thumbnail(self, item: Tag, base_url: str) -> Optional[str]:
        for img in item.select(self.THUMBNAIL_SELECTOR):
            url = absolute_url(img.get("src"), base_url)
            if url:
                return url
        return None
