"""
Record Models
=============
Plain dataclasses for the three record shapes the scraper produces:

- ``ListingRecord``: one item on the wishlist page
- ``DetailRecord``: enrichment scraped from the item's product page
- ``DetailOutcome``: per-item result of a best-effort detail fetch

Enriched records are plain dicts built by ``merge_records``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ListingRecord:
    """One listed item. ``item_id`` is mandatory, everything else optional."""
    item_id: str
    external_id: Optional[str] = None
    title: Optional[str] = None
    price: Optional[str] = None
    shipping_note: Optional[str] = None
    thumbnail_url: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DetailRecord:
    """Product-page enrichment. Any field may be absent."""
    title: Optional[str] = None
    current_price: Optional[str] = None
    original_price: Optional[str] = None
    rating: Optional[str] = None
    rating_count: Optional[str] = None
    availability: Optional[str] = None
    description: Optional[str] = None
    features: List[str] = field(default_factory=list)
    main_image_url: Optional[str] = None
    additional_image_urls: List[str] = field(default_factory=list)
    manufacturer: Optional[str] = None
    category: Optional[str] = None
    dimensions: Optional[str] = None
    weight: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    def present_fields(self) -> Dict[str, Any]:
        """Only the fields the page actually produced."""
        return {k: v for k, v in asdict(self).items() if v not in (None, "", [])}

    @property
    def is_empty(self) -> bool:
        return not self.present_fields()


@dataclass(frozen=True)
class DetailOutcome:
    """Result of one best-effort detail fetch: a record, or empty with a reason."""
    external_id: str
    record: Optional[DetailRecord] = None
    error: str = ""

    @classmethod
    def success(cls, external_id: str, record: DetailRecord) -> "DetailOutcome":
        return cls(external_id=external_id, record=record)

    @classmethod
    def empty(cls, external_id: str, error: str = "") -> "DetailOutcome":
        return cls(external_id=external_id, error=error)

    @property
    def ok(self) -> bool:
        return self.record is not None

    def fields(self) -> Dict[str, Any]:
        return self.record.present_fields() if self.record else {}


def merge_records(listing: ListingRecord, outcome: Optional[DetailOutcome] = None) -> Dict[str, Any]:
    """Shallow merge; detail fields win on collision, absent ones never blank a listing field."""
    merged = listing.to_dict()
    if outcome is not None:
        merged.update(outcome.fields())
    return merged
