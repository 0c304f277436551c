"""
Utility Functions
Text normalization helpers shared by the listing and detail extractors.
"""

import logging
import re
from typing import Iterable, List, Optional, Sequence, TypeVar
from urllib.parse import urljoin, urlparse

logger = logging.getLogger(__name__)

T = TypeVar("T")

_WHITESPACE_RE = re.compile(r"\s+")
_PRICE_DISALLOWED_RE = re.compile(r"[^\d.,€$£¥]")
_NUMBER_RE = re.compile(r"\d+(?:[.,]\d+)?")
_NON_DIGIT_RE = re.compile(r"\D")


def is_valid_url(url: str) -> bool:
    """Check if URL is valid."""
    try:
        parsed = urlparse(url)
        return all([parsed.scheme in ('http', 'https'), parsed.netloc])
    except ValueError:
        return False


def clean_text(text: Optional[str]) -> str:
    """Clean and normalize text content."""
    if not text:
        return ""

    # Replace multiple whitespace with single space
    text = _WHITESPACE_RE.sub(' ', text)

    # Remove leading/trailing whitespace
    return text.strip()


def clean_price(text: Optional[str]) -> Optional[str]:
    """Keep digits, separators and currency symbols only."""
    if not text:
        return None
    return _PRICE_DISALLOWED_RE.sub("", text).strip() or None


def clean_rating(text: Optional[str]) -> Optional[str]:
    """'4.5 out of 5 stars' -> '4.5' (first numeric token, comma decimal normalized)."""
    if not text:
        return None
    match = _NUMBER_RE.search(text)
    if not match:
        return None
    return match.group(0).replace(",", ".")


def digits_only(text: Optional[str]) -> Optional[str]:
    """'1,234 ratings' -> '1234'."""
    if not text:
        return None
    return _NON_DIGIT_RE.sub("", text) or None


def absolute_url(src: Optional[str], base_url: str = "") -> Optional[str]:
    """Resolve an image/link source against the page URL."""
    if not src:
        return None
    src = src.strip()
    if not src or src.startswith("data:"):
        return None
    return urljoin(base_url, src) if base_url else src


def chunked(items: Sequence[T], size: int) -> Iterable[Sequence[T]]:
    """Contiguous fixed-size windows; the last may be shorter."""
    if size < 1:
        raise ValueError("size must be >= 1")
    for start in range(0, len(items), size):
        yield items[start:start + size]


def unique(items: Iterable[str]) -> List[str]:
    """De-duplicate while keeping first-seen order."""
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out
