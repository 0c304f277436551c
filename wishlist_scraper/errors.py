"""
Error Taxonomy
==============
Every failure that can reach a caller is a ``ScraperError`` subclass carrying
an HTTP-style status code, a short label and a human-readable ``details``
string.

Propagation:
    - ``BadRequest`` and ``SessionCreationFailure`` cross the service boundary
      unchanged.
    - Navigation / stabilization / extraction errors during a listing fetch are
      wrapped in ``ScrapeFailure``.
    - Errors during a standalone detail fetch are wrapped in
      ``DetailFetchFailure``.
    - Errors for a single item during batch enrichment never propagate; the
      item's detail fields are simply left empty.
"""

from __future__ import annotations


class ScraperError(Exception):
    """Base class for errors surfaced at the request boundary."""

    status_code: int = 500
    error: str = "Scraper error"

    def __init__(self, details: str = ""):
        super().__init__(details or self.error)
        self.details = details

    def to_dict(self) -> dict:
        return {"error": self.error, "details": self.details}


class BadRequest(ScraperError):
    """A required input (listing URL, external id) was missing."""

    status_code = 400
    error = "Bad request"


class NavigationTimeout(ScraperError):
    """The target page did not reach the requested readiness in time."""

    status_code = 504
    error = "Navigation timed out"


class NoItemsFound(ScraperError):
    """Stabilization finished but no item marker ever appeared."""

    status_code = 404
    error = "No items found"


class DetailExtractionFailure(ScraperError):
    """A detail page loaded but could not be turned into a record."""

    error = "Detail extraction failed"


class SessionCreationFailure(ScraperError):
    """The shared browser could not be launched."""

    status_code = 503
    error = "Browser session unavailable"


class ScrapeFailure(ScraperError):
    """Listing-level failure (navigation, stabilization or extraction)."""

    error = "Scraping failed"


class DetailFetchFailure(ScraperError):
    """Standalone detail fetch failed."""

    error = "Failed to scrape product data"

    @property
    def message(self) -> str:
        return self.details
