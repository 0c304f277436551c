"""
Wishlist Scraper Package
Playwright-driven wishlist extraction with best-effort product-page enrichment.

CLI Usage:
    python -m wishlist_scraper listing <url> [options]
    python -m wishlist_scraper detail <asin>
    python -m wishlist_scraper serve

    Options:
        --limit         Return only the first N items
        --enrich        Merge product-page details into each record
        --output-json   Export to JSON file
        --output-csv    Export to CSV file
"""

from .batch import BatchScheduler
from .detail_extractor import DetailFetcher, extract_detail
from .errors import (
    BadRequest,
    DetailExtractionFailure,
    DetailFetchFailure,
    NavigationTimeout,
    NoItemsFound,
    ScrapeFailure,
    ScraperError,
    SessionCreationFailure,
)
from .listing_extractor import ListingExtractor
from .models import DetailOutcome, DetailRecord, ListingRecord, merge_records
from .run_config import ScraperRunConfig
from .service import WishlistScraperService
from .session import BrowserSession, PageHandle, ResourceFilter
from .stabilizer import StabilizationResult, stabilize_listing, wait_for_items

__all__ = [
    'WishlistScraperService',
    'ScraperRunConfig',
    # Browser
    'BrowserSession',
    'PageHandle',
    'ResourceFilter',
    # Pipeline
    'stabilize_listing',
    'wait_for_items',
    'StabilizationResult',
    'ListingExtractor',
    'DetailFetcher',
    'extract_detail',
    'BatchScheduler',
    # Records
    'ListingRecord',
    'DetailRecord',
    'DetailOutcome',
    'merge_records',
    # Errors
    'ScraperError',
    'BadRequest',
    'NavigationTimeout',
    'NoItemsFound',
    'DetailExtractionFailure',
    'SessionCreationFailure',
    'ScrapeFailure',
    'DetailFetchFailure',
]

__version__ = '1.0.0'
