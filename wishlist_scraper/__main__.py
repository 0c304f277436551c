#!/usr/bin/env python3
"""
Command-line entry point for the Wishlist Scraper
=================================================
Three commands share one ``ScraperRunConfig``:

    python -m wishlist_scraper listing <wishlist-url> [--limit N] [--enrich]
    python -m wishlist_scraper detail <asin>
    python -m wishlist_scraper serve [--host H] [--port P]

Defaults can also come from ``WISHLIST_SCRAPER_*`` variables in a ``.env`` file.
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path

from dotenv import load_dotenv

from .errors import ScraperError
from .exporter import export_csv, export_json
from .run_config import ScraperRunConfig
from .service import WishlistScraperService

# Load .env file (config overrides) before anything else
_env_path = Path(__file__).resolve().parent.parent / '.env'
if _env_path.exists():
    load_dotenv(_env_path)
else:
    load_dotenv()  # tries CWD

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)s | %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Command runners
# ---------------------------------------------------------------------------

async def _run_command(args, cfg: ScraperRunConfig) -> dict:
    """Run one listing/detail command; the browser is closed on every exit path."""
    task = asyncio.current_task()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGTERM, task.cancel)
    except (NotImplementedError, RuntimeError):
        pass  # no signal handlers on this platform's loop

    async with WishlistScraperService(cfg) as service:
        if args.command == "detail":
            return await service.fetch_detail(args.asin)
        if args.enrich:
            return await service.fetch_listing_enriched(args.url, args.limit)
        return await service.fetch_listing(args.url, args.limit)


def _emit(result: dict, args) -> None:
    records = result.get("records")
    exported = []
    if getattr(args, "output_json", None):
        exported.append(export_json(records if records is not None else [result], args.output_json))
    if getattr(args, "output_csv", None) and records is not None:
        exported.append(export_csv(records, args.output_csv))

    if exported:
        print("\n" + "-" * 40)
        for path in exported:
            print(f"  Exported: {path}")
        print("-" * 40)
    else:
        print(json.dumps(result, ensure_ascii=False, indent=2))


def _serve(cfg: ScraperRunConfig) -> None:
    import uvicorn
    from .api import create_app

    cfg.log_summary(f"http://{cfg.host}:{cfg.port}")
    uvicorn.run(create_app(WishlistScraperService(cfg)), host=cfg.host, port=cfg.port)


# ---------------------------------------------------------------------------
# Flag-driven entry point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='python -m wishlist_scraper',
        description='Wishlist scraper - Playwright listing extraction with product-page enrichment',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m wishlist_scraper listing "https://www.amazon.de/hz/wishlist/ls/XXXX?viewType=list"
  python -m wishlist_scraper listing <url> --limit 10 --enrich --output-csv wishlist.csv
  python -m wishlist_scraper detail B08N5WRWNW
  python -m wishlist_scraper serve --port 3000
        """
    )
    parser.add_argument('--timeout', type=int, help='Navigation timeout in seconds (default: 30)')
    parser.add_argument('--window-size', type=int, help='Detail fetches per batch window (default: 2)')
    parser.add_argument('--window-delay', type=float, help='Pause between batch windows in seconds (default: 1.0)')
    parser.add_argument('--item-delay', type=float, help='Pause after each detail fetch in seconds (default: 0.5)')
    parser.add_argument('--headed', action='store_true', help='Show the browser window')

    sub = parser.add_subparsers(dest='command', required=True)

    listing = sub.add_parser('listing', help='Scrape a wishlist page')
    listing.add_argument('url', help='Wishlist URL')
    listing.add_argument('--limit', type=int, default=0, help='Return only the first N items (default: all)')
    listing.add_argument('--enrich', action='store_true', help='Merge product-page details into each record')
    listing.add_argument('--output-json', type=str, help='JSON output file path')
    listing.add_argument('--output-csv', type=str, help='CSV output file path')

    detail = sub.add_parser('detail', help='Scrape one product page')
    detail.add_argument('asin', help='Product ASIN')
    detail.add_argument('--output-json', type=str, help='JSON output file path')

    serve = sub.add_parser('serve', help='Run the HTTP API')
    serve.add_argument('--host', type=str, help='Bind address (default: 127.0.0.1)')
    serve.add_argument('--port', type=int, help='Port (default: 3000)')

    return parser


def run_cli_with_args(argv=None) -> int:
    """Parse argv, build ScraperRunConfig, run."""
    args = build_parser().parse_args(argv)
    try:
        cfg = ScraperRunConfig.from_cli_args(args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    if args.command == 'serve':
        _serve(cfg)
        return 0

    cfg.log_summary(getattr(args, 'url', None) or getattr(args, 'asin', ''))
    try:
        result = asyncio.run(_run_command(args, cfg))
    except ScraperError as e:
        logger.error(f"{e.error}: {e.details}")
        print(json.dumps(e.to_dict(), ensure_ascii=False), file=sys.stderr)
        return 1
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.warning("Interrupted, browser session closed")
        return 130

    _emit(result, args)
    return 0


if __name__ == '__main__':
    sys.exit(run_cli_with_args())
