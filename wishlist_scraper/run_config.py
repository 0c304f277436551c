"""
Unified Run Configuration
=========================
Single source of truth for ALL scraper defaults and runtime limits.

Every module (CLI, HTTP app, session, stabilizer, batch scheduler) reads from
this object.  CLI flags and ``WISHLIST_SCRAPER_*`` environment variables
populate it.

This eliminates duplicated magic numbers across the codebase.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Canonical defaults: the ONLY place these numbers live
# ---------------------------------------------------------------------------
_DEFAULTS = {
    "headless": True,
    "launch_args": [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-gpu",
        "--disable-dev-shm-usage",
    ],
    "user_agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "viewport_width": 1920,
    "viewport_height": 1080,
    "locale": "en-US",
    # Listing page
    "listing_timeout_ms": 30000,
    "listing_wait_until": "networkidle",
    "item_marker_timeout_ms": 10000,
    # Stabilization
    "scroll_settle_s": 1.0,
    "reveal_settle_s": 2.0,
    "stable_patience": 3,            # consecutive no-growth iterations before stopping
    "max_reveal_iterations": None,   # None = unbounded (caller-bounded)
    "click_timeout_ms": 1500,
    "reveal_selectors": [
        "#wl-see-more",
        "a.wl-see-more",
        ".load-more",
        ".show-more",
        '[class*="load-more"]',
        '[class*="show-more"]',
    ],
    # Detail page
    "detail_url_template": "https://www.amazon.de/-/en/dp/{external_id}",
    "detail_timeout_ms": 30000,
    "detail_wait_until": "domcontentloaded",
    "detail_marker_timeout_ms": 10000,
    "block_detail_resources": True,
    # Batch enrichment
    "batch_window_size": 2,
    "window_delay_s": 1.0,
    "item_delay_s": 0.5,
    # HTTP surface
    "host": "127.0.0.1",
    "port": 3000,
}

_ENV_PREFIX = "WISHLIST_SCRAPER_"


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ScraperRunConfig:
    """
    Unified configuration consumed by every scraper subsystem.

    Populate via:
      - ``ScraperRunConfig()``                 → all defaults
      - ``ScraperRunConfig(window_delay_s=0)``  → override one value
      - ``ScraperRunConfig.from_cli_args(ns)``  → from argparse Namespace
      - ``ScraperRunConfig.from_env()``         → from WISHLIST_SCRAPER_* vars
    """

    # ---- Browser ----
    headless: bool = _DEFAULTS["headless"]
    launch_args: List[str] = field(default_factory=lambda: list(_DEFAULTS["launch_args"]))
    user_agent: str = _DEFAULTS["user_agent"]
    viewport_width: int = _DEFAULTS["viewport_width"]
    viewport_height: int = _DEFAULTS["viewport_height"]
    locale: str = _DEFAULTS["locale"]

    # ---- Listing page ----
    listing_timeout_ms: int = _DEFAULTS["listing_timeout_ms"]
    listing_wait_until: str = _DEFAULTS["listing_wait_until"]
    item_marker_timeout_ms: int = _DEFAULTS["item_marker_timeout_ms"]

    # ---- Stabilization ----
    scroll_settle_s: float = _DEFAULTS["scroll_settle_s"]
    reveal_settle_s: float = _DEFAULTS["reveal_settle_s"]
    stable_patience: int = _DEFAULTS["stable_patience"]
    max_reveal_iterations: Optional[int] = _DEFAULTS["max_reveal_iterations"]
    click_timeout_ms: int = _DEFAULTS["click_timeout_ms"]
    reveal_selectors: List[str] = field(default_factory=lambda: list(_DEFAULTS["reveal_selectors"]))

    # ---- Detail page ----
    detail_url_template: str = _DEFAULTS["detail_url_template"]
    detail_timeout_ms: int = _DEFAULTS["detail_timeout_ms"]
    detail_wait_until: str = _DEFAULTS["detail_wait_until"]
    detail_marker_timeout_ms: int = _DEFAULTS["detail_marker_timeout_ms"]
    block_detail_resources: bool = _DEFAULTS["block_detail_resources"]

    # ---- Batch enrichment ----
    batch_window_size: int = _DEFAULTS["batch_window_size"]
    window_delay_s: float = _DEFAULTS["window_delay_s"]
    item_delay_s: float = _DEFAULTS["item_delay_s"]

    # ---- HTTP surface ----
    host: str = _DEFAULTS["host"]
    port: int = _DEFAULTS["port"]

    def __post_init__(self):
        if self.batch_window_size < 1:
            raise ValueError("batch_window_size must be >= 1")
        if self.stable_patience < 1:
            raise ValueError("stable_patience must be >= 1")
        if "{external_id}" not in self.detail_url_template:
            raise ValueError("detail_url_template must contain '{external_id}'")

    # -----------------------------------------------------------------------
    # Factory helpers
    # -----------------------------------------------------------------------
    @classmethod
    def from_cli_args(cls, args) -> "ScraperRunConfig":
        """Build config from an argparse Namespace (``__main__.py``)."""
        base = cls.from_env()
        timeout = getattr(args, "timeout", None)
        if timeout:
            base.listing_timeout_ms = timeout * 1000
            base.detail_timeout_ms = timeout * 1000
        overrides = {
            "batch_window_size": getattr(args, "window_size", None),
            "window_delay_s": getattr(args, "window_delay", None),
            "item_delay_s": getattr(args, "item_delay", None),
            "host": getattr(args, "host", None),
            "port": getattr(args, "port", None),
        }
        for name, value in overrides.items():
            if value is not None:
                setattr(base, name, value)
        if getattr(args, "headed", False):
            base.headless = False
        if base.batch_window_size < 1:
            raise ValueError("--window-size must be >= 1")
        return base

    @classmethod
    def from_env(cls, environ=None) -> "ScraperRunConfig":
        """Build config from ``WISHLIST_SCRAPER_*`` environment variables."""
        environ = os.environ if environ is None else environ
        kwargs = {}
        casts = {
            "headless": _env_bool,
            "user_agent": str,
            "listing_timeout_ms": int,
            "item_marker_timeout_ms": int,
            "scroll_settle_s": float,
            "reveal_settle_s": float,
            "stable_patience": int,
            "max_reveal_iterations": int,
            "detail_url_template": str,
            "detail_timeout_ms": int,
            "detail_marker_timeout_ms": int,
            "block_detail_resources": _env_bool,
            "batch_window_size": int,
            "window_delay_s": float,
            "item_delay_s": float,
            "host": str,
            "port": int,
        }
        for name, cast in casts.items():
            raw = environ.get(_ENV_PREFIX + name.upper())
            if raw is None or raw == "":
                continue
            try:
                kwargs[name] = cast(raw)
            except ValueError:
                logger.warning(f"[CONFIG] Ignoring invalid {_ENV_PREFIX}{name.upper()}={raw!r}")
        return cls(**kwargs)

    # -----------------------------------------------------------------------
    # Logging helper
    # -----------------------------------------------------------------------
    def log_summary(self, target: str = "") -> None:
        """Emit a structured summary to the logger."""
        logger.info("=" * 60)
        logger.info("SCRAPER RUN CONFIG")
        logger.info("=" * 60)
        if target:
            logger.info(f"  Target:           {target}")
        logger.info(f"  Headless:         {self.headless}")
        logger.info(f"  Listing Timeout:  {self.listing_timeout_ms} ms ({self.listing_wait_until})")
        logger.info(f"  Detail Timeout:   {self.detail_timeout_ms} ms ({self.detail_wait_until})")
        logger.info(f"  Patience:         {self.stable_patience} stable iterations")
        if self.max_reveal_iterations:
            logger.info(f"  Max Iterations:   {self.max_reveal_iterations}")
        logger.info(f"  Batch Window:     {self.batch_window_size} items")
        logger.info(f"  Window Delay:     {self.window_delay_s}s")
        logger.info(f"  Item Delay:       {self.item_delay_s}s")
        logger.info(f"  Detail URL:       {self.detail_url_template}")
        logger.info("=" * 60)
