"""
Tests for run_config.py: defaults, validation, environment and CLI overrides.
"""

import argparse
import logging
import os

import pytest

from wishlist_scraper.run_config import ScraperRunConfig


# ====================================================================
# 1. Defaults and validation
# ====================================================================

class TestDefaults:

    def test_defaults(self):
        cfg = ScraperRunConfig()
        assert cfg.headless is True
        assert cfg.stable_patience == 3
        assert cfg.batch_window_size == 2
        assert cfg.window_delay_s == 1.0
        assert cfg.item_delay_s == 0.5
        assert cfg.listing_wait_until == "networkidle"
        assert cfg.detail_wait_until == "domcontentloaded"
        assert cfg.listing_timeout_ms == 30000
        assert cfg.detail_timeout_ms == 30000
        assert cfg.port == 3000

    def test_list_defaults_not_shared(self):
        first, second = ScraperRunConfig(), ScraperRunConfig()
        first.launch_args.append("--mute-audio")
        assert "--mute-audio" not in second.launch_args

    @pytest.mark.parametrize("overrides", [
        {"batch_window_size": 0},
        {"stable_patience": 0},
        {"detail_url_template": "https://www.amazon.de/dp/"},
    ])
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValueError):
            ScraperRunConfig(**overrides)


# ====================================================================
# 2. Environment
# ====================================================================

class TestFromEnv:

    def test_empty_environment(self):
        assert ScraperRunConfig.from_env({}) == ScraperRunConfig()

    def test_values_cast(self):
        cfg = ScraperRunConfig.from_env({
            "WISHLIST_SCRAPER_HEADLESS": "false",
            "WISHLIST_SCRAPER_BATCH_WINDOW_SIZE": "4",
            "WISHLIST_SCRAPER_WINDOW_DELAY_S": "0.25",
            "WISHLIST_SCRAPER_MAX_REVEAL_ITERATIONS": "20",
            "WISHLIST_SCRAPER_DETAIL_URL_TEMPLATE": "https://www.amazon.com/dp/{external_id}",
            "WISHLIST_SCRAPER_BLOCK_DETAIL_RESOURCES": "0",
        })
        assert cfg.headless is False
        assert cfg.batch_window_size == 4
        assert cfg.window_delay_s == 0.25
        assert cfg.max_reveal_iterations == 20
        assert cfg.detail_url_template == "https://www.amazon.com/dp/{external_id}"
        assert cfg.block_detail_resources is False

    def test_invalid_value_ignored(self, caplog):
        with caplog.at_level(logging.WARNING, logger="wishlist_scraper.run_config"):
            cfg = ScraperRunConfig.from_env({"WISHLIST_SCRAPER_PORT": "http"})
        assert cfg.port == 3000
        assert "WISHLIST_SCRAPER_PORT" in caplog.text

    def test_blank_value_ignored(self):
        cfg = ScraperRunConfig.from_env({"WISHLIST_SCRAPER_ITEM_DELAY_S": ""})
        assert cfg.item_delay_s == 0.5


# ====================================================================
# 3. CLI
# ====================================================================

class TestFromCliArgs:

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in list(os.environ):
            if name.startswith("WISHLIST_SCRAPER_"):
                monkeypatch.delenv(name)

    def test_no_flags(self):
        assert ScraperRunConfig.from_cli_args(argparse.Namespace()) == ScraperRunConfig()

    def test_flags_override(self):
        args = argparse.Namespace(
            timeout=45, window_size=3, window_delay=2.0, item_delay=0.0,
            host="0.0.0.0", port=8080, headed=True,
        )
        cfg = ScraperRunConfig.from_cli_args(args)
        assert cfg.listing_timeout_ms == 45000
        assert cfg.detail_timeout_ms == 45000
        assert cfg.batch_window_size == 3
        assert cfg.window_delay_s == 2.0
        assert cfg.item_delay_s == 0.0
        assert cfg.host == "0.0.0.0"
        assert cfg.port == 8080
        assert cfg.headless is False

    def test_flags_win_over_environment(self, monkeypatch):
        monkeypatch.setenv("WISHLIST_SCRAPER_BATCH_WINDOW_SIZE", "5")
        cfg = ScraperRunConfig.from_cli_args(argparse.Namespace(window_size=1))
        assert cfg.batch_window_size == 1

    def test_invalid_window_size(self):
        with pytest.raises(ValueError):
            ScraperRunConfig.from_cli_args(argparse.Namespace(window_size=0))
