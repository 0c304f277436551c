"""
Wishlist Scraper - Streamlit Frontend
Scrape a wishlist, optionally enrich each item from its product page, and
download the records.
"""

import asyncio
import json
import logging
from datetime import datetime
from io import StringIO

import pandas as pd
import streamlit as st

from wishlist_scraper.errors import ScraperError
from wishlist_scraper.exporter import to_flat_dict
from wishlist_scraper.run_config import ScraperRunConfig
from wishlist_scraper.service import WishlistScraperService
from wishlist_scraper.utils import is_valid_url

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Page configuration
st.set_page_config(
    page_title="Wishlist Scraper",
    page_icon="🛒",
    layout="wide",
    initial_sidebar_state="expanded"
)


def init_session_state():
    """Initialize session state variables."""
    if 'records' not in st.session_state:
        st.session_state.records = None
    if 'scrape_error' not in st.session_state:
        st.session_state.scrape_error = None


def render_sidebar() -> ScraperRunConfig:
    """Render sidebar settings and return the resulting config."""
    st.sidebar.markdown("## ⚙️ Settings")
    base = ScraperRunConfig.from_env()

    timeout = st.sidebar.number_input(
        "Navigation timeout (seconds)",
        min_value=5, max_value=120,
        value=base.listing_timeout_ms // 1000, step=5,
    )
    window_size = st.sidebar.number_input(
        "Detail pages per batch",
        min_value=1, max_value=10,
        value=base.batch_window_size,
        help="Product pages fetched concurrently during enrichment",
    )
    window_delay = st.sidebar.slider(
        "Pause between batches (seconds)",
        min_value=0.0, max_value=5.0,
        value=float(base.window_delay_s), step=0.5,
    )

    base.listing_timeout_ms = int(timeout) * 1000
    base.detail_timeout_ms = int(timeout) * 1000
    base.batch_window_size = int(window_size)
    base.window_delay_s = float(window_delay)
    return base


async def _scrape(config: ScraperRunConfig, url: str, limit: int, enrich: bool) -> list:
    async with WishlistScraperService(config) as service:
        if enrich:
            result = await service.fetch_listing_enriched(url, limit)
        else:
            result = await service.fetch_listing(url, limit)
    return result["records"]


def export_to_csv(records: list) -> str:
    df = pd.DataFrame([to_flat_dict(r) for r in records])
    buffer = StringIO()
    df.to_csv(buffer, index=False)
    return buffer.getvalue()


def render_results(records: list):
    """Render the scraped records and download buttons."""
    st.markdown(f"### 🧾 {len(records)} items")
    if not records:
        st.info("The wishlist has no items with an identifier.")
        return

    df = pd.DataFrame([to_flat_dict(r) for r in records])
    st.dataframe(df, width="stretch")

    stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    col1, col2 = st.columns(2)
    with col1:
        st.download_button(
            label="📥 Download JSON",
            data=json.dumps({"records": records}, ensure_ascii=False, indent=2),
            file_name=f"wishlist_{stamp}.json",
            mime="application/json"
        )
    with col2:
        st.download_button(
            label="📥 Download CSV",
            data=export_to_csv(records),
            file_name=f"wishlist_{stamp}.csv",
            mime="text/csv"
        )


def main():
    """Main application."""
    init_session_state()

    st.markdown("# 🛒 Wishlist Scraper")
    config = render_sidebar()

    url = st.text_input(
        "Wishlist URL",
        placeholder="https://www.amazon.de/hz/wishlist/ls/XXXXXXXXXXXX?viewType=list",
    )
    col1, col2 = st.columns([1, 1])
    with col1:
        limit = st.number_input("Limit (0 = all items)", min_value=0, value=0, step=1)
    with col2:
        enrich = st.checkbox("Enrich with product details", value=False)

    if st.button("🚀 Scrape", type="primary"):
        if not url or not is_valid_url(url):
            st.error("Please enter a valid wishlist URL")
        else:
            st.session_state.records = None
            st.session_state.scrape_error = None
            try:
                with st.spinner("Scraping in progress..."):
                    st.session_state.records = asyncio.run(
                        _scrape(config, url, int(limit), enrich)
                    )
            except ScraperError as e:
                st.session_state.scrape_error = f"{e.error}: {e.details}"
                logger.exception("Scrape failed")

    if st.session_state.scrape_error:
        st.error(st.session_state.scrape_error)
    if st.session_state.records is not None:
        render_results(st.session_state.records)


if __name__ == "__main__":
    main()
