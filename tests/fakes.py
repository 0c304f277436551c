"""
Browser stand-ins for the test suite.

Nothing here launches Chromium.  Three layers are faked:

- ``FakePage``: a navigated Playwright page (scroll height, reveal controls,
  item marker, HTML snapshot)
- ``FakeSession``: ``BrowserSession`` routing URLs to fake pages
- ``FakePlaywright`` and friends: the objects ``async_playwright()`` hands
  back, for exercising the real ``BrowserSession``
"""

import asyncio
import html as html_lib
import json
from contextlib import asynccontextmanager
from pathlib import Path
from types import SimpleNamespace

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from wishlist_scraper.errors import NavigationTimeout
from wishlist_scraper.run_config import ScraperRunConfig
from wishlist_scraper.session import NO_FILTER
from wishlist_scraper.stabilizer import SCROLL_HEIGHT_JS, SCROLL_TO_BOTTOM_JS

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


def fast_config(**overrides) -> ScraperRunConfig:
    """Config with every pause set to zero."""
    values = dict(
        scroll_settle_s=0,
        reveal_settle_s=0,
        window_delay_s=0,
        item_delay_s=0,
    )
    values.update(overrides)
    return ScraperRunConfig(**values)


# ---------------------------------------------------------------------------
# Listing HTML builders
# ---------------------------------------------------------------------------

def wishlist_item(
    item_id=None,
    asin=None,
    title=None,
    whole=None,
    fraction=None,
    symbol=None,
    shipping=None,
    img=None,
    params=None,
) -> str:
    """One ``li[data-id]`` the way the wishlist renders it."""
    attrs = ['data-id="row"']
    if item_id is not None:
        attrs.append(f'data-itemid="{item_id}"')
    if params is None and asin is not None:
        params = json.dumps({"itemExternalId": f"ASIN:{asin}|A1PA6795UKMFR9", "listType": "WISHLIST"})
    if params is not None:
        attrs.append(f'data-reposition-action-params="{html_lib.escape(params, quote=True)}"')

    parts = []
    if img:
        parts.append(f'<img src="{img}" alt="">')
    if title:
        parts.append(f'<h2 class="a-size-base"><a class="a-link-normal">{title}</a></h2>')
    price = []
    if symbol:
        price.append(f'<span class="a-price-symbol">{symbol}</span>')
    if whole:
        price.append(f'<span class="a-price-whole">{whole}</span>')
    if fraction:
        price.append(f'<span class="a-price-fraction">{fraction}</span>')
    if price:
        parts.append(f'<span class="a-price">{"".join(price)}</span>')
    if shipping:
        parts.append(f'<span class="a-color-secondary a-size-small">{shipping}</span>')

    return f'<li {" ".join(attrs)}>{"".join(parts)}</li>'


def wishlist_page(*items: str) -> str:
    return (
        '<html><body><div id="wishlist-page">'
        f'<ul id="g-items">{"".join(items)}</ul>'
        '</div></body></html>'
    )


# ---------------------------------------------------------------------------
# Page-level fakes
# ---------------------------------------------------------------------------

class FakeElement:
    """A reveal control."""

    def __init__(self, visible=True, fail=False):
        self.visible = visible
        self.fail = fail
        self.clicks = 0

    async def is_visible(self):
        return self.visible

    async def click(self, timeout=None):
        if self.fail:
            raise PlaywrightError("Element is not attached to the DOM")
        self.clicks += 1


class FakePage:
    """
    A navigated page.  ``heights`` is consumed one value per height read; the
    last value repeats once the list is exhausted.
    """

    def __init__(self, html="", heights=None, controls=None, has_items=True):
        self.html = html
        self.heights = list(heights or [1000])
        self.controls = dict(controls or {})
        self.has_items = has_items
        self.height_reads = 0
        self.scrolls = 0
        self.content_reads = 0
        self.waited_selectors = []

    async def evaluate(self, script, arg=None):
        if script == SCROLL_TO_BOTTOM_JS:
            self.scrolls += 1
            return None
        if script == SCROLL_HEIGHT_JS:
            index = min(self.height_reads, len(self.heights) - 1)
            self.height_reads += 1
            return self.heights[index]
        raise AssertionError(f"unexpected script: {script}")

    async def query_selector(self, selector):
        return self.controls.get(selector)

    async def wait_for_selector(self, selector, state=None, timeout=None):
        self.waited_selectors.append(selector)
        if not self.has_items:
            raise PlaywrightTimeout(f"Timeout {timeout}ms exceeded.")

    async def content(self):
        self.content_reads += 1
        return self.html


class FakeHandle:
    def __init__(self, session, resource_filter):
        self.session = session
        self.resource_filter = resource_filter
        self.page = None
        self.closed = False

    async def navigate(self, url, readiness="networkidle", timeout_ms=None):
        self.session.navigations.append((url, readiness, timeout_ms))
        delay = self.session.delays.get(url, 0)
        if delay:
            await asyncio.sleep(delay)
        target = self.session.pages.get(url)
        if target is None:
            raise NavigationTimeout(f"{url} did not reach '{readiness}' within {timeout_ms} ms")
        if isinstance(target, BaseException):
            raise target
        self.page = target

    async def content(self):
        return await self.page.content()


class FakeSession:
    """``BrowserSession`` stand-in: URL → FakePage (or exception to raise)."""

    def __init__(self, pages=None, config=None, delays=None, launch_error=None):
        self.config = config or fast_config()
        self.pages = dict(pages or {})
        self.delays = dict(delays or {})
        self.launch_error = launch_error
        self.navigations = []
        self.handles = []
        self.filters = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.shutdown_calls = 0

    @property
    def is_running(self):
        return bool(self.handles) and self.shutdown_calls == 0

    @asynccontextmanager
    async def open_page(self, resource_filter=NO_FILTER):
        if self.launch_error is not None:
            raise self.launch_error
        handle = FakeHandle(self, resource_filter)
        self.handles.append(handle)
        self.filters.append(resource_filter)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            yield handle
        finally:
            self.in_flight -= 1
            handle.closed = True

    async def shutdown(self):
        self.shutdown_calls += 1


# ---------------------------------------------------------------------------
# Playwright-level fakes (for the real BrowserSession)
# ---------------------------------------------------------------------------

class FakeRoute:
    def __init__(self, resource_type, url="https://www.amazon.de/asset"):
        self.request = SimpleNamespace(resource_type=resource_type, url=url)
        self.aborted = False
        self.continued = False

    async def abort(self):
        self.aborted = True

    async def continue_(self):
        self.continued = True


class FakePlaywrightPage:
    def __init__(self, goto_error=None, html="<html></html>"):
        self.goto_error = goto_error
        self.html = html
        self.visited = []

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append((url, wait_until, timeout))
        if self.goto_error is not None:
            raise self.goto_error
        return SimpleNamespace(status=200)

    async def content(self):
        return self.html


class FakeContext:
    def __init__(self, page, **kwargs):
        self.kwargs = kwargs
        self.page = page
        self.routes = []
        self.closed = False

    async def route(self, pattern, handler):
        self.routes.append((pattern, handler))

    async def new_page(self):
        return self.page

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, owner):
        self.owner = owner
        self.contexts = []
        self.closed = False
        self.connected = True

    def is_connected(self):
        return self.connected and not self.closed

    async def new_context(self, **kwargs):
        context = FakeContext(FakePlaywrightPage(goto_error=self.owner.goto_error), **kwargs)
        self.contexts.append(context)
        return context

    async def close(self):
        self.closed = True
        if self.owner.close_error is not None:
            raise self.owner.close_error


class FakeChromium:
    def __init__(self, owner):
        self.owner = owner

    async def launch(self, headless=True, args=None):
        self.owner.launches.append({"headless": headless, "args": list(args or [])})
        await asyncio.sleep(0)
        if self.owner.launch_error is not None:
            raise self.owner.launch_error
        browser = FakeBrowser(self.owner)
        self.owner.browsers.append(browser)
        return browser


class FakePlaywright:
    def __init__(self, launch_error=None, close_error=None, goto_error=None):
        self.launch_error = launch_error
        self.close_error = close_error
        self.goto_error = goto_error
        self.launches = []
        self.browsers = []
        self.starts = 0
        self.stops = 0
        self.chromium = FakeChromium(self)

    def factory(self):
        """Drop-in for ``async_playwright``."""
        return _FakePlaywrightStarter(self)

    async def stop(self):
        self.stops += 1


class _FakePlaywrightStarter:
    def __init__(self, playwright):
        self.playwright = playwright

    async def start(self):
        self.playwright.starts += 1
        return self.playwright
