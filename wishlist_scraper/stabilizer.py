"""
Listing Stabilization
=====================
Drives a progressively-revealed listing page (infinite scroll / "see more")
until its content stops growing.

Loop, per iteration:
  1. scroll to the current document bottom
  2. wait ``scroll_settle_s``
  3. read ``document.documentElement.scrollHeight``
  4. if a visible reveal control exists, click it and wait ``reveal_settle_s``

The loop ends once the height has been unchanged for ``patience`` consecutive
iterations.  Any height change resets that counter, so a page whose height
oscillates keeps the loop running; bounding such pages is the caller's job
via ``max_iterations``.

This module does NOT own Playwright lifecycle or page navigation.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from .errors import NoItemsFound

logger = logging.getLogger(__name__)

SCROLL_TO_BOTTOM_JS = "() => window.scrollTo(0, document.documentElement.scrollHeight)"
SCROLL_HEIGHT_JS = "() => document.documentElement.scrollHeight"

# Stop reasons
STOP_STABLE = "stable"
STOP_SINGLE_PASS = "single_pass"
STOP_MAX_ITERATIONS = "max_iterations"


@dataclass
class StabilizationResult:
    """Returned by ``stabilize_listing`` to the caller."""
    iterations: int = 0
    final_height: int = 0
    reveal_clicks: int = 0
    stopped_reason: str = ""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def stabilize_listing(
    page,
    *,
    patience: int = 3,
    scroll_settle_s: float = 1.0,
    reveal_settle_s: float = 2.0,
    single_pass: bool = False,
    max_iterations: Optional[int] = None,
    reveal_selectors: Optional[Sequence[str]] = None,
    click_timeout_ms: int = 1500,
) -> StabilizationResult:
    """
    Reveal all lazily-loaded listing content on an already-navigated ``page``.

    Args:
        page:              Playwright Page object (already navigated).
        patience:          Consecutive no-growth iterations before stopping.
        scroll_settle_s:   Pause after each scroll.
        reveal_settle_s:   Pause after activating a reveal control.
        single_pass:       Run exactly one iteration (result limit requested).
        max_iterations:    Optional caller bound; None = until stable.
        reveal_selectors:  CSS selectors for "see more" style controls.
        click_timeout_ms:  Timeout for each reveal click.

    Returns:
        ``StabilizationResult`` with counters.
    """
    selectors: List[str] = list(reveal_selectors or [])
    result = StabilizationResult()
    last_height: Optional[int] = None
    no_growth = 0

    while True:
        result.iterations += 1

        await page.evaluate(SCROLL_TO_BOTTOM_JS)
        await asyncio.sleep(scroll_settle_s)
        height = await page.evaluate(SCROLL_HEIGHT_JS)

        if await _activate_reveal_control(page, selectors, click_timeout_ms):
            result.reveal_clicks += 1
            await asyncio.sleep(reveal_settle_s)

        if last_height is not None and height == last_height:
            no_growth += 1
        else:
            no_growth = 0
        last_height = height
        result.final_height = height

        if single_pass:
            result.stopped_reason = STOP_SINGLE_PASS
            break
        if no_growth >= patience:
            result.stopped_reason = STOP_STABLE
            break
        if max_iterations and result.iterations >= max_iterations:
            result.stopped_reason = STOP_MAX_ITERATIONS
            break

    logger.info(
        f"[STABILIZE] {result.stopped_reason} after {result.iterations} iterations "
        f"(height={result.final_height}, reveal clicks={result.reveal_clicks})"
    )
    return result


async def wait_for_items(page, selector: str, timeout_ms: int) -> None:
    """Fail the listing fetch if no item marker is present after ``timeout_ms``."""
    try:
        await page.wait_for_selector(selector, state="attached", timeout=timeout_ms)
    except PlaywrightTimeout as e:
        raise NoItemsFound(
            f"No element matching '{selector}' appeared within {timeout_ms} ms"
        ) from e


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------

async def _activate_reveal_control(page, selectors: Sequence[str], click_timeout_ms: int) -> bool:
    """Click the first visible reveal control. Returns True if one was clicked."""
    for selector in selectors:
        try:
            element = await page.query_selector(selector)
            if element is None or not await element.is_visible():
                continue
            await element.click(timeout=click_timeout_ms)
            logger.debug(f"[STABILIZE] Clicked reveal control '{selector}'")
            return True
        except PlaywrightError as e:
            # Detached or covered controls are skipped, the next selector may work
            logger.debug(f"[STABILIZE] Reveal control '{selector}' not clickable: {e}")
    return False
