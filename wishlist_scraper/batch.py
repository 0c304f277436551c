"""
Batch Enrichment
================
Enriches an ordered sequence of listing records with product-page details
without overwhelming the shared browser or the remote site.

- Records are split into contiguous windows of ``window_size``
- Detail fetches inside a window run concurrently (``asyncio.gather``)
- ``window_delay_s`` pause between windows, none after the last
- ``item_delay_s`` pause after each item's fetch, before its merge
- Output order == input order, whatever order fetches complete in

Item-level failures arrive as empty ``DetailOutcome`` objects and are merged
as "no detail fields".  Anything raised here is a scheduling failure and
aborts the batch.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, List, Sequence

from .detail_extractor import DetailFetcher
from .models import DetailOutcome, ListingRecord, merge_records
from .utils import chunked

logger = logging.getLogger(__name__)


class BatchScheduler:
    """Windowed, paced detail enrichment over one shared session."""

    def __init__(
        self,
        fetcher: DetailFetcher,
        window_size: int = 2,
        window_delay_s: float = 1.0,
        item_delay_s: float = 0.5,
    ):
        if window_size < 1:
            raise ValueError("window_size must be >= 1")
        self.fetcher = fetcher
        self.window_size = window_size
        self.window_delay_s = window_delay_s
        self.item_delay_s = item_delay_s
        self.stats: Dict[str, Any] = {}

    async def enrich(self, records: Sequence[ListingRecord]) -> List[Dict[str, Any]]:
        """Return one merged dict per input record, in input order."""
        self.stats = {
            'records': len(records),
            'enriched': 0,
            'empty': 0,
            'skipped': 0,
            'windows': 0,
        }
        start = time.monotonic()
        windows = list(chunked(records, self.window_size))
        enriched: List[Dict[str, Any]] = []

        for index, window in enumerate(windows):
            merged = await asyncio.gather(*(self._enrich_one(record) for record in window))
            enriched.extend(merged)
            self.stats['windows'] += 1
            logger.debug(f"[BATCH] Window {index + 1}/{len(windows)} done ({len(window)} items)")

            if index < len(windows) - 1 and self.window_delay_s > 0:
                await asyncio.sleep(self.window_delay_s)

        self.stats['elapsed_time'] = time.monotonic() - start
        logger.info(
            f"[BATCH] {self.stats['enriched']} enriched, {self.stats['empty']} empty, "
            f"{self.stats['skipped']} without external id "
            f"({self.stats['windows']} windows, {self.stats['elapsed_time']:.1f}s)"
        )
        return enriched

    async def _enrich_one(self, record: ListingRecord) -> Dict[str, Any]:
        if not record.external_id:
            self.stats['skipped'] += 1
            return merge_records(record)

        outcome: DetailOutcome = await self.fetcher.fetch_outcome(record.external_id)
        if self.item_delay_s > 0:
            await asyncio.sleep(self.item_delay_s)

        if outcome.ok:
            self.stats['enriched'] += 1
        else:
            self.stats['empty'] += 1
        return merge_records(record, outcome)
