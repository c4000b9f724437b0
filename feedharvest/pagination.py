"""Scroll / extract / dedup loop over an infinite feed.

One run walks IDLE -> EXTRACTING -> DECIDING -> (SCROLLING | DONE) and
cycles through the middle states until a stop condition holds. Every pass
either adds a record or moves the no-progress counter, and the scroll bound
caps the loop on feeds that keep rendering the same posts.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .extractor import extract_records
from .models import ContentRecord, utc_now_iso

log = logging.getLogger(__name__)

NO_PROGRESS_LIMIT = 3
SCROLL_FACTOR = 2
MIN_SCROLLS = 20

STOP_LIMIT = 'limit'
STOP_MAX_SCROLLS = 'max_scrolls'
STOP_NO_PROGRESS = 'no_progress'
STOP_EMPTY = 'empty'


class HarvestState(Enum):
    IDLE = 'idle'
    EXTRACTING = 'extracting'
    DECIDING = 'deciding'
    SCROLLING = 'scrolling'
    DONE = 'done'


def max_scrolls_for(limit: int, factor: int = SCROLL_FACTOR, floor: int = MIN_SCROLLS) -> int:
    return max(limit * factor, floor)


@dataclass
class HarvestSession:
    """accumulated state of one run; thrown away when the run returns"""
    records: Dict[str, ContentRecord] = field(default_factory=dict)
    scroll_count: int = 0
    no_progress: int = 0
    passes: int = 0
    stop_reason: Optional[str] = None

    def add(self, records: Iterable[ContentRecord]) -> int:
        """Append records not seen before, in order. Returns how many were new."""
        added = 0
        for record in records:
            if record.id in self.records:
                continue
            self.records[record.id] = record
            added += 1
        self.passes += 1
        if added:
            self.no_progress = 0
        else:
            self.no_progress += 1
        return added

    def result(self, limit: int) -> List[ContentRecord]:
        return list(self.records.values())[:limit]

    def __len__(self) -> int:
        return len(self.records)


class PaginationController:
    def __init__(self, page, settle_ms: int = 1000,
                 no_progress_limit: int = NO_PROGRESS_LIMIT,
                 scroll_factor: int = SCROLL_FACTOR,
                 min_scrolls: int = MIN_SCROLLS):
        self.page = page
        self.settle_ms = settle_ms
        self.no_progress_limit = no_progress_limit
        self.scroll_factor = scroll_factor
        self.min_scrolls = min_scrolls
        self.state = HarvestState.IDLE
        self.session: Optional[HarvestSession] = None

    def decide(self, session: HarvestSession, limit: int) -> Optional[str]:
        """stop reason if the run is over, else None"""
        if len(session) >= limit:
            return STOP_LIMIT
        if session.scroll_count >= max_scrolls_for(limit, self.scroll_factor, self.min_scrolls):
            return STOP_MAX_SCROLLS
        if session.no_progress >= self.no_progress_limit:
            return STOP_NO_PROGRESS
        return None

    async def extract_pass(self, session: HarvestSession) -> int:
        tree = await self.page.snapshot()
        records = extract_records(tree, utc_now_iso())
        added = session.add(records)
        log.info(f"pass {session.passes}: found {len(records)} posts, {added} new, "
                 f"total {len(session)}")
        return added

    async def scroll(self, session: HarvestSession) -> None:
        await self.page.scroll_to_bottom()
        await self.page.wait_for(self.settle_ms)
        session.scroll_count += 1

    async def run(self, limit: int) -> List[ContentRecord]:
        """Harvest up to ``limit`` unique records from the page.

        Page errors propagate; a run that returns has always reached DONE.
        """
        session = HarvestSession()
        self.session = session
        self.state = HarvestState.EXTRACTING

        while self.state is not HarvestState.DONE:
            if self.state is HarvestState.EXTRACTING:
                await self.extract_pass(session)
                self.state = HarvestState.DECIDING
            elif self.state is HarvestState.DECIDING:
                session.stop_reason = self.decide(session, limit)
                if session.stop_reason:
                    self.state = HarvestState.DONE
                else:
                    self.state = HarvestState.SCROLLING
            elif self.state is HarvestState.SCROLLING:
                await self.scroll(session)
                self.state = HarvestState.EXTRACTING

        log.info(f"stopped ({session.stop_reason}) after {session.scroll_count} scrolls: "
                 f"{len(session)} unique posts")
        return session.result(limit)
