"""Turn scan events into basket updates.

The scanning facility publishes ``ScanEvent`` objects onto a ``ScanChannel``.
Publishing never blocks; a consumer task drains the channel and hands each
event to a ``ScanProcessor`` which runs normalise → match → add-to-basket and
fires the confirmation cue on a hit. Scans arrive far slower than they are
processed, so the queue is unbounded and there is no backpressure.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, TypeVar

from ..core.scancodes import ScanEvent, normalize_scan_code
from ..schemas.catalog import CatalogItem
from .basket import BasketLine, BasketSession, StockLimitReached
from .matcher import Matchable, match_candidate

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Matchable)

ConfirmationCue = Callable[[CatalogItem], None]


def resolve_scan(raw: str, candidates: Sequence[T]) -> Optional[T]:
    """Normalise ``raw`` and match it against ``candidates``."""

    return match_candidate(normalize_scan_code(raw), candidates)


class ScanOutcomeKind(str, Enum):
    IGNORED = "ignored"
    NO_MATCH = "no_match"
    ADDED = "added"
    MAX_STOCK = "max_stock"


@dataclass
class ScanOutcome:
    kind: ScanOutcomeKind
    key: str
    item: Optional[CatalogItem] = None
    line: Optional[BasketLine] = None
    message: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.item is not None


class ScanProcessor:
    """Apply scans to one basket session."""

    def __init__(self, session: BasketSession, cue: Optional[ConfirmationCue] = None) -> None:
        self.session = session
        self.cue = cue

    def handle(self, event: ScanEvent) -> ScanOutcome:
        key = event.key
        if not key:
            return ScanOutcome(ScanOutcomeKind.IGNORED, key)

        item = match_candidate(key, self.session.catalog)
        if item is None:
            logger.info(
                "scan.no_match",
                extra={"extra_data": {"session_id": self.session.id, "key": key, "source": event.source.value}},
            )
            return ScanOutcome(ScanOutcomeKind.NO_MATCH, key)

        logger.info(
            "scan.matched",
            extra={"extra_data": {"session_id": self.session.id, "key": key, "item_id": item.id}},
        )
        if self.cue is not None:
            self.cue(item)

        with self.session.lock:
            try:
                line = self.session.basket.add_item(item)
            except StockLimitReached as exc:
                return ScanOutcome(ScanOutcomeKind.MAX_STOCK, key, item=item, message=str(exc))
        return ScanOutcome(ScanOutcomeKind.ADDED, key, item=item, line=line)


class ScanChannel:
    """Fire-and-continue queue between the scanner and a ``ScanProcessor``."""

    def __init__(self, processor: ScanProcessor) -> None:
        self.processor = processor
        self._queue: asyncio.Queue[Optional[ScanEvent]] = asyncio.Queue()
        self.outcomes: list[ScanOutcome] = []

    def publish(self, event: ScanEvent) -> None:
        self._queue.put_nowait(event)

    def close(self) -> None:
        """Stop the consumer once the events already queued are processed."""

        self._queue.put_nowait(None)

    async def run(self) -> list[ScanOutcome]:
        while True:
            event = await self._queue.get()
            try:
                if event is None:
                    return self.outcomes
                self.outcomes.append(self.processor.handle(event))
            finally:
                self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()
