from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Iterable, Optional

from ..schemas.catalog import CatalogItem
from .basket import BasketSession

logger = logging.getLogger(__name__)


class BasketSessionRegistry:
    """Open basket sessions for this process, keyed by session id.

    Each POS screen opens its own session so two operators never share an
    aggregator. Sessions idle for longer than ``idle_seconds`` are dropped the
    next time the registry is used, along with their catalog snapshot.
    """

    def __init__(self, idle_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic) -> None:
        self._sessions: dict[str, BasketSession] = {}
        self._lock = threading.Lock()
        self.idle_seconds = idle_seconds
        self._clock = clock

    def _prune(self) -> None:
        if not self.idle_seconds:
            return
        cutoff = self._clock() - self.idle_seconds
        expired = [sid for sid, session in self._sessions.items() if session.last_used < cutoff]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.info("basket.sessions_expired", extra={"extra_data": {"session_ids": expired}})

    def open(self, catalog: Iterable[CatalogItem]) -> BasketSession:
        session = BasketSession(catalog)
        session.last_used = self._clock()
        with self._lock:
            self._prune()
            self._sessions[session.id] = session
        logger.info(
            "basket.session_opened",
            extra={"extra_data": {"session_id": session.id, "catalog_size": len(session.catalog)}},
        )
        return session

    def get(self, session_id: str) -> Optional[BasketSession]:
        with self._lock:
            self._prune()
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_used = self._clock()
        return session

    def close(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def release_record(self, record_id: str) -> int:
        """Clear every session editing ``record_id``; returns how many were cleared."""

        with self._lock:
            sessions = [s for s in self._sessions.values() if s.editing_record_id == record_id]
        for session in sessions:
            with session.lock:
                if session.editing_record_id == record_id:
                    session.clear()
        if sessions:
            logger.info(
                "basket.record_released",
                extra={"extra_data": {"record_id": record_id, "sessions": [s.id for s in sessions]}},
            )
        return len(sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
