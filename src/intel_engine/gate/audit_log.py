"""
In-memory audit log of quality gate evaluations.

Stores recent gate results that did not cleanly pass so that reporting
tooling can inspect why evidence was downgraded or hidden.
"""

import logging
import threading
import time
import uuid
from collections import deque
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Union

from ..types import GateLogEntry, GateVisibility, QualityGateScores, coerce_enum

logger = logging.getLogger(__name__)

MAX_LOG_ENTRIES = 500
DEFAULT_LIST_LIMIT = 50


def _create_id() -> str:
    return f"gate-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


class GateAuditLog:
    """
    Thread-safe circular buffer for gate log entries.

    Newest entries sit at the left; once the buffer is full the oldest entry
    is dropped on each record().
    """

    def __init__(self, max_size: int = MAX_LOG_ENTRIES):
        self.max_size = max_size
        self._buffer: deque = deque(maxlen=max_size)
        self._lock = threading.RLock()
        self._total_recorded = 0

    def record(
        self,
        source: str,
        visibility: Union[GateVisibility, str],
        weighted_score: float,
        blockers: Sequence[str],
        scores: QualityGateScores
    ) -> GateLogEntry:
        """Store one gate evaluation and return the stored entry."""
        entry = GateLogEntry(
            id=_create_id(),
            created_at=datetime.now(),
            source=source,
            visibility=coerce_enum(GateVisibility, visibility),
            weighted_score=weighted_score,
            blockers=tuple(blockers),
            scores=scores,
        )

        with self._lock:
            self._buffer.appendleft(entry)
            self._total_recorded += 1

        return entry

    def list(
        self,
        limit: int = DEFAULT_LIST_LIMIT,
        visibility: Optional[Union[GateVisibility, str]] = None,
        source: Optional[str] = None
    ) -> List[GateLogEntry]:
        """
        Get the most recent entries, newest first.

        Args:
            limit: Maximum entries returned, clamped to [1, max_size]
            visibility: Only entries with this visibility
            source: Only entries from this source

        Returns:
            List of entries (copies; the buffer itself is never exposed)
        """
        try:
            safe_limit = max(1, min(int(limit), self.max_size))
        except (TypeError, ValueError, OverflowError):
            safe_limit = DEFAULT_LIST_LIMIT

        with self._lock:
            entries = list(self._buffer)

        if visibility is not None:
            wanted = coerce_enum(GateVisibility, visibility)
            entries = [e for e in entries if e.visibility == wanted]

        if source is not None:
            entries = [e for e in entries if e.source == source]

        return [replace(e, blockers=tuple(e.blockers)) for e in entries[:safe_limit]]

    def get_stats(self) -> Dict:
        """Get audit log statistics."""
        with self._lock:
            entries = list(self._buffer)
            total_recorded = self._total_recorded

        by_visibility = {v.value: 0 for v in GateVisibility}
        for entry in entries:
            key = entry.visibility.value if isinstance(entry.visibility, GateVisibility) else str(entry.visibility)
            by_visibility[key] = by_visibility.get(key, 0) + 1

        return {
            "total_entries": len(entries),
            "max_size": self.max_size,
            "total_recorded": total_recorded,
            "by_visibility": by_visibility,
            "buffer_full": len(entries) >= self.max_size,
        }

    def clear(self):
        """Clear the audit log."""
        with self._lock:
            self._buffer.clear()
        logger.info("Gate audit log cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)


# Global gate audit log instance
gate_audit_log = GateAuditLog(max_size=MAX_LOG_ENTRIES)
