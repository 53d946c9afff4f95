"""
Per pair/timeframe decision cache.

Keeps the latest IntelDecisionOutput for each (pair, timeframe, fingerprint)
for a short TTL so repeated refreshes reuse one fusion result. The TTL follows the
policy's quality_gate.cache_ttl_sec unless fixed at construction.
"""

import copy
import logging
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from ..config.policy import PolicyConfiguration, get_policy_configuration
from ..types import IntelDecisionOutput

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str, str]


def _cache_key(pair: str, timeframe: str, fingerprint: str = "") -> CacheKey:
    return (str(pair).strip().upper(), str(timeframe).strip().lower(), str(fingerprint))


class DecisionCache:
    """Thread-safe TTL cache of fused decisions."""

    def __init__(
        self,
        ttl_sec: Optional[float] = None,
        policy: Optional[PolicyConfiguration] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize decision cache.

        Args:
            ttl_sec: Fixed TTL in seconds (policy cache_ttl_sec if None)
            policy: Policy configuration consulted for the TTL
            clock: Monotonic clock, injectable for tests
        """
        self._ttl_sec = ttl_sec
        self.policy = policy if policy is not None else get_policy_configuration()
        self._clock = clock
        self._entries: Dict[CacheKey, Tuple[float, IntelDecisionOutput]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @property
    def ttl_sec(self) -> float:
        if self._ttl_sec is not None:
            return max(0.0, self._ttl_sec)
        return max(0.0, self.policy.get().quality_gate.cache_ttl_sec)

    def get(self, pair: str, timeframe: str, fingerprint: str = "") -> Optional[IntelDecisionOutput]:
        """Cached decision if still fresh, else None."""
        key = _cache_key(pair, timeframe, fingerprint)
        ttl = self.ttl_sec
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._clock() - entry[0] >= ttl:
                if entry is not None:
                    del self._entries[key]
                self.misses += 1
                return None
            self.hits += 1
            return copy.deepcopy(entry[1])

    def put(self, pair: str, timeframe: str, decision: IntelDecisionOutput, fingerprint: str = "") -> None:
        """Store a decision for (pair, timeframe, fingerprint), dropping expired entries."""
        ttl = self.ttl_sec
        with self._lock:
            now = self._clock()
            expired = [key for key, (stored_at, _) in self._entries.items() if now - stored_at >= ttl]
            for key in expired:
                del self._entries[key]
            self._entries[_cache_key(pair, timeframe, fingerprint)] = (now, copy.deepcopy(decision))

    def get_or_compute(
        self,
        pair: str,
        timeframe: str,
        compute: Callable[[], IntelDecisionOutput],
        fingerprint: str = ""
    ) -> Tuple[IntelDecisionOutput, bool]:
        """
        Return (decision, cached) using the cache or ``compute``.

        ``compute`` runs outside the lock. ``fingerprint`` identifies the inputs
        behind the decision; a different fingerprint never hits.
        """
        cached = self.get(pair, timeframe, fingerprint)
        if cached is not None:
            return cached, True
        decision = compute()
        self.put(pair, timeframe, decision, fingerprint)
        return decision, False

    def invalidate(self, pair: str, timeframe: str) -> bool:
        """Drop every cached decision for (pair, timeframe)."""
        prefix = _cache_key(pair, timeframe)[:2]
        with self._lock:
            keys = [key for key in self._entries if key[:2] == prefix]
            for key in keys:
                del self._entries[key]
        return bool(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("Decision cache cleared")

    def get_stats(self) -> Dict:
        with self._lock:
            return {
                "entries": len(self._entries),
                "ttl_sec": self.ttl_sec,
                "hits": self.hits,
                "misses": self.misses,
            }
