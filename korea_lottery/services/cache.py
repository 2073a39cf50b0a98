"""In-memory analysis cache keyed by game, target round and history fingerprint."""

import hashlib
import time
from collections.abc import Callable, Sequence
from typing import Any, NamedTuple

from loguru import logger


class AnalysisKey(NamedTuple):
    game: str
    target_round: int | None
    fingerprint: str


def history_fingerprint(draws: Sequence) -> str:
    """SHA-1 over every round and its drawn values."""
    digest = hashlib.sha1()
    for d in draws:
        group = getattr(d, "group", "")
        digest.update(f"{d.round}:{group}:{','.join(map(str, d.numbers))};".encode())
    return f"{len(draws)}-{digest.hexdigest()}"


class AnalysisCache:
    """TTL cache for computed analyses.

    A new draw changes the history fingerprint, so stale entries are never
    served under a new key; ``invalidate`` drops them eagerly on ingestion.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[AnalysisKey, tuple[float, Any]] = {}

    def get(self, key: AnalysisKey) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            return None
        return value

    def set(self, key: AnalysisKey, value: Any) -> None:
        now = self._clock()
        self._purge_expired(now)
        self._entries[key] = (now, value)

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, (stored_at, _) in self._entries.items() if now - stored_at > self.ttl_seconds]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug("[cache] purged {} expired entries", len(expired))

    def invalidate(self, game: str | None = None) -> int:
        """Drop all entries, or only those of one game. Returns the count dropped."""
        if game is None:
            dropped = len(self._entries)
            self._entries.clear()
        else:
            stale = [k for k in self._entries if k.game == game]
            for k in stale:
                del self._entries[k]
            dropped = len(stale)
        if dropped:
            logger.info("[cache] invalidated {} entries (game={})", dropped, game or "*")
        return dropped

    def __len__(self) -> int:
        return len(self._entries)
