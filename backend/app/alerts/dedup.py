"""
dedup.py — Debounce store for near-identical alert submissions.

═══════════════════════════════════════════════════════════════════════════
FINGERPRINT
═══════════════════════════════════════════════════════════════════════════

    "{timestamp}-{lat:.3f}-{lng:.3f}"

Three decimals is roughly 100 m, and the timestamp must match exactly, so
only near-simultaneous submissions for the same place collide (a
double-tap on the client, a retried POST). General abuse protection is
the per-IP rate limiter, not this store.

═══════════════════════════════════════════════════════════════════════════
LIFECYCLE
═══════════════════════════════════════════════════════════════════════════

    fingerprint ──► insertion time (epoch ms)

    • inserted on first sight, never refreshed by later duplicates
    • swept on every check_and_record() call, no background timer
    • bounded: when full, the oldest entry is evicted first

An idle process can therefore keep stale entries until the next alert
arrives; the sweep runs before the lookup, so a stale entry never causes
a rejection.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Optional

from backend.app.alerts.models import DedupDecision, Location, Timestamp

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_MS = 5 * 60 * 1000
DEFAULT_MAX_ENTRIES = 10_000


def epoch_millis() -> float:
    return time.time() * 1000


def fingerprint(timestamp: Timestamp, location: Location) -> str:
    """Derive the dedup key for an alert."""
    stamp = "undefined" if timestamp is None else timestamp
    return f"{stamp}-{location.lat:.3f}-{location.lng:.3f}"


class AlertDeduplicator:
    """
    Time-windowed set of recently seen alert fingerprints.

    One instance is created at startup and shared by all requests;
    check_and_record() and sweep() hold a lock so two concurrent
    submissions of the same fingerprint cannot both pass.

    Parameters
    ----------
    window_ms : float
        Retention window in milliseconds.
    max_entries : int
        Capacity bound.
    clock : callable
        Returns the current time in epoch milliseconds.
    """

    def __init__(
        self,
        *,
        window_ms: float = DEFAULT_WINDOW_MS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Optional[Callable[[], float]] = None,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.window_ms = window_ms
        self.max_entries = max_entries
        self._clock = clock or epoch_millis
        # Entries are never refreshed, so insertion order is age order.
        self._entries: "OrderedDict[str, float]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def check_and_record(self, key: str) -> DedupDecision:
        """Report whether ``key`` was seen inside the window; record it if not."""
        with self._lock:
            now = self._clock()
            self._sweep_locked(now)

            if key in self._entries:
                logger.info("Duplicate alert suppressed: %s", key, extra={"fingerprint": key})
                return DedupDecision(fingerprint=key, duplicate=True)

            while len(self._entries) >= self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.warning("Dedup store full — evicted %s", evicted)

            self._entries[key] = now
            return DedupDecision(fingerprint=key, duplicate=False)

    def sweep(self, now: Optional[float] = None) -> int:
        """Remove entries older than the window; returns how many were dropped."""
        with self._lock:
            return self._sweep_locked(self._clock() if now is None else now)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _sweep_locked(self, now: float) -> int:
        cutoff = now - self.window_ms
        expired = [key for key, inserted_at in self._entries.items() if inserted_at < cutoff]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Swept %d expired alert fingerprints", len(expired))
        return len(expired)
