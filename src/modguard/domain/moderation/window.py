"""Sliding window tracking for per-key event logs.

A ``SlidingLog`` is an insertion-ordered deque of immutable records. Records
for one key arrive in non-decreasing timestamp order, so trimming is a
prefix drop: O(1) append, amortized O(1) trim.

Threshold crossings are edge-triggered. When an append brings a log to its
threshold the log is marked tripped; it re-arms only once the record that
tripped it has been trimmed away and the window is back below threshold.
That gives one classification per burst instead of one per message.

The tracker never owns global state: logs live in an injectable
``WindowStore`` and mutation of one key is serialized through ``KeyedLocks``
(one ``asyncio.Lock`` per key, created lazily), so unrelated keys never
contend.
"""
from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, replace
from typing import Any, Deque, Dict, Hashable, Iterator, Optional, Tuple

from .errors import InternalInvariantViolation
from .interfaces import WindowStore
from ...infrastructure.logging.structured_logging import error as log_error, debug as log_debug


class SlidingLog:
    __slots__ = ("_records", "_appended", "_dropped", "_tripped_at")

    def __init__(self):
        self._records: Deque[Any] = deque()
        self._appended = 0
        self._dropped = 0
        self._tripped_at: Optional[int] = None

    def append(self, record) -> int:
        if self._records and record.timestamp < self._records[-1].timestamp:
            raise InternalInvariantViolation(
                f"record at {record.timestamp} older than tail {self._records[-1].timestamp}"
            )
        self._records.append(record)
        self._appended += 1
        return self._appended

    def trim(self, now: int, window_ms: int) -> int:
        """Drop records aged ``window_ms`` or more. Returns the remaining count."""
        records = self._records
        while records and now - records[0].timestamp >= window_ms:
            records.popleft()
            self._dropped += 1
        return len(records)

    @property
    def tripped(self) -> bool:
        return self._tripped_at is not None

    def trip(self) -> None:
        self._tripped_at = self._appended

    def maybe_rearm(self, threshold: int) -> None:
        if self._tripped_at is None:
            return
        if self._dropped >= self._tripped_at and len(self._records) < threshold:
            self._tripped_at = None

    def newest(self):
        return self._records[-1] if self._records else None

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._records)


class InMemoryWindowStore:
    """Dict-backed store. Logs are created on first use and kept until evicted."""

    def __init__(self):
        self._logs: Dict[Hashable, SlidingLog] = {}

    def get_or_create(self, key: Hashable) -> SlidingLog:
        log = self._logs.get(key)
        if log is None:
            log = self._logs[key] = SlidingLog()
        return log

    def get(self, key: Hashable) -> Optional[SlidingLog]:
        return self._logs.get(key)

    def reset(self, key: Hashable) -> None:
        self._logs.pop(key, None)

    def evict_stale(self, now: int, max_age_ms: int) -> int:
        """Remove logs whose newest record is older than ``max_age_ms``."""
        stale = [
            k for k, log in self._logs.items()
            if log.newest() is None or now - log.newest().timestamp >= max_age_ms
        ]
        for k in stale:
            del self._logs[k]
        return len(stale)

    def __len__(self) -> int:
        return len(self._logs)


class KeyedLocks:
    """Lazily created per-key ``asyncio.Lock`` table."""

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}

    def lock_for(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def __len__(self) -> int:
        return len(self._locks)


@dataclass(frozen=True)
class WindowSnapshot:
    count: int
    crossed: bool
    records: Tuple[Any, ...]


class SlidingWindowTracker:
    """Edge-triggered per-key counter over a sliding time window.

    ``clamp_late`` is for logs shared by many actors (the per-community join
    log) where delivery order across actors is arbitrary: a record older than
    the tail is stamped with the tail's timestamp instead of being treated as
    an ordering violation.
    """

    def __init__(self, name: str, store: Optional[WindowStore] = None, locks: Optional[KeyedLocks] = None,
                 clamp_late: bool = False):
        self.name = name
        self.store = store if store is not None else InMemoryWindowStore()
        self.locks = locks if locks is not None else KeyedLocks()
        self.clamp_late = clamp_late

    async def record(self, key: Hashable, record, window_ms: int, threshold: int) -> WindowSnapshot:
        """Trim ``key``'s log to ``record.timestamp``, append ``record`` and report the count."""
        async with self.locks.lock_for(key):
            return self._record_locked(key, record, window_ms, threshold)

    def _record_locked(self, key: Hashable, record, window_ms: int, threshold: int) -> WindowSnapshot:
        log = self.store.get_or_create(key)
        newest = log.newest()
        if self.clamp_late and newest is not None and record.timestamp < newest.timestamp:
            log_debug("window.late_record", tracker=self.name, key=key, late_by_ms=newest.timestamp - record.timestamp)
            record = replace(record, timestamp=newest.timestamp)
        log.trim(record.timestamp, window_ms)
        log.maybe_rearm(threshold)
        try:
            log.append(record)
        except InternalInvariantViolation as e:
            log_error("window.invariant_violation", tracker=self.name, key=key, error=str(e))
            self.store.reset(key)
            log = self.store.get_or_create(key)
            log.append(record)
        count = len(log)
        crossed = False
        if count >= threshold and not log.tripped:
            log.trip()
            crossed = True
            log_debug("window.threshold_crossed", tracker=self.name, key=key, count=count)
        return WindowSnapshot(count=count, crossed=crossed, records=tuple(log))

    async def trim(self, key: Hashable, now: int, window_ms: int) -> int:
        async with self.locks.lock_for(key):
            log = self.store.get(key)
            if log is None:
                return 0
            return log.trim(now, window_ms)

    def count(self, key: Hashable) -> int:
        log = self.store.get(key)
        return len(log) if log is not None else 0


__all__ = [
    "SlidingLog",
    "InMemoryWindowStore",
    "KeyedLocks",
    "WindowSnapshot",
    "SlidingWindowTracker",
]
