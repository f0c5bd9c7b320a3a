"""Snowflake-style ID generator for business IDs.

Trades, fee ledger rows, graduation events and downstream failure records all
use these IDs; the optional prefix makes them readable in logs
(``TRD-…``, ``GRD-…``, ``FLR-…``).
"""

import threading
import time


class SnowflakeIdGenerator:
    """Monotonic 64-bit IDs: 41 bits ms timestamp | 10 bits worker | 12 bits sequence."""

    _EPOCH_MS = 1_735_689_600_000  # 2025-01-01T00:00:00Z
    _WORKER_BITS = 10
    _SEQUENCE_BITS = 12
    _MAX_SEQUENCE = (1 << _SEQUENCE_BITS) - 1

    def __init__(self, worker_id: int = 0) -> None:
        if not (0 <= worker_id < (1 << self._WORKER_BITS)):
            raise ValueError(f"worker_id must be 0-{(1 << self._WORKER_BITS) - 1}")
        self._worker_id = worker_id
        self._sequence = 0
        self._last_ms = -1
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            now_ms = self._now_ms()
            if now_ms < self._last_ms:
                # Clock stepped backwards: keep issuing on the last seen millisecond.
                now_ms = self._last_ms
            if now_ms == self._last_ms:
                self._sequence = (self._sequence + 1) & self._MAX_SEQUENCE
                if self._sequence == 0:
                    now_ms = self._spin_until_after(now_ms)
            else:
                self._sequence = 0

            self._last_ms = now_ms
            return (
                ((now_ms - self._EPOCH_MS) << (self._WORKER_BITS + self._SEQUENCE_BITS))
                | (self._worker_id << self._SEQUENCE_BITS)
                | self._sequence
            )

    def _now_ms(self) -> int:
        return int(time.time() * 1000)

    def _spin_until_after(self, last_ms: int) -> int:
        now_ms = self._now_ms()
        while now_ms <= last_ms:
            now_ms = self._now_ms()
        return now_ms


_default_generator = SnowflakeIdGenerator()


def generate_id(prefix: str = "") -> str:
    """Return a unique string ID, optionally prefixed (``generate_id("TRD")`` -> ``TRD-…``)."""
    raw = str(_default_generator.next_id())
    return f"{prefix}-{raw}" if prefix else raw
