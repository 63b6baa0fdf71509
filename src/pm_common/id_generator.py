"""Snowflake-style ID generator for business references (transfer ids).

IDs are strings, unique and monotonically increasing within one process.
The machine id keeps several API workers from colliding.
"""

import os
import threading
import time


class SnowflakeIdGenerator:
    """Layout (64 bits): 41-bit ms timestamp | 10-bit machine id | 12-bit sequence."""

    _EPOCH_MS = 1_735_689_600_000  # 2025-01-01T00:00:00Z
    _MACHINE_BITS = 10
    _SEQUENCE_BITS = 12
    _MAX_SEQUENCE = (1 << _SEQUENCE_BITS) - 1

    def __init__(self, machine_id: int = 0) -> None:
        if not (0 <= machine_id < (1 << self._MACHINE_BITS)):
            raise ValueError(f"machine_id must be 0-{(1 << self._MACHINE_BITS) - 1}")
        self._machine_id = machine_id
        self._sequence = 0
        self._last_ms = -1
        self._lock = threading.Lock()

    def next_int(self) -> int:
        with self._lock:
            now_ms = self._clock_ms()
            if now_ms < self._last_ms:
                # Clock stepped backwards: keep issuing from the last timestamp
                now_ms = self._last_ms
            if now_ms == self._last_ms:
                self._sequence = (self._sequence + 1) & self._MAX_SEQUENCE
                if self._sequence == 0:
                    now_ms = self._wait_after(now_ms)
            else:
                self._sequence = 0
            self._last_ms = now_ms
            return (
                ((now_ms - self._EPOCH_MS) << (self._MACHINE_BITS + self._SEQUENCE_BITS))
                | (self._machine_id << self._SEQUENCE_BITS)
                | self._sequence
            )

    def next_id(self, prefix: str = "") -> str:
        return f"{prefix}{self.next_int()}"

    def _clock_ms(self) -> int:
        return time.time_ns() // 1_000_000

    def _wait_after(self, last_ms: int) -> int:
        now_ms = self._clock_ms()
        while now_ms <= last_ms:
            now_ms = self._clock_ms()
        return now_ms


# Worker processes set ID_MACHINE_ID so their sequences never overlap
_default_generator = SnowflakeIdGenerator(int(os.environ.get("ID_MACHINE_ID", "0")))


def generate_transfer_id() -> str:
    """Reference id shared by the debit and credit legs of one pool transfer."""
    return _default_generator.next_id("TRF-")
