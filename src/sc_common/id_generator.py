"""Entity identity helpers.

Entities live in a content-addressed store keyed by
(entity_type, owner_id, instrument_id, nonce). `entity_id` renders that key
as the primary-key string; `generate_nonce` supplies a fresh nonce when the
caller does not pick one.
"""

import threading
import time


class NonceGenerator:
    """Snowflake-style monotonically increasing int nonces.

    Layout (63 bits):
      - 41 bits: millisecond timestamp (since custom epoch)
      - 10 bits: machine_id (0-1023)
      - 12 bits: sequence (0-4095 per millisecond)
    """

    _EPOCH_MS = 1_700_000_000_000
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

    def next_nonce(self) -> int:
        with self._lock:
            ms = int(time.time() * 1000)
            if ms < self._last_ms:
                ms = self._last_ms
            if ms == self._last_ms:
                self._sequence = (self._sequence + 1) & self._MAX_SEQUENCE
                if self._sequence == 0:
                    # sequence exhausted: borrow the next millisecond
                    ms = self._last_ms + 1
            else:
                self._sequence = 0
            self._last_ms = ms
            return (
                ((ms - self._EPOCH_MS) << (self._MACHINE_BITS + self._SEQUENCE_BITS))
                | (self._machine_id << self._SEQUENCE_BITS)
                | self._sequence
            )


_default_generator = NonceGenerator()


def generate_nonce() -> int:
    return _default_generator.next_nonce()


def entity_id(entity_type: str, *parts: object) -> str:
    """Deterministic id for an entity key: entity_id("position", "alice", "mkt", 7)."""
    return ":".join([entity_type, *(str(p) for p in parts)])
