"""Sortable Unique Tokens — ULID identifiers for new users (python-ulid).

Invariants:
    - 26 chars, Crockford base32: 10 chars of millisecond timestamp + 16 chars of randomness
    - Tokens from one factory are strictly increasing in generation order, even within
      the same millisecond or when the wall clock steps backwards

Design Decisions:
    - python-ulid does encoding and entropy; the factory only adds the monotonic guard
    - A token not above the last one becomes last + 1: random-part overflow carries into
      the timestamp, i.e. borrows the next millisecond instead of raising
    - One process-wide factory behind a lock: request handlers may run on worker threads
"""

import threading
from typing import Callable

from ulid import ULID

CROCKFORD_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
ULID_LENGTH = 26


def decode_timestamp(token: str) -> int:
    """Millisecond timestamp embedded in a token."""
    return ULID.from_str(token).milliseconds


class MonotonicUlidFactory:
    """Generates strictly increasing ULIDs."""

    def __init__(self, generate: Callable[[], ULID] = ULID):
        self._generate = generate
        self._lock = threading.Lock()
        self._last: ULID | None = None

    def new(self) -> str:
        with self._lock:
            candidate = self._generate()
            if self._last is not None and candidate <= self._last:
                candidate = ULID.from_int(int(self._last) + 1)
            self._last = candidate
            return str(candidate)


_factory = MonotonicUlidFactory()


def new_user_id() -> str:
    """New time-sortable identifier from the process-wide factory."""
    return _factory.new()
