"""At-most-one-in-flight guard keyed by article id."""

from __future__ import annotations

from contextlib import contextmanager
from threading import Lock
from typing import Hashable, Iterator, Set


class InFlightRegistry:
    """Tracks keys currently being processed.

    ``claim`` yields ``True`` when the caller owns the key for the duration
    of the block, ``False`` when someone else already holds it.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._keys: Set[Hashable] = set()

    @contextmanager
    def claim(self, key: Hashable) -> Iterator[bool]:
        with self._lock:
            if key in self._keys:
                acquired = False
            else:
                self._keys.add(key)
                acquired = True
        try:
            yield acquired
        finally:
            if acquired:
                with self._lock:
                    self._keys.discard(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)
