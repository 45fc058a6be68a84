from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from geo.bounds import DEFAULT_SIGNATURE_DECIMALS, Bounds, overlap, signature_of


T = TypeVar("T")

DEFAULT_CAPACITY = 50


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    signature: str
    data: T
    bounds: Bounds
    timestamp: float


@dataclass
class BoundsCache(Generic[T]):
    """
    Small LRU keyed by a rounded bounds signature.

    Dict insertion order doubles as recency order: the first key is the least
    recently used one. Entries are replaced on put, never mutated.
    """

    capacity: int = DEFAULT_CAPACITY
    decimals: int = DEFAULT_SIGNATURE_DECIMALS
    _entries: dict[str, CacheEntry[T]] = field(default_factory=dict, repr=False)

    def put(self, bounds: Bounds, data: T) -> None:
        key = signature_of(bounds, self.decimals)
        if key in self._entries:
            # Re-insert moves the key to the most recent position.
            self._entries.pop(key)
        elif len(self._entries) >= max(1, self.capacity):
            oldest = next(iter(self._entries))
            self._entries.pop(oldest)
        self._entries[key] = CacheEntry(
            signature=key, data=data, bounds=bounds, timestamp=time.time()
        )

    def get(self, bounds: Bounds) -> T | None:
        key = signature_of(bounds, self.decimals)
        entry = self._entries.pop(key, None)
        if entry is None:
            return None
        self._entries[key] = entry
        return entry.data

    def find_overlapping(self, bounds: Bounds) -> list[T]:
        """
        Payloads whose stored bounds overlap `bounds`. Does not touch recency.
        """
        return [e.data for e in self._entries.values() if overlap(bounds, e.bounds)]

    def signatures(self) -> list[str]:
        # Least recently used first.
        return list(self._entries.keys())

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
