"""Query-keyed cache for enriched outfit documents."""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

V = TypeVar("V")


def normalize_query(query: str) -> str:
    """Lower-case, trim and collapse whitespace."""

    return " ".join(str(query or "").lower().split())


class QueryCache(ABC, Generic[V]):
    """Cache boundary used read-through/write-through by the orchestrator."""

    @abstractmethod
    def get(self, query: str) -> Optional[V]:
        ...

    @abstractmethod
    def set(self, query: str, value: V) -> None:
        ...

    @abstractmethod
    def evict(self, query: str) -> bool:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


@dataclass
class _Entry(Generic[V]):
    value: V
    expires_at: float


class InMemoryQueryCache(QueryCache[V]):
    """TTL cache with least-recently-used eviction beyond ``max_entries``."""

    def __init__(
        self,
        ttl_seconds: float = 15 * 60,
        max_entries: int = 50,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0 or max_entries <= 0:
            raise ValueError("ttl_seconds and max_entries must be positive")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, _Entry[V]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, query: str) -> Optional[V]:
        key = normalize_query(query)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return entry.value

    def set(self, query: str, value: V) -> None:
        key = normalize_query(query)
        if not key:
            return
        with self._lock:
            self._entries[key] = _Entry(value=value, expires_at=self._clock() + self.ttl_seconds)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def evict(self, query: str) -> bool:
        with self._lock:
            return self._entries.pop(normalize_query(query), None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


__all__ = ["InMemoryQueryCache", "QueryCache", "normalize_query"]
