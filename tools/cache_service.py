"""Advisory registry of large prompt contexts already cached by the provider.

One instance is created at startup and handed to whatever needs it. A miss
never blocks a call; it only means the context is sent in full.
"""

import hashlib
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    resource_name: str
    expires_at: float
    token_count: int = 0


def compute_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class ContextCache:
    """Bounded LRU map of (model, content hash) -> cache entry with TTL."""

    def __init__(
        self,
        capacity: int = 64,
        ttl_seconds: float = 300.0,
        min_chars: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self.ttl_seconds = ttl_seconds
        self.min_chars = min_chars
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self.hits = 0
        self.misses = 0

    @classmethod
    def from_settings(cls, settings, clock: Callable[[], float] = time.monotonic) -> "ContextCache":
        return cls(
            capacity=settings.cache_capacity,
            ttl_seconds=settings.cache_ttl_seconds,
            min_chars=settings.cache_min_chars,
            clock=clock,
        )

    @staticmethod
    def make_key(content: str, model: str) -> str:
        return f"{model}:{compute_hash(content)}"

    def is_cacheable(self, content: str) -> bool:
        return bool(content) and len(content) >= self.min_chars

    def lookup(self, content: str, model: str) -> Optional[CacheEntry]:
        """Return a live entry for this context, or None."""
        if not self.is_cacheable(content):
            return None

        key = self.make_key(content, model)
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None

        if entry.expires_at <= self._clock():
            logger.debug("Context cache expired: %s", entry.resource_name)
            del self._entries[key]
            self.misses += 1
            return None

        self._entries.move_to_end(key)
        self.hits += 1
        logger.debug("Context cache hit: %s", entry.resource_name)
        return entry

    def register(
        self,
        content: str,
        model: str,
        resource_name: str,
        token_count: int = 0,
    ) -> Optional[CacheEntry]:
        """Record that ``content`` is cached provider-side for ``model``."""
        if not self.is_cacheable(content):
            return None

        key = self.make_key(content, model)
        entry = CacheEntry(
            key=key,
            resource_name=resource_name,
            expires_at=self._clock() + self.ttl_seconds,
            token_count=token_count,
        )
        self._entries[key] = entry
        self._entries.move_to_end(key)
        while len(self._entries) > self.capacity:
            evicted_key, _ = self._entries.popitem(last=False)
            logger.debug("Context cache evicted: %s", evicted_key)
        return entry

    def prune(self) -> int:
        """Drop expired entries, returning how many were removed."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
