"""
PromptHub Search - Result Cache
===============================

TTL-keyed store of computed result sets.

Invariants:
1. Keys are a deterministic hash of everything that shapes a result set
   (normalized text, algorithm, filters, size, threshold, order, user, context)
2. Expired entries are never returned; they are removed lazily on access
3. A background sweep removes entries older than a multiple of their TTL
4. All access goes through one asyncio lock held only for dict operations

Usage:
    cache = ResultCache(ttl=300, sweep_interval=300)
    await cache.start()

    key = build_cache_key(query)
    results, hit = await cache.get(key)
    if not hit:
        await cache.set(key, results)

    await cache.stop()
"""

import asyncio
import hashlib
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..models.search import Query, ScoredResult

logger = logging.getLogger(__name__)

CACHE_KEY_VERSION = "v1"


# ============================================================================
# Cache Key
# ============================================================================

def build_cache_key(query: Query) -> str:
    """
    Build a stable cache key for a query.

    Tags are sorted so that set ordering never changes the key.
    """
    payload = {
        "text": query.normalized_text,
        "algorithm": query.algorithm.value,
        "category": query.category,
        "tags": sorted(query.tags),
        "max_results": query.max_results,
        "min_confidence": round(query.min_confidence, 4),
        "sort_by": query.sort_by.value,
        "user_id": query.user_id,
        "context": " ".join(query.context.lower().split()),
    }
    serialized = json.dumps(payload, sort_keys=True, ensure_ascii=False)
    digest = hashlib.sha256(serialized.encode("utf-8")).hexdigest()[:32]
    return f"{CACHE_KEY_VERSION}:search:{digest}"


# ============================================================================
# Cache Entry
# ============================================================================

@dataclass
class CacheEntry:
    """Single cached result set with TTL and usage accounting."""
    results: Tuple[ScoredResult, ...]
    ttl: float
    created_at: float = field(default_factory=time.monotonic)
    access_count: int = 0
    last_accessed: float = field(default_factory=time.monotonic)

    def age(self, now: Optional[float] = None) -> float:
        return (now if now is not None else time.monotonic()) - self.created_at

    def is_expired(self, now: Optional[float] = None) -> bool:
        return self.age(now) > self.ttl


# ============================================================================
# Result Cache
# ============================================================================

class ResultCache:
    """
    In-memory result cache with TTL, periodic sweep and hit accounting.

    Safe for concurrent searches via an asyncio lock. One instance per
    process, owned by the search engine.
    """

    def __init__(
        self,
        ttl: float = 300.0,
        sweep_interval: float = 300.0,
        stale_multiplier: float = 3.0,
        max_entries: int = 500,
    ) -> None:
        self.ttl = ttl
        self.sweep_interval = sweep_interval
        self.stale_multiplier = stale_multiplier
        self.max_entries = max_entries

        self._store: Dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()
        self._hits = 0
        self._misses = 0
        self._sweep_task: Optional[asyncio.Task] = None

    async def get(self, key: str) -> Tuple[List[ScoredResult], bool]:
        """
        Look up a result set.

        Returns:
            (results, hit); an empty list and False on miss or expiry
        """
        async with self._lock:
            entry = self._store.get(key)
            now = time.monotonic()
            if entry is None:
                self._misses += 1
                return [], False
            if entry.is_expired(now):
                del self._store[key]
                self._misses += 1
                return [], False

            entry.access_count += 1
            entry.last_accessed = now
            self._hits += 1
            return list(entry.results), True

    async def set(self, key: str, results: List[ScoredResult], ttl: Optional[float] = None) -> None:
        """Store a result set; evicts the least used entry when full."""
        async with self._lock:
            if key not in self._store and len(self._store) >= self.max_entries:
                self._evict_least_used()
            self._store[key] = CacheEntry(results=tuple(results), ttl=ttl or self.ttl)

    def _evict_least_used(self) -> None:
        """Drop the entry with the fewest hits (not thread-safe, use under lock)."""
        if not self._store:
            return
        victim = min(
            self._store,
            key=lambda k: (self._store[k].access_count, self._store[k].last_accessed),
        )
        del self._store[victim]
        logger.debug(f"[Cache] Evicted least used entry {victim}")

    async def delete(self, key: str) -> bool:
        """Delete a single key."""
        async with self._lock:
            return self._store.pop(key, None) is not None

    async def clear(self) -> int:
        """Clear entire cache."""
        async with self._lock:
            count = len(self._store)
            self._store.clear()
            logger.info(f"[Cache] Cleared all {count} entries")
            return count

    async def sweep(self) -> int:
        """Remove entries older than stale_multiplier x their TTL."""
        async with self._lock:
            now = time.monotonic()
            stale = [
                k for k, v in self._store.items()
                if v.age(now) > v.ttl * self.stale_multiplier
            ]
            for key in stale:
                del self._store[key]
        if stale:
            logger.info(f"[Cache] Swept {len(stale)} stale entries")
        return len(stale)

    async def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        async with self._lock:
            lookups = self._hits + self._misses
            return {
                "entries": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(self._hits / lookups, 4) if lookups else 0.0,
                "max_entries": self.max_entries,
                "ttl_seconds": self.ttl,
            }

    # ------------------------------------------------------------------------
    # Background sweep
    # ------------------------------------------------------------------------

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                await self.sweep()
            except Exception as e:
                logger.error(f"[Cache] Sweep failed: {e}")

    async def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._sweep_loop())
            logger.info(f"[Cache] Sweep started (interval={self.sweep_interval}s)")

    async def stop(self) -> None:
        """Cancel the periodic sweep and wait for it to finish."""
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("[Cache] Sweep stopped")

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()
