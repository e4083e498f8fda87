"""
Search Engine
Single entry point: cache lookup -> classify -> retrieve -> deduplicate
-> score -> filter/sort -> cache write

The engine always answers. Only EmptyQueryError reaches the caller; any
other failure becomes an empty, unsuccessful outcome.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging
import time
import uuid

from ..config import Settings, get_settings
from ..errors import EmptyQueryError
from ..models.search import IntentProfile, Query, ScoredResult
from ..utils.supabase_client import PromptStorage
from .cache import ResultCache, build_cache_key
from .fusion import deduplicate_results
from .intent_detection import classify
from .performance import (
    SearchMetrics,
    SearchPerformanceMonitor,
    build_performance_report,
    build_search_suggestions,
)
from .ranking import finalize
from .retrieval import RetrievalOrchestrator
from .scoring import score_results

logger = logging.getLogger(__name__)


@dataclass
class SearchOutcome:
    """Everything a caller gets back from one search"""
    search_id: str
    results: List[ScoredResult]
    total_found: int
    from_cache: bool
    timing_ms: int
    success: bool = True
    error: Optional[str] = None
    intent: Optional[IntentProfile] = None
    performance: Dict[str, Any] = field(default_factory=dict)
    suggestions: List[str] = field(default_factory=list)


class SearchEngine:
    """
    Prompt search facade

    Owns the result cache and the performance monitor; both are explicit
    instances so tests can substitute in-memory fakes.
    """

    def __init__(
        self,
        storage: PromptStorage,
        cache: Optional[ResultCache] = None,
        monitor: Optional[SearchPerformanceMonitor] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.storage = storage
        self.retriever = RetrievalOrchestrator(storage, self.settings)
        self.cache = cache if cache is not None else ResultCache(
            ttl=self.settings.cache_ttl_seconds,
            sweep_interval=self.settings.cache_sweep_interval_seconds,
            stale_multiplier=self.settings.cache_stale_multiplier,
            max_entries=self.settings.cache_max_entries,
        )
        self.monitor = monitor or SearchPerformanceMonitor(
            slow_threshold_ms=self.settings.slow_search_threshold_ms
        )

    async def start(self) -> None:
        """Start background cache maintenance"""
        if self.settings.cache_enabled:
            await self.cache.start()

    async def stop(self) -> None:
        await self.cache.stop()

    def _use_cache(self, query: Query) -> bool:
        return self.settings.cache_enabled and query.enable_cache

    async def _compute(self, query: Query, intent: IntentProfile, search_id: str) -> List[ScoredResult]:
        sightings = await self.retriever.retrieve(query, intent, search_id)
        merged = deduplicate_results(sightings)
        scored = score_results(merged, query, intent)
        results = finalize(scored, query)
        logger.info(
            f"[{search_id}] {len(sightings)} sightings -> {len(merged)} unique -> "
            f"{len(results)} results"
        )
        return results

    async def search(self, query: Query) -> SearchOutcome:
        """
        Run a search

        Args:
            query: Validated query

        Returns:
            SearchOutcome; on internal failure success is False and results
            are empty
        """
        search_id = uuid.uuid4().hex[:12]
        start_time = time.perf_counter()
        logger.info(f"[{search_id}] Search ({query.algorithm.value}): {query.text}")

        intent: Optional[IntentProfile] = None
        from_cache = False
        error: Optional[str] = None
        results: List[ScoredResult] = []

        try:
            intent = classify(query.text, query.context)

            cache_key = build_cache_key(query) if self._use_cache(query) else None
            if cache_key:
                results, from_cache = await self.cache.get(cache_key)

            if not from_cache:
                results = await self._compute(query, intent, search_id)
                if cache_key and results:
                    await self.cache.set(cache_key, results)

        except EmptyQueryError:
            raise
        except Exception as e:
            logger.error(f"[{search_id}] Search failed: {e}", exc_info=True)
            error = str(e) or type(e).__name__
            results = []

        timing_ms = int((time.perf_counter() - start_time) * 1000)
        self.monitor.record(SearchMetrics(
            query=query.text,
            algorithm=query.algorithm.value,
            duration_ms=timing_ms,
            result_count=len(results),
            cache_hit=from_cache,
            success=error is None,
            error_message=error,
            user_id=query.user_id,
        ))

        logger.info(
            f"[{search_id}] Search complete in {timing_ms}ms "
            f"({len(results)} results, from_cache={from_cache})"
        )

        return SearchOutcome(
            search_id=search_id,
            results=results,
            total_found=len(results),
            from_cache=from_cache,
            timing_ms=timing_ms,
            success=error is None,
            error=error,
            intent=intent,
            performance=build_performance_report(results),
            suggestions=build_search_suggestions(results, query.text),
        )

    async def search_text(self, text: Optional[str], **kwargs) -> SearchOutcome:
        """
        Build a query from raw text and search

        Raises:
            EmptyQueryError: if text is missing or blank
        """
        return await self.search(Query.create(text, **kwargs))

    async def get_stats(self) -> Dict[str, Any]:
        """Cache and search performance statistics"""
        return {
            "cache": await self.cache.stats(),
            "searches": self.monitor.get_stats(),
            "optimization_suggestions": self.monitor.get_optimization_suggestions(),
        }
