"""
Search Performance Monitoring
Per-search metrics, aggregate stats, result-set reports and user suggestions
"""
from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional
import logging
import time

from ..models.search import ScoredResult

logger = logging.getLogger(__name__)

MAX_METRICS_HISTORY = 10000
POPULAR_QUERY_LIMIT = 10
SLOW_QUERY_LIMIT = 10
LONG_QUERY_LENGTH = 20


@dataclass
class SearchMetrics:
    """One recorded search"""
    query: str
    algorithm: str
    duration_ms: float
    result_count: int
    cache_hit: bool
    success: bool
    error_message: Optional[str] = None
    user_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)


class SearchPerformanceMonitor:
    """
    Bounded in-memory history of search metrics

    Recording is synchronous and never awaits, so it is safe to call from
    concurrent searches on one event loop.
    """

    def __init__(self, slow_threshold_ms: float = 1000, max_history: int = MAX_METRICS_HISTORY):
        self.slow_threshold_ms = slow_threshold_ms
        self._metrics: Deque[SearchMetrics] = deque(maxlen=max_history)
        self._errors: Counter = Counter()

    def record(self, metrics: SearchMetrics) -> None:
        self._metrics.append(metrics)
        if not metrics.success and metrics.error_message:
            self._errors[metrics.error_message] += 1
        if metrics.duration_ms > self.slow_threshold_ms:
            logger.warning(
                f"Slow search ({metrics.duration_ms:.0f}ms, algorithm={metrics.algorithm}): "
                f"{metrics.query[:50]}"
            )

    def __len__(self) -> int:
        return len(self._metrics)

    def get_stats(self) -> Dict[str, Any]:
        """
        Aggregate stats over the recorded history

        Returns:
            Dict with totals, rates, popular and slow queries and
            per-algorithm performance
        """
        metrics = list(self._metrics)
        if not metrics:
            return {
                "total_searches": 0,
                "average_response_ms": 0.0,
                "cache_hit_rate": 0.0,
                "success_rate": 0.0,
                "popular_queries": [],
                "algorithm_performance": {},
                "slow_queries": [],
                "error_patterns": [],
            }

        total = len(metrics)
        by_query: Dict[str, List[float]] = {}
        by_algorithm: Dict[str, List[SearchMetrics]] = {}
        for m in metrics:
            by_query.setdefault(m.query.lower(), []).append(m.duration_ms)
            by_algorithm.setdefault(m.algorithm, []).append(m)

        popular = sorted(by_query.items(), key=lambda item: len(item[1]), reverse=True)
        slow = sorted(
            (m for m in metrics if m.duration_ms > self.slow_threshold_ms),
            key=lambda m: m.duration_ms,
            reverse=True,
        )

        return {
            "total_searches": total,
            "average_response_ms": round(sum(m.duration_ms for m in metrics) / total, 2),
            "cache_hit_rate": round(sum(1 for m in metrics if m.cache_hit) / total, 2),
            "success_rate": round(sum(1 for m in metrics if m.success) / total, 2),
            "popular_queries": [
                {"query": q, "count": len(times), "average_ms": round(sum(times) / len(times), 2)}
                for q, times in popular[:POPULAR_QUERY_LIMIT]
            ],
            "algorithm_performance": {
                name: {
                    "count": len(group),
                    "average_ms": round(sum(m.duration_ms for m in group) / len(group), 2),
                    "success_rate": round(sum(1 for m in group if m.success) / len(group), 2),
                }
                for name, group in by_algorithm.items()
            },
            "slow_queries": [
                {"query": m.query, "duration_ms": round(m.duration_ms, 2), "timestamp": m.timestamp}
                for m in slow[:SLOW_QUERY_LIMIT]
            ],
            "error_patterns": [
                {"message": message, "count": count}
                for message, count in self._errors.most_common(POPULAR_QUERY_LIMIT)
            ],
        }

    def get_optimization_suggestions(self) -> List[Dict[str, str]]:
        """Operator-facing hints derived from aggregate stats"""
        stats = self.get_stats()
        if not stats["total_searches"]:
            return []

        suggestions = []
        if stats["cache_hit_rate"] < 0.3:
            suggestions.append({
                "type": "cache",
                "priority": "high",
                "description": "Low cache hit rate; consider a longer TTL or warming popular queries",
            })
        if stats["average_response_ms"] > 500:
            suggestions.append({
                "type": "algorithm",
                "priority": "high",
                "description": "High average response time; review storage queries and indexes",
            })
        if stats["success_rate"] < 0.9:
            suggestions.append({
                "type": "query",
                "priority": "medium",
                "description": "Low success rate; inspect error patterns",
            })
        if len(stats["slow_queries"]) > stats["total_searches"] * 0.1:
            suggestions.append({
                "type": "index",
                "priority": "medium",
                "description": "Many slow queries; add indexes for the searched columns",
            })
        return suggestions


def build_performance_report(results: List[ScoredResult]) -> Dict[str, Any]:
    """Summarize a result set: count, source distribution and confidences"""
    distribution = Counter(r.source for r in results)
    average = sum(r.confidence for r in results) / len(results) if results else 0.0
    return {
        "total_results": len(results),
        "source_distribution": dict(distribution),
        "average_confidence": round(average, 2),
        "top_confidence": round(results[0].confidence, 2) if results else 0.0,
    }


def build_search_suggestions(results: List[ScoredResult], query_text: str) -> List[str]:
    """Hints for the caller about how to refine a query"""
    suggestions = []
    if not results:
        suggestions.extend([
            "Try simpler keywords",
            "Check spelling or use a synonym",
            "Browse categories to see available prompts",
        ])
    elif len(results) < 3:
        suggestions.extend([
            "Few results; try broadening the search",
            "Use more general keywords",
        ])
    elif len(results) > 10:
        suggestions.extend([
            "Many results; add a category or tag filter",
            "Use more specific keywords",
        ])

    if len(query_text) > LONG_QUERY_LENGTH:
        suggestions.append("A shorter query may give better results")
    return suggestions
