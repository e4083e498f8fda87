"""
Tests for search performance monitoring
"""
from prompthub_search.models.search import Candidate, ScoredResult
from prompthub_search.services.performance import (
    SearchMetrics,
    SearchPerformanceMonitor,
    build_performance_report,
    build_search_suggestions,
)


def metrics(query="email", duration=100, cache_hit=False, success=True, algorithm="smart", error=None):
    return SearchMetrics(
        query=query,
        algorithm=algorithm,
        duration_ms=duration,
        result_count=1,
        cache_hit=cache_hit,
        success=success,
        error_message=error,
    )


def test_empty_stats():
    """Test stats with no history"""
    stats = SearchPerformanceMonitor().get_stats()

    assert stats["total_searches"] == 0
    assert stats["popular_queries"] == []


def test_aggregate_stats():
    """Test rates, popular and slow queries"""
    monitor = SearchPerformanceMonitor(slow_threshold_ms=1000)
    monitor.record(metrics("email", 100, cache_hit=True))
    monitor.record(metrics("Email", 300))
    monitor.record(metrics("code", 2000, success=False, error="boom", algorithm="keyword"))
    monitor.record(metrics("email", 200, cache_hit=True))

    stats = monitor.get_stats()

    assert stats["total_searches"] == 4
    assert stats["average_response_ms"] == 650.0
    assert stats["cache_hit_rate"] == 0.5
    assert stats["success_rate"] == 0.75
    assert stats["popular_queries"][0] == {"query": "email", "count": 3, "average_ms": 200.0}
    assert [q["query"] for q in stats["slow_queries"]] == ["code"]
    assert stats["algorithm_performance"]["keyword"]["success_rate"] == 0.0
    assert stats["error_patterns"] == [{"message": "boom", "count": 1}]


def test_history_is_bounded():
    """Test old metrics fall off"""
    monitor = SearchPerformanceMonitor(max_history=3)
    for i in range(5):
        monitor.record(metrics(str(i)))

    assert len(monitor) == 3


def test_optimization_suggestions():
    """Test operator hints from poor stats"""
    monitor = SearchPerformanceMonitor(slow_threshold_ms=100)
    monitor.record(metrics(duration=900, success=False, error="x"))

    types = {s["type"] for s in monitor.get_optimization_suggestions()}

    assert types == {"cache", "algorithm", "query", "index"}


def test_performance_report():
    """Test result-set summary"""
    results = [
        ScoredResult(candidate=Candidate(id="a"), confidence=0.9, source="semantic"),
        ScoredResult(candidate=Candidate(id="b"), confidence=0.5, source="keyword"),
        ScoredResult(candidate=Candidate(id="c"), confidence=0.4, source="semantic"),
    ]

    report = build_performance_report(results)

    assert report == {
        "total_results": 3,
        "source_distribution": {"semantic": 2, "keyword": 1},
        "average_confidence": 0.6,
        "top_confidence": 0.9,
    }
    assert build_performance_report([])["total_results"] == 0


def test_search_suggestions():
    """Test caller hints by result count and query length"""
    one = [ScoredResult(candidate=Candidate(id="a"), source="keyword")]

    assert len(build_search_suggestions([], "email")) == 3
    assert len(build_search_suggestions(one, "email")) == 2
    assert build_search_suggestions(one * 5, "email") == []
    assert build_search_suggestions(one * 5, "a" * 25) == ["A shorter query may give better results"]
