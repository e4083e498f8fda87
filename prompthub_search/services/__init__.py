"""
Search pipeline services for PromptHub Search
"""
from .intent_detection import classify
from .retrieval import RetrievalOrchestrator
from .fusion import deduplicate_results
from .scoring import score_candidate, score_results
from .ranking import finalize
from .cache import ResultCache, build_cache_key
from .performance import SearchPerformanceMonitor, build_performance_report
from .search_engine import SearchEngine, SearchOutcome

__all__ = [
    "classify",
    "RetrievalOrchestrator",
    "deduplicate_results",
    "score_candidate",
    "score_results",
    "finalize",
    "ResultCache",
    "build_cache_key",
    "SearchPerformanceMonitor",
    "build_performance_report",
    "SearchEngine",
    "SearchOutcome",
]
