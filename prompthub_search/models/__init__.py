"""
Data models for PromptHub Search
"""
from .search import (
    ActionType,
    Candidate,
    Complexity,
    Domain,
    IntentProfile,
    Query,
    ScoredResult,
    SearchAlgorithm,
    SortBy,
    Style,
    Urgency,
)
from .requests import SearchRequest
from .responses import (
    CacheStatsResponse,
    PerformanceReport,
    PromptResult,
    SearchResponse,
    StatsResponse,
)

__all__ = [
    # Core
    "Query",
    "IntentProfile",
    "Candidate",
    "ScoredResult",
    "SearchAlgorithm",
    "SortBy",
    "ActionType",
    "Domain",
    "Style",
    "Urgency",
    "Complexity",
    # Request/Response
    "SearchRequest",
    "SearchResponse",
    "PromptResult",
    "PerformanceReport",
    "CacheStatsResponse",
    "StatsResponse",
]
