"""
Response models for prompt search API
"""
from datetime import datetime
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from .search import IntentProfile, ScoredResult


class PromptResult(BaseModel):
    """One ranked prompt"""

    id: str
    name: str
    description: str = ""
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    content: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    score: float = Field(..., description="Ranking score (0-100)")
    confidence: float = Field(..., description="Certainty estimate (0-1)")
    source: str = Field(..., description="Strategy that first found the prompt")
    match_reasons: List[str] = Field(default_factory=list)

    @classmethod
    def from_scored(cls, result: ScoredResult) -> "PromptResult":
        candidate = result.candidate
        return cls(
            id=candidate.id,
            name=candidate.name,
            description=candidate.description,
            category=candidate.category,
            tags=sorted(candidate.tags),
            content=candidate.content,
            created_at=candidate.created_at,
            updated_at=candidate.updated_at,
            score=round(result.score, 2),
            confidence=round(result.confidence, 4),
            source=result.source,
            match_reasons=list(result.match_reasons),
        )


class PerformanceReport(BaseModel):
    """Summary of one result set"""

    total_results: int = 0
    source_distribution: Dict[str, int] = Field(default_factory=dict)
    average_confidence: float = 0.0
    top_confidence: float = 0.0


class SearchResponse(BaseModel):
    """Response model for search endpoint"""

    search_id: str = Field(..., description="Unique search identifier")
    query: str = Field(..., description="Original query")
    success: bool = Field(default=True, description="False when the search failed internally")
    results: List[PromptResult] = Field(default_factory=list)
    total_found: int = 0
    from_cache: bool = False
    timing_ms: int = Field(..., description="Search latency in milliseconds")
    intent: Optional[IntentProfile] = None
    performance: PerformanceReport = Field(default_factory=PerformanceReport)
    suggestions: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class CacheStatsResponse(BaseModel):
    """Result cache statistics"""

    entries: int
    hits: int
    misses: int
    hit_rate: float
    max_entries: int
    ttl_seconds: float


class StatsResponse(BaseModel):
    """Response model for stats endpoint"""

    cache: CacheStatsResponse
    searches: Dict[str, Any]
    optimization_suggestions: List[Dict[str, str]] = Field(default_factory=list)
