"""
Core search data models
Query, intent profile, candidate records and scored results
"""
import re
from datetime import datetime, timezone
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import get_settings
from ..errors import EmptyQueryError

# Caller ids are interpolated into storage filter expressions
USER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


class SearchAlgorithm(str, Enum):
    """Retrieval strategy selection"""
    SEMANTIC = "semantic"
    KEYWORD = "keyword"
    HYBRID = "hybrid"
    SMART = "smart"


class SortBy(str, Enum):
    """Result orderings"""
    RELEVANCE = "relevance"
    NAME = "name"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"


class ActionType(str, Enum):
    """What the user wants to do with a prompt"""
    CREATE = "create"
    ANALYZE = "analyze"
    TRANSFORM = "transform"
    SUMMARIZE = "summarize"
    OPTIMIZE = "optimize"
    EXPLAIN = "explain"
    PLAN = "plan"
    GENERAL_QUERY = "generalQuery"


class Domain(str, Enum):
    """Topical domain of a query"""
    BUSINESS = "business"
    TECH = "tech"
    ACADEMIC = "academic"
    CREATIVE = "creative"
    LEGAL = "legal"
    EDUCATION = "education"
    HEALTH = "health"
    GENERAL = "general"


class Style(str, Enum):
    FORMAL = "formal"
    CASUAL = "casual"
    TECHNICAL = "technical"
    CREATIVE = "creative"
    CONCISE = "concise"
    NEUTRAL = "neutral"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Complexity(str, Enum):
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]"""
    return max(low, min(high, value))


class Query(BaseModel):
    """Immutable search input"""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., min_length=1, description="Free-text search query")
    category: Optional[str] = Field(None, description="Exact category filter")
    tags: FrozenSet[str] = Field(default_factory=frozenset, description="Tag filter (any match)")
    max_results: int = Field(default=5, description="Result count, clamped to [1, 20]")
    min_confidence: float = Field(default=0.3, description="Minimum confidence (0-1)")
    sort_by: SortBy = SortBy.RELEVANCE
    algorithm: SearchAlgorithm = SearchAlgorithm.SMART
    enable_cache: bool = True
    context: str = Field(default="", description="Usage scenario, helps classification")
    user_id: Optional[str] = Field(None, description="Caller identity passed to storage")

    @field_validator("text")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Query text must not be empty")
        return value

    @field_validator("max_results")
    @classmethod
    def _clamp_max_results(cls, value: int) -> int:
        return int(clamp(value, 1, get_settings().max_results_limit))

    @field_validator("min_confidence")
    @classmethod
    def _clamp_min_confidence(cls, value: float) -> float:
        return clamp(value, 0.0, 1.0)

    @field_validator("tags", mode="before")
    @classmethod
    def _clean_tags(cls, value):
        if value is None:
            return frozenset()
        cleaned = (str(tag).strip() for tag in value if tag is not None)
        return frozenset(tag for tag in cleaned if tag)

    @field_validator("user_id")
    @classmethod
    def _check_user_id(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        value = value.strip()
        if not USER_ID_PATTERN.match(value):
            raise ValueError("user_id may only contain letters, digits, '-' and '_'")
        return value

    @field_validator("category")
    @classmethod
    def _blank_category(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @classmethod
    def create(
        cls,
        text: Optional[str],
        max_results: Optional[int] = None,
        min_confidence: Optional[float] = None,
        algorithm: Optional[str] = None,
        **kwargs,
    ) -> "Query":
        """
        Build a query, filling unset fields from settings

        Raises:
            EmptyQueryError: if text is missing or blank
        """
        if text is None or not str(text).strip():
            raise EmptyQueryError()

        settings = get_settings()
        return cls(
            text=text,
            max_results=settings.default_max_results if max_results is None else max_results,
            min_confidence=(
                settings.default_min_confidence if min_confidence is None else min_confidence
            ),
            algorithm=algorithm or settings.default_algorithm,
            **{k: v for k, v in kwargs.items() if v is not None},
        )

    @property
    def normalized_text(self) -> str:
        """Lowercased text with collapsed whitespace"""
        return " ".join(self.text.lower().split())


class IntentProfile(BaseModel):
    """Structured interpretation of a free-text query"""

    model_config = ConfigDict(frozen=True)

    action: ActionType = ActionType.GENERAL_QUERY
    domain: Domain = Domain.GENERAL
    style: Style = Style.NEUTRAL
    urgency: Urgency = Urgency.LOW
    complexity: Complexity = Complexity.MEDIUM
    semantic_keywords: Tuple[str, ...] = ()
    semantic_tags: Tuple[str, ...] = ()
    suggested_categories: Tuple[str, ...] = ()


class Candidate(BaseModel):
    """Read-only projection of a stored prompt record"""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str = ""
    description: str = ""
    category: Optional[str] = None
    tags: FrozenSet[str] = Field(default_factory=frozenset)
    content: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _ensure_aware(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def dedup_key(self) -> Optional[str]:
        """Identity used to collapse sightings; None when unidentifiable"""
        return self.id or self.name or None


class ScoredResult(BaseModel):
    """A candidate with its ranking score, confidence and match reasons"""

    model_config = ConfigDict(frozen=True)

    candidate: Candidate
    score: float = Field(default=0.0, description="Ranking score (0-100)")
    confidence: float = Field(default=0.0, description="Certainty estimate (0-1)")
    source: str = Field(..., description="Retrieval strategy that first found it")
    match_reasons: List[str] = Field(default_factory=list)

    @field_validator("score")
    @classmethod
    def _clamp_score(cls, value: float) -> float:
        return clamp(value, 0.0, 100.0)

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        return clamp(value, 0.0, 1.0)
