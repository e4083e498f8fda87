"""
Retrieval Orchestrator
Fans out independent storage calls for one query and collects sightings

Every call is isolated: a failure, a timeout or a malformed payload counts
as zero candidates for that call and never aborts the search.
"""
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Tuple
import asyncio
import logging

from ..config import Settings, get_settings
from ..models.search import Candidate, IntentProfile, Query, ScoredResult, SearchAlgorithm
from ..utils.supabase_client import PromptStorage
from .scoring import fuzzy_confidence, fuzzy_score, keyword_overlap_ratio, strategy_confidence

logger = logging.getLogger(__name__)

# First-person / request markers that make a query read as natural language
REQUEST_MARKERS: Tuple[str, ...] = (
    "我想", "我要", "需要", "希望", "帮我", "帮助", "如何", "怎么", "怎样",
    "i want", "i need", "help me", "how to", "how do", "can you", "looking for",
)

EXPANDED_MIN_CONFIDENCE = 0.3
PRIMARY_LABEL = "text"


@dataclass
class QueryShape:
    """Cheap structural read of a query used by smart retrieval"""
    natural_language: bool
    has_keywords: bool


@dataclass
class RetrievalCall:
    """One storage call and the strategies its candidates count for"""
    label: str
    sources: Tuple[str, ...]
    fetch: Callable[[], Awaitable[List[Candidate]]]
    reasons: List[str] = field(default_factory=list)


def analyze_query_shape(text: str) -> QueryShape:
    """
    Decide which primary paths a smart search should take

    Natural language: more than three words or a request marker.
    Keyword-like: any word longer than two characters.
    """
    lowered = text.lower()
    words = lowered.split()
    return QueryShape(
        natural_language=len(words) > 3 or any(marker in lowered for marker in REQUEST_MARKERS),
        has_keywords=any(len(word) > 2 for word in words),
    )


def primary_sources(query: Query) -> Tuple[str, ...]:
    """Strategies credited for the basic text search"""
    if query.algorithm == SearchAlgorithm.KEYWORD:
        return ("keyword",)
    if query.algorithm == SearchAlgorithm.SEMANTIC:
        return ("semantic",)
    if query.algorithm == SearchAlgorithm.HYBRID:
        return ("semantic", "keyword")

    shape = analyze_query_shape(query.text)
    sources = []
    if shape.natural_language:
        sources.append("semantic")
    if shape.has_keywords or not sources:
        sources.append("keyword")
    return tuple(sources)


def sighting_reasons(source: str, candidate: Candidate, query: Query) -> List[str]:
    """Reasons a strategy can state about a candidate before full scoring"""
    needle = query.text.lower()
    if source == "semantic":
        reasons = []
        if needle in candidate.name.lower():
            reasons.append("query in name")
        if needle in candidate.description.lower():
            reasons.append("query in description")
        return reasons
    if source == "keyword":
        return ["keyword overlap"] if keyword_overlap_ratio(candidate, query.text) > 0 else []
    if source == "tag":
        return ["semantic tag match"]
    if source == "filter":
        return ["matches filter"]
    return []


class RetrievalOrchestrator:
    """
    Runs retrieval strategies concurrently against a storage collaborator

    Strategy selection by algorithm:
    - keyword / semantic: one basic text search
    - hybrid: the basic text search credited to both, plus intent expansion
    - smart: query-shape driven primary path plus intent expansion, with a
      bounded fuzzy "expanded" fallback when too few candidates come back

    User category/tag filters add their own listing calls for every algorithm.
    """

    def __init__(self, storage: PromptStorage, settings: Optional[Settings] = None):
        self.storage = storage
        self.settings = settings or get_settings()

    def plan(self, query: Query, intent: IntentProfile) -> List[RetrievalCall]:
        """Build the list of independent calls for a query"""
        user_id = query.user_id
        settings = self.settings

        calls = [
            RetrievalCall(
                label=PRIMARY_LABEL,
                sources=primary_sources(query),
                fetch=lambda: self.storage.search_text(query.text, user_id=user_id),
            )
        ]

        if query.algorithm in (SearchAlgorithm.HYBRID, SearchAlgorithm.SMART):
            raw = query.normalized_text
            keywords = [kw for kw in intent.semantic_keywords if kw.lower() != raw]
            for keyword in keywords[:settings.max_keyword_searches]:
                calls.append(RetrievalCall(
                    label=f"keyword:{keyword}",
                    sources=("semantic_keyword",),
                    fetch=lambda kw=keyword: self.storage.search_text(kw, user_id=user_id),
                    reasons=[f"keyword: {keyword}"],
                ))

            for category in intent.suggested_categories:
                calls.append(RetrievalCall(
                    label=f"category:{category}",
                    sources=("category",),
                    fetch=lambda name=category: self.storage.list_by_category(
                        name, user_id=user_id, page_size=settings.category_page_size
                    ),
                    reasons=[f"category: {category}"],
                ))

            if intent.semantic_tags:
                tags = list(intent.semantic_tags)
                calls.append(RetrievalCall(
                    label="tags",
                    sources=("tag",),
                    fetch=lambda: self.storage.list_by_filter(
                        tags=tags, user_id=user_id, page_size=settings.category_page_size
                    ),
                ))

        if query.category:
            calls.append(RetrievalCall(
                label=f"filter-category:{query.category}",
                sources=("filter",),
                fetch=lambda: self.storage.list_by_category(
                    query.category, user_id=user_id, page_size=settings.expanded_page_size
                ),
            ))
        if query.tags:
            calls.append(RetrievalCall(
                label="filter-tags",
                sources=("filter",),
                fetch=lambda: self.storage.list_by_filter(
                    tags=sorted(query.tags), user_id=user_id, page_size=settings.expanded_page_size
                ),
            ))

        return calls

    async def _guarded(self, call: RetrievalCall, search_id: str) -> List[Candidate]:
        try:
            result = await asyncio.wait_for(call.fetch(), timeout=self.settings.retrieval_timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"[{search_id}] Retrieval {call.label} timed out")
            return []
        except Exception as e:
            logger.warning(f"[{search_id}] Retrieval {call.label} failed: {e}")
            return []

        if not isinstance(result, list):
            logger.warning(f"[{search_id}] Retrieval {call.label} returned malformed data")
            return []
        return [item for item in result if isinstance(item, Candidate)]

    async def _run_calls(self, calls: List[RetrievalCall], search_id: str) -> List[List[Candidate]]:
        return await asyncio.gather(*(self._guarded(call, search_id) for call in calls))

    def _sightings(
        self,
        call: RetrievalCall,
        candidates: List[Candidate],
        query: Query,
        intent: IntentProfile,
    ) -> List[ScoredResult]:
        sightings = []
        for candidate in candidates:
            for source in call.sources:
                sightings.append(ScoredResult(
                    candidate=candidate,
                    confidence=strategy_confidence(source, candidate, query.text, intent),
                    source=source,
                    match_reasons=call.reasons + sighting_reasons(source, candidate, query),
                ))
        return sightings

    async def expanded_search(self, query: Query, search_id: str = "") -> List[ScoredResult]:
        """
        Fallback: pull a bounded page of all records and fuzzy-score locally

        Only candidates with fuzzy confidence above 0.3 are kept.
        """
        call = RetrievalCall(
            label="expanded",
            sources=("expanded",),
            fetch=lambda: self.storage.list_by_filter(
                tags=None, user_id=query.user_id, page_size=self.settings.expanded_page_size
            ),
        )
        (candidates,) = await self._run_calls([call], search_id)

        sightings = []
        for candidate in candidates:
            confidence = fuzzy_confidence(candidate, query.text)
            if confidence > EXPANDED_MIN_CONFIDENCE:
                sightings.append(ScoredResult(
                    candidate=candidate,
                    score=fuzzy_score(candidate, query.text) * 100,
                    confidence=confidence,
                    source="expanded",
                    match_reasons=["fuzzy match"],
                ))

        logger.info(f"[{search_id}] Expanded search kept {len(sightings)}/{len(candidates)} candidates")
        return sightings

    async def retrieve(
        self,
        query: Query,
        intent: IntentProfile,
        search_id: str = "",
    ) -> List[ScoredResult]:
        """
        Run every planned call concurrently and return all sightings

        Args:
            query: Normalized query
            intent: Intent profile of the query
            search_id: Identifier used in log lines

        Returns:
            Sightings in call order; duplicates are left for deduplication
        """
        calls = self.plan(query, intent)
        batches = await self._run_calls(calls, search_id)

        sightings: List[ScoredResult] = []
        for call, candidates in zip(calls, batches):
            sightings.extend(self._sightings(call, candidates, query, intent))

        logger.info(
            f"[{search_id}] Retrieved {len(sightings)} sightings from {len(calls)} calls "
            f"(algorithm={query.algorithm.value})"
        )

        if query.algorithm == SearchAlgorithm.SMART:
            # Only the basic text search counts toward the floor, not intent expansion
            primary = {
                candidate.dedup_key
                for call, candidates in zip(calls, batches) if call.label == PRIMARY_LABEL
                for candidate in candidates if candidate.dedup_key
            }
            if len(primary) < self.settings.smart_fallback_floor:
                logger.info(f"[{search_id}] Only {len(primary)} primary hits, running expanded search")
                sightings.extend(await self.expanded_search(query, search_id))

        return sightings
