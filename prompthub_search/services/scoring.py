"""
Relevance Scoring
Scores candidates 0-100 from five weighted sub-scores and derives the
per-strategy 0-1 confidence used for thresholding

Score formula:
    score = 0.30 * intent + 0.25 * title + 0.20 * description
          + 0.15 * content + 0.07 * category + 0.03 * tags

Each sub-score is clamped to 0-100 before weighting. A fuzzy-match
fallback lifts candidates that no weighted signal recognises.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence
import logging

from ..models.search import Candidate, IntentProfile, Query, ScoredResult, clamp
from .intent_detection import (
    action_keywords,
    contains_term,
    count_terms,
    domain_keywords,
)

logger = logging.getLogger(__name__)


# =============================================================================
# WEIGHTS AND STRATEGY FACTORS
# =============================================================================

WEIGHTS: Dict[str, float] = {
    "intent": 0.30,
    "title": 0.25,
    "description": 0.20,
    "content": 0.15,
    "category": 0.07,
    "tags": 0.03,
}

# Confidence multipliers for the less certain strategies
KEYWORD_CONFIDENCE_FACTOR = 0.9
FUZZY_CONFIDENCE_FACTOR = 0.7
EXPANSION_CONFIDENCE_FACTORS: Dict[str, float] = {
    "semantic_keyword": 0.8,
    "category": 0.7,
    "filter": 0.7,
    "tag": 0.65,
}

FUZZY_FALLBACK_SCALE = 50.0
HIGH_MATCH = 80.0
PARTIAL_MATCH = 30.0
RELEVANT_MATCH = 50.0


@dataclass
class RelevanceScore:
    """Scorer output for one candidate"""
    score: float
    confidence: float
    reasons: List[str] = field(default_factory=list)
    components: Dict[str, float] = field(default_factory=dict)


# =============================================================================
# TEXT HELPERS
# =============================================================================

def _bigrams(text: str) -> set:
    compact = "".join(text.split())
    if len(compact) < 2:
        return {compact} if compact else set()
    return {compact[i:i + 2] for i in range(len(compact) - 1)}


def bigram_overlap(query: str, text: str) -> float:
    """Fraction of the query's character bigrams found in text (0-1)"""
    query_grams = _bigrams(query.lower())
    if not query_grams:
        return 0.0
    text_grams = _bigrams(text.lower())
    return len(query_grams & text_grams) / len(query_grams)


def _query_words(query_text: str) -> List[str]:
    return [word for word in query_text.lower().split() if len(word) > 1]


def _candidate_text(candidate: Candidate, include_content: bool = False) -> str:
    parts = [candidate.name, candidate.description, " ".join(sorted(candidate.tags))]
    if include_content:
        parts.extend([candidate.category or "", candidate.content])
    return " ".join(parts).lower()


# =============================================================================
# PER-STRATEGY CONFIDENCE
# =============================================================================

def semantic_confidence(candidate: Candidate, query_text: str) -> float:
    """Base 0.5, rising toward 1.0 on exact name/description matches"""
    needle = query_text.lower().strip()
    confidence = 0.5
    if needle and needle in candidate.name.lower():
        confidence += 0.3
    if needle and needle in candidate.description.lower():
        confidence += 0.2
    return clamp(confidence, 0.0, 1.0)


def keyword_overlap_ratio(candidate: Candidate, query_text: str) -> float:
    """Share of query words present in name, description and tags"""
    words = _query_words(query_text)
    if not words:
        return 0.0
    text = _candidate_text(candidate)
    matches = sum(1 for word in words if word in text)
    return matches / len(words)


def keyword_confidence(candidate: Candidate, query_text: str) -> float:
    return clamp(keyword_overlap_ratio(candidate, query_text) * KEYWORD_CONFIDENCE_FACTOR, 0.0, 1.0)


def fuzzy_score(candidate: Candidate, query_text: str) -> float:
    """
    Character/substring overlap heuristic (0-1)

    Whole-query containment scores 0.8; otherwise the better of the word
    match ratio (scaled 0.6) and the bigram overlap (scaled 0.5).
    """
    needle = query_text.lower().strip()
    if not needle:
        return 0.0
    text = f"{candidate.name} {candidate.description}".lower()
    if needle in text:
        return 0.8

    words = needle.split()
    word_ratio = sum(1 for word in words if word in text) / len(words)
    return max(word_ratio * 0.6, bigram_overlap(needle, text) * 0.5)


def fuzzy_confidence(candidate: Candidate, query_text: str) -> float:
    return clamp(fuzzy_score(candidate, query_text) * FUZZY_CONFIDENCE_FACTOR, 0.0, 1.0)


def expansion_confidence(source: str, candidate: Candidate, intent: IntentProfile) -> float:
    """
    Confidence for intent-expansion and filter listings

    factor * (0.5 + 0.5 * coverage), where coverage saturates at two
    semantic keyword hits anywhere in the record.
    """
    factor = EXPANSION_CONFIDENCE_FACTORS.get(source, FUZZY_CONFIDENCE_FACTOR)
    hits = count_terms(_candidate_text(candidate, include_content=True), intent.semantic_keywords)
    coverage = min(1.0, hits / 2)
    return clamp(factor * (0.5 + 0.5 * coverage), 0.0, 1.0)


def strategy_confidence(
    source: str,
    candidate: Candidate,
    query_text: str,
    intent: IntentProfile,
) -> float:
    """Dispatch to the confidence function of the strategy that found candidate"""
    if source == "semantic":
        return semantic_confidence(candidate, query_text)
    if source == "keyword":
        return keyword_confidence(candidate, query_text)
    if source == "expanded":
        return fuzzy_confidence(candidate, query_text)
    return expansion_confidence(source, candidate, intent)


# =============================================================================
# SUB-SCORES
# =============================================================================

def intent_match_score(candidate: Candidate, intent: IntentProfile) -> float:
    """Action vocabulary hits count 50, domain vocabulary hits 30"""
    text = f"{candidate.name} {candidate.description}".lower()
    action_hits = count_terms(text, action_keywords(intent.action))
    domain_hits = count_terms(text, domain_keywords(intent.domain))
    return clamp(action_hits * 50.0 + domain_hits * 30.0, 0.0, 100.0)


def field_match_score(
    field_text: str,
    query_text: str,
    keywords: Sequence[str],
    tags: Sequence[str],
) -> float:
    """
    Score one text field against the query

    Exact substring of the raw query scores 100. Otherwise keyword coverage
    (up to 70), semantic tag mentions (10 each, up to 20) and a fuzzy
    bigram term (up to 10).
    """
    if not field_text:
        return 0.0
    text = field_text.lower()
    needle = query_text.lower().strip()
    if needle and needle in text:
        return 100.0

    score = 0.0
    if keywords:
        matched = sum(1 for kw in keywords if contains_term(text, kw.lower()))
        score += 70.0 * matched / len(keywords)
    if tags:
        score += min(20.0, 10.0 * sum(1 for tag in tags if contains_term(text, tag.lower())))
    score += min(10.0, 10.0 * bigram_overlap(needle, text))
    return clamp(score, 0.0, 100.0)


def category_match_score(candidate: Candidate, intent: IntentProfile) -> float:
    suggested = {c.lower() for c in intent.suggested_categories}
    if candidate.category and candidate.category.lower() in suggested:
        return 100.0
    return 0.0


def tag_match_score(candidate: Candidate, intent: IntentProfile) -> float:
    semantic_tags = {t.lower() for t in intent.semantic_tags}
    if any(tag.lower() in semantic_tags for tag in candidate.tags):
        return 100.0
    return 0.0


# =============================================================================
# SCORER
# =============================================================================

def build_match_reasons(
    components: Dict[str, float],
    intent: IntentProfile,
    fuzzy_fallback: bool,
) -> List[str]:
    """Human-readable reasons for the strongest sub-scores"""
    reasons = []
    if components["title"] >= HIGH_MATCH:
        reasons.append("title high match")
    elif components["title"] >= PARTIAL_MATCH:
        reasons.append("title partial match")
    if components["description"] >= RELEVANT_MATCH:
        reasons.append("description relevant")
    if components["content"] >= RELEVANT_MATCH:
        reasons.append("content relevant")
    if components["intent"] >= 40.0 and intent.action.value != "generalQuery":
        reasons.append(f"{intent.action.value} intent match")
    if components["category"] > 0:
        reasons.append("category match")
    if components["tags"] > 0:
        reasons.append("tag match")
    if fuzzy_fallback:
        reasons.append("fuzzy match")
    return reasons


def score_candidate(
    candidate: Candidate,
    query: Query,
    intent: IntentProfile,
    source: str = "semantic",
) -> RelevanceScore:
    """
    Score a candidate against a query and its intent profile

    Args:
        candidate: Candidate record
        query: The query being answered
        intent: Intent profile of the query
        source: Strategy that found the candidate (drives confidence)

    Returns:
        RelevanceScore with score (0-100), confidence (0-1) and reasons
    """
    keywords = intent.semantic_keywords
    tags = intent.semantic_tags

    components = {
        "intent": intent_match_score(candidate, intent),
        "title": field_match_score(candidate.name, query.text, keywords, tags),
        "description": field_match_score(candidate.description, query.text, keywords, tags),
        "content": field_match_score(candidate.content, query.text, keywords, tags),
        "category": category_match_score(candidate, intent),
        "tags": tag_match_score(candidate, intent),
    }
    weighted = sum(components[name] * weight for name, weight in WEIGHTS.items())

    fallback = fuzzy_score(candidate, query.text) * FUZZY_FALLBACK_SCALE
    use_fallback = fallback > weighted
    score = clamp(max(weighted, fallback), 0.0, 100.0)

    reasons = build_match_reasons(components, intent, use_fallback)
    if not reasons:
        reasons = [f"{source} match"]

    return RelevanceScore(
        score=score,
        confidence=strategy_confidence(source, candidate, query.text, intent),
        reasons=reasons,
        components=components,
    )


def _merge_reasons(*groups: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(reason for group in groups for reason in group))


def score_results(
    results: List[ScoredResult],
    query: Query,
    intent: IntentProfile,
) -> List[ScoredResult]:
    """
    Apply the relevance scorer to deduplicated results

    Score and confidence are each the higher of the scorer's value and
    the one merged from the strategies.
    """
    scored = []
    for result in results:
        relevance = score_candidate(result.candidate, query, intent, result.source)
        scored.append(
            ScoredResult(
                candidate=result.candidate,
                score=max(relevance.score, result.score),
                confidence=max(relevance.confidence, result.confidence),
                source=result.source,
                match_reasons=_merge_reasons(relevance.reasons, result.match_reasons),
            )
        )

    logger.debug(f"Scored {len(scored)} results")
    return scored
