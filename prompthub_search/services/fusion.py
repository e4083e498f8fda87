"""
Result Fusion
Collapses sightings of the same prompt found by several strategies
"""
from typing import Dict, List
import logging

from ..models.search import ScoredResult

logger = logging.getLogger(__name__)


def deduplicate_results(sightings: List[ScoredResult]) -> List[ScoredResult]:
    """
    Deduplicate sightings by candidate identity

    Identity is the record id, or the name when the id is missing; records
    with neither are dropped. The merged result keeps the first sighting's
    position, candidate and source, the highest confidence and score seen,
    and the union of match reasons in first-seen order.

    Args:
        sightings: Results from all strategies, in arrival order

    Returns:
        One result per distinct candidate
    """
    merged: Dict[str, ScoredResult] = {}
    dropped = 0

    for sighting in sightings:
        key = sighting.candidate.dedup_key
        if key is None:
            dropped += 1
            continue

        existing = merged.get(key)
        if existing is None:
            merged[key] = sighting
            continue

        merged[key] = ScoredResult(
            candidate=existing.candidate,
            score=max(existing.score, sighting.score),
            confidence=max(existing.confidence, sighting.confidence),
            source=existing.source,
            match_reasons=list(dict.fromkeys(existing.match_reasons + sighting.match_reasons)),
        )

    if dropped:
        logger.warning(f"Dropped {dropped} results without id or name")

    logger.debug(f"Deduplicated {len(sightings)} sightings into {len(merged)} results")
    return list(merged.values())
