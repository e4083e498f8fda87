"""
Filter & Sort Stage
Applies user filters, the confidence threshold, ordering and truncation
"""
from datetime import datetime, timezone
from typing import List
import logging

from ..models.search import Query, ScoredResult, SortBy

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def apply_user_filters(results: List[ScoredResult], query: Query) -> List[ScoredResult]:
    """
    Category must match exactly; tags need any overlap

    A result with the right category and one of two requested tags passes;
    a result with a requested tag but the wrong category does not.
    """
    if query.category:
        results = [r for r in results if r.candidate.category == query.category]
    if query.tags:
        results = [r for r in results if r.candidate.tags & query.tags]
    return results


def sort_results(results: List[ScoredResult], sort_by: SortBy) -> List[ScoredResult]:
    """Order results; timestamps sort newest first with missing ones last"""
    if sort_by == SortBy.NAME:
        return sorted(results, key=lambda r: r.candidate.name)
    if sort_by == SortBy.CREATED_AT:
        return sorted(results, key=lambda r: r.candidate.created_at or EPOCH, reverse=True)
    if sort_by == SortBy.UPDATED_AT:
        return sorted(results, key=lambda r: r.candidate.updated_at or EPOCH, reverse=True)
    return sorted(results, key=lambda r: r.score, reverse=True)


def finalize(results: List[ScoredResult], query: Query) -> List[ScoredResult]:
    """
    Turn scored results into the final result set

    Args:
        results: Deduplicated, scored results
        query: Query carrying filters, threshold, ordering and size

    Returns:
        At most query.max_results results, each with
        confidence >= query.min_confidence
    """
    filtered = apply_user_filters(results, query)
    confident = [r for r in filtered if r.confidence >= query.min_confidence]
    ordered = sort_results(confident, query.sort_by)

    logger.debug(
        f"Finalized {len(results)} -> filtered {len(filtered)} -> "
        f"confident {len(confident)} -> returned {min(len(ordered), query.max_results)}"
    )
    return ordered[:query.max_results]
