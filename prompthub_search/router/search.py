"""
Search API Router
Handles all prompt search endpoints

The SearchEngine instance lives on app.state and is created at startup
"""
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import ValidationError
from typing import Optional
import logging

from ..errors import EmptyQueryError
from ..models.requests import SearchRequest
from ..models.responses import PromptResult, SearchResponse, StatsResponse
from ..services.intent_detection import classify
from ..services.search_engine import SearchEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["search"])


def get_search_engine(request: Request) -> SearchEngine:
    """Dependency returning the app-wide search engine"""
    engine = getattr(request.app.state, "search_engine", None)
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Search engine not initialised"
        )
    return engine


@router.post("/search", response_model=SearchResponse)
async def search(
    request: SearchRequest,
    x_user_id: Optional[str] = Header(None),
    engine: SearchEngine = Depends(get_search_engine),
):
    """
    Prompt search endpoint

    Runs the full pipeline:
    1. Cache lookup
    2. Intent classification
    3. Concurrent retrieval
    4. Deduplication and scoring
    5. Filtering, sorting and truncation

    Internal failures come back as success=false with no results.
    """
    try:
        query = request.to_query(user_id=x_user_id)
    except EmptyQueryError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ValidationError as e:
        logger.warning(f"Rejected search request: {e.error_count()} invalid field(s)")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=[err["msg"] for err in e.errors()],
        )

    outcome = await engine.search(query)

    return SearchResponse(
        search_id=outcome.search_id,
        query=query.text,
        success=outcome.success,
        results=[PromptResult.from_scored(r) for r in outcome.results],
        total_found=outcome.total_found,
        from_cache=outcome.from_cache,
        timing_ms=outcome.timing_ms,
        intent=outcome.intent,
        performance=outcome.performance,
        suggestions=outcome.suggestions,
        error=outcome.error,
    )


@router.get("/search/intent")
async def debug_intent(query: str = "", context: str = ""):
    """
    Debug endpoint for intent classification

    Useful for testing and tuning the rule tables.
    """
    if not query.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(EmptyQueryError()))

    profile = classify(query, context)
    return {
        "query": query,
        "intent": profile.model_dump(mode="json"),
    }


@router.get("/search/stats", response_model=StatsResponse)
async def search_stats(engine: SearchEngine = Depends(get_search_engine)):
    """Result cache and search performance statistics"""
    return await engine.get_stats()
