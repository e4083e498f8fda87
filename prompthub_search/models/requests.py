"""
Request models for prompt search API
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from .search import Query, SearchAlgorithm, SortBy


class SearchRequest(BaseModel):
    """Request model for search endpoint"""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "query": "写商务邮件",
                "algorithm": "smart",
                "max_results": 5,
                "tags": ["email"],
            }
        }
    )

    query: str = Field(default="", description="Search query text")
    category: Optional[str] = Field(default=None, description="Exact category filter")
    tags: Optional[List[str]] = Field(default=None, description="Tag filter, any tag matches")
    max_results: Optional[int] = Field(default=None, description="Number of results (1-20)")
    min_confidence: Optional[float] = Field(default=None, description="Minimum confidence (0-1)")
    sort_by: SortBy = Field(default=SortBy.RELEVANCE, description="Result ordering")
    algorithm: Optional[SearchAlgorithm] = Field(default=None, description="Retrieval strategy")
    enable_cache: bool = Field(default=True, description="Serve and store cached results")
    context: str = Field(default="", description="Usage scenario to help classification")

    def to_query(self, user_id: Optional[str] = None) -> Query:
        """
        Convert to a core Query

        Raises:
            EmptyQueryError: if the query text is blank
            ValidationError: if the caller id is malformed
        """
        return Query.create(
            self.query,
            max_results=self.max_results,
            min_confidence=self.min_confidence,
            algorithm=self.algorithm,
            category=self.category,
            tags=self.tags,
            sort_by=self.sort_by,
            enable_cache=self.enable_cache,
            context=self.context,
            user_id=user_id,
        )
