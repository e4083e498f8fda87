"""
HTTP routers for PromptHub Search
"""
from .search import router as search_router

__all__ = ["search_router"]
