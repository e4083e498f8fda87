"""
Error types for PromptHub Search

Only EmptyQueryError ever reaches a caller. Storage failures are absorbed
per retrieval call and anything else is absorbed by the search engine.
"""
from typing import Optional


class PromptSearchError(Exception):
    """Base class for search errors"""


class EmptyQueryError(PromptSearchError, ValueError):
    """Raised when a query has no searchable text"""

    def __init__(self, message: str = "Query text must not be empty"):
        super().__init__(message)


class StorageError(PromptSearchError):
    """Raised by the storage collaborator when a backend call fails"""

    def __init__(self, operation: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.cause = cause
