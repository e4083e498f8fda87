"""
Supabase client wrapper for PromptHub Search
Implements the prompt storage collaborator used by retrieval
"""
from supabase import create_client, Client
from functools import lru_cache
from typing import Iterable, List, Optional, Protocol
import asyncio
import logging
import re

from ..config import get_settings
from ..errors import StorageError
from ..models.search import USER_ID_PATTERN, Candidate
from .records import candidates_from_records

logger = logging.getLogger(__name__)

# PostgREST filter syntax characters that must not leak from user text
_FILTER_UNSAFE = re.compile(r'[,()%*\\"{}]')


class PromptStorage(Protocol):
    """Storage collaborator consumed by the retrieval orchestrator"""

    async def search_text(self, text: str, user_id: Optional[str] = None) -> List[Candidate]:
        ...

    async def list_by_category(
        self, name: str, user_id: Optional[str] = None, page_size: int = 10
    ) -> List[Candidate]:
        ...

    async def list_by_filter(
        self,
        tags: Optional[Iterable[str]] = None,
        user_id: Optional[str] = None,
        page_size: int = 20,
    ) -> List[Candidate]:
        ...


@lru_cache()
def get_supabase_client(use_service_role: bool = False) -> Client:
    """
    Get Supabase client instance (cached)

    Args:
        use_service_role: If True, use service role key (bypasses RLS)

    Returns:
        Supabase client instance
    """
    settings = get_settings()
    try:
        key = (
            settings.supabase_service_role_key
            if use_service_role
            else settings.supabase_anon_key
        )
        client = create_client(settings.supabase_url, key)
        logger.info(f"Supabase client created (service_role={use_service_role})")
        return client
    except Exception as e:
        logger.error(f"Failed to create Supabase client: {e}")
        raise


def sanitize_search_text(text: str) -> str:
    """Strip characters PostgREST treats as filter syntax"""
    return " ".join(_FILTER_UNSAFE.sub(" ", text).split())


class SupabasePromptStorage:
    """
    Prompt storage backed by a Supabase `prompts` table

    supabase-py is synchronous, so every call runs in a worker thread to let
    concurrent retrieval strategies overlap. Failures raise StorageError.
    """

    def __init__(
        self,
        client: Optional[Client] = None,
        table: Optional[str] = None,
        content_preview_length: Optional[int] = None,
    ):
        settings = get_settings()
        self._client = client
        self.table = table or settings.prompts_table
        self.content_preview_length = content_preview_length or settings.content_preview_length

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_client(use_service_role=get_settings().use_service_role)
        return self._client

    def _apply_access_control(self, query, user_id: Optional[str]):
        if user_id and not USER_ID_PATTERN.match(user_id):
            raise StorageError("access_control", "user_id is not a valid identifier")
        if user_id:
            return query.or_(f"user_id.eq.{user_id},is_public.eq.true")
        return query.eq("is_public", True)

    async def _run(self, operation: str, build_query) -> List[Candidate]:
        def execute():
            return build_query().execute()

        try:
            result = await asyncio.to_thread(execute)
        except StorageError:
            raise
        except Exception as e:
            logger.error(f"Supabase {operation} failed: {e}")
            raise StorageError(operation, str(e), cause=e) from e

        data = getattr(result, "data", None)
        if data is None:
            return []
        if not isinstance(data, list):
            raise StorageError(operation, f"unexpected payload type {type(data).__name__}")

        return candidates_from_records(data, self.content_preview_length)

    async def search_text(self, text: str, user_id: Optional[str] = None) -> List[Candidate]:
        """
        Search name, description, category and content for text

        Tags match only when one equals the whole search term.

        Args:
            text: Search text
            user_id: Caller ID; own + public prompts when given, public otherwise

        Returns:
            Matching candidates ordered by name
        """
        term = sanitize_search_text(text)
        if not term:
            return []
        pattern = f"%{term}%"

        def build():
            query = (
                self.client.table(self.table)
                .select("*")
                .or_(
                    ",".join([
                        f"name.ilike.{pattern}",
                        f"description.ilike.{pattern}",
                        f"category.ilike.{pattern}",
                        f"content.ilike.{pattern}",
                        f'tags.cs.{{"{term}"}}',
                    ])
                )
            )
            return self._apply_access_control(query, user_id).order("name")

        return await self._run("search_text", build)

    async def list_by_category(
        self, name: str, user_id: Optional[str] = None, page_size: int = 10
    ) -> List[Candidate]:
        """
        List prompts in a category, newest first

        Args:
            name: Exact category name
            user_id: Caller ID for access control
            page_size: Maximum rows

        Returns:
            Candidates in the category
        """
        def build():
            query = self.client.table(self.table).select("*").eq("category", name)
            query = self._apply_access_control(query, user_id)
            return query.order("created_at", desc=True).limit(page_size)

        return await self._run("list_by_category", build)

    async def list_by_filter(
        self,
        tags: Optional[Iterable[str]] = None,
        user_id: Optional[str] = None,
        page_size: int = 20,
    ) -> List[Candidate]:
        """
        List prompts overlapping any of the given tags

        With no tags this returns a bounded page of all visible prompts.

        Args:
            tags: Tags to match (any)
            user_id: Caller ID for access control
            page_size: Maximum rows

        Returns:
            Candidates, most recently updated first
        """
        tag_list = sorted(set(tags or []))

        def build():
            query = self.client.table(self.table).select("*")
            if tag_list:
                query = query.ov("tags", tag_list)
            query = self._apply_access_control(query, user_id)
            return query.order("updated_at", desc=True).limit(page_size)

        return await self._run("list_by_filter", build)
