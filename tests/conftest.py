"""
PyTest configuration and fixtures for PromptHub Search tests

Provides:
- In-memory fake of the prompt storage collaborator
- Settings built without reading .env
- A sample prompt library covering business, tech, office and creative prompts
- A SearchEngine wired to the fake storage
"""
import asyncio
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

import pytest

from prompthub_search.config import Settings
from prompthub_search.models.search import Candidate
from prompthub_search.services.cache import ResultCache
from prompthub_search.services.search_engine import SearchEngine


def utc(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


SAMPLE_PROMPTS = [
    Candidate(
        id="p1",
        name="商务邮件模板",
        description="撰写正式的商务邮件",
        category="business",
        tags=frozenset({"email", "business"}),
        content="您好，感谢您的来信。",
        created_at=utc(2024, 3, 1),
        updated_at=utc(2024, 6, 1),
    ),
    Candidate(
        id="p2",
        name="Business Email Writer",
        description="Write professional business emails",
        category="business",
        tags=frozenset({"email", "writing"}),
        content="Dear team, please find attached.",
        created_at=utc(2023, 11, 5),
        updated_at=utc(2024, 1, 1),
    ),
    Candidate(
        id="p3",
        name="Code Review Assistant",
        description="Review Python code for bugs",
        category="tech",
        tags=frozenset({"programming", "review"}),
        content="Review the following code.",
        created_at=utc(2024, 2, 10),
    ),
    Candidate(
        id="p4",
        name="会议纪要总结",
        description="总结会议内容",
        category="办公",
        tags=frozenset({"meeting", "summary"}),
        content="请总结以下会议记录。",
    ),
    Candidate(
        id="p5",
        name="Marketing Copy Generator",
        description="Create creative marketing copy",
        category="creative",
        tags=frozenset({"copywriting", "marketing"}),
        content="Write a slogan for the product.",
        created_at=utc(2024, 5, 20),
        updated_at=utc(2024, 5, 21),
    ),
    Candidate(
        id="p6",
        name="Translate Assistant",
        description="Translate text between languages",
        category="翻译",
        tags=frozenset({"translation"}),
        content="Translate the text into English.",
    ),
]


class FakePromptStorage:
    """
    In-memory prompt storage

    Mirrors the Supabase query shapes: case-insensitive substring search
    over name/description/category/content, exact category listing and
    tag-overlap listing. Every call is recorded in `calls`.
    """

    def __init__(self, prompts: Optional[List[Candidate]] = None):
        self.prompts = list(SAMPLE_PROMPTS if prompts is None else prompts)
        self.calls: List[tuple] = []

    async def search_text(self, text: str, user_id: Optional[str] = None) -> List[Candidate]:
        self.calls.append(("search_text", text))
        needle = text.lower()
        return [
            p for p in self.prompts
            if any(needle in (field or "").lower() for field in (p.name, p.description, p.category, p.content))
            or text in p.tags
        ]

    async def list_by_category(
        self, name: str, user_id: Optional[str] = None, page_size: int = 10
    ) -> List[Candidate]:
        self.calls.append(("list_by_category", name))
        return [p for p in self.prompts if p.category == name][:page_size]

    async def list_by_filter(
        self,
        tags: Optional[Iterable[str]] = None,
        user_id: Optional[str] = None,
        page_size: int = 20,
    ) -> List[Candidate]:
        wanted = set(tags or [])
        self.calls.append(("list_by_filter", tuple(sorted(wanted))))
        if not wanted:
            return self.prompts[:page_size]
        return [p for p in self.prompts if p.tags & wanted][:page_size]

    def calls_to(self, method: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == method]


class FailingPromptStorage(FakePromptStorage):
    """Fake storage whose selected methods raise"""

    def __init__(self, failing: Iterable[str], prompts: Optional[List[Candidate]] = None):
        super().__init__(prompts)
        self.failing = set(failing)

    async def search_text(self, text, user_id=None):
        if "search_text" in self.failing:
            raise ConnectionError("storage unavailable")
        return await super().search_text(text, user_id)

    async def list_by_category(self, name, user_id=None, page_size=10):
        if "list_by_category" in self.failing:
            raise ConnectionError("storage unavailable")
        return await super().list_by_category(name, user_id, page_size)

    async def list_by_filter(self, tags=None, user_id=None, page_size=20):
        if "list_by_filter" in self.failing:
            raise ConnectionError("storage unavailable")
        return await super().list_by_filter(tags, user_id, page_size)


class SlowPromptStorage(FakePromptStorage):
    """Fake storage whose text search never finishes in time"""

    async def search_text(self, text, user_id=None):
        await asyncio.sleep(10)
        return []


@pytest.fixture
def settings() -> Settings:
    """Settings independent of the environment and .env"""
    return Settings(_env_file=None, retrieval_timeout_seconds=0.5)


@pytest.fixture
def storage() -> FakePromptStorage:
    return FakePromptStorage()


@pytest.fixture
def cache() -> ResultCache:
    return ResultCache(ttl=300, sweep_interval=300, max_entries=50)


@pytest.fixture
def engine(storage, cache, settings) -> SearchEngine:
    return SearchEngine(storage, cache=cache, settings=settings)


@pytest.fixture
def prompts_by_id() -> Dict[str, Candidate]:
    return {p.id: p for p in SAMPLE_PROMPTS}
