"""
Tests for prompt record projection
"""
from datetime import datetime, timezone

import pytest

from prompthub_search.utils.records import (
    candidate_from_record,
    candidates_from_records,
    extract_content,
    parse_timestamp,
)


def test_messages_list_of_dicts():
    """Test role/content messages are joined"""
    record = {"messages": [{"role": "system", "content": "You are helpful."}, {"role": "user", "content": "Hi"}]}

    assert extract_content(record) == "You are helpful.\n\nHi"


def test_messages_variants():
    """Test string, single dict and content column fallbacks"""
    assert extract_content({"messages": ["a", "b"]}) == "a\n\nb"
    assert extract_content({"messages": {"text": "single"}}) == "single"
    assert extract_content({"messages": "plain"}) == "plain"
    assert extract_content({"messages": [], "content": "column"}) == "column"
    assert extract_content({}) == ""


def test_content_truncated():
    """Test preview truncation with ellipsis"""
    content = extract_content({"content": "x" * 600}, max_length=500)

    assert content == "x" * 500 + "..."


def test_parse_timestamp():
    """Test ISO strings, Z suffix and garbage"""
    assert parse_timestamp("2024-06-01T10:00:00Z") == datetime(2024, 6, 1, 10, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-01") == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert parse_timestamp("not a date") is None
    assert parse_timestamp(None) is None


def test_candidate_from_record():
    """Test full record projection"""
    candidate = candidate_from_record({
        "id": 42,
        "name": "Email Writer",
        "description": None,
        "category": "business",
        "tags": ["email", " writing ", ""],
        "messages": [{"role": "user", "content": "Write an email"}],
        "created_at": "2024-01-01T00:00:00+00:00",
    })

    assert candidate.id == "42"
    assert candidate.description == ""
    assert candidate.tags == frozenset({"email", "writing"})
    assert candidate.content == "Write an email"
    assert candidate.updated_at is None


def test_comma_separated_tags():
    """Test string tags are split"""
    assert candidate_from_record({"id": "1", "tags": "a, b"}).tags == frozenset({"a", "b"})


def test_non_mapping_rejected():
    """Test invalid records raise"""
    with pytest.raises(ValueError):
        candidate_from_record(["not", "a", "dict"])


def test_malformed_records_skipped():
    """Test bulk projection skips bad rows"""
    candidates = candidates_from_records([{"id": "1", "name": "ok"}, "garbage", None])

    assert [c.id for c in candidates] == ["1"]
