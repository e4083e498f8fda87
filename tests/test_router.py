"""
Tests for the search HTTP API

Runs against the FastAPI app in memory via httpx.AsyncClient; no server
and no Supabase project required.
"""
import httpx
import pytest
import pytest_asyncio

from prompthub_search.main import app


@pytest_asyncio.fixture
async def client(engine):
    app.state.search_engine = engine
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.state.search_engine = None


async def test_health(client):
    """Test health endpoint"""
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_search_returns_results(client):
    """Test a search with results"""
    response = await client.post(
        "/v1/search", json={"query": "business email", "algorithm": "keyword"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["from_cache"] is False
    assert body["total_found"] == 1
    assert body["results"][0]["id"] == "p2"
    assert body["results"][0]["source"] == "keyword"
    assert body["intent"]["domain"] == "business"
    assert body["performance"]["total_results"] == 1


async def test_search_second_call_from_cache(client):
    """Test cache hit surfaces in the response"""
    payload = {"query": "business email", "algorithm": "keyword"}

    await client.post("/v1/search", json=payload)
    response = await client.post("/v1/search", json=payload)

    assert response.json()["from_cache"] is True


async def test_no_results_is_success(client):
    """Test unknown query answers with zero results"""
    response = await client.post("/v1/search", json={"query": "zzzz_no_such_prompt_exists"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["results"] == []


@pytest.mark.parametrize("payload", [{"query": ""}, {"query": "   "}, {}])
async def test_empty_query_rejected(client, payload):
    """Test blank queries return 400"""
    response = await client.post("/v1/search", json=payload)

    assert response.status_code == 400


async def test_invalid_algorithm_rejected(client):
    """Test unknown algorithm fails validation"""
    response = await client.post("/v1/search", json={"query": "email", "algorithm": "vector"})

    assert response.status_code == 422


async def test_user_header_reaches_storage(client, engine, monkeypatch):
    """Test X-User-Id is passed to storage"""
    seen = []
    original = engine.storage.search_text

    async def recording_search(text, user_id=None):
        seen.append(user_id)
        return await original(text, user_id=user_id)

    monkeypatch.setattr(engine.storage, "search_text", recording_search)

    await client.post(
        "/v1/search",
        json={"query": "business email", "algorithm": "keyword"},
        headers={"X-User-Id": "user-123"},
    )

    assert seen == ["user-123"]


async def test_malformed_user_header_rejected(client, engine):
    """Test an X-User-Id with filter syntax is refused before any search"""
    response = await client.post(
        "/v1/search",
        json={"query": "business email", "algorithm": "keyword"},
        headers={"X-User-Id": "u1,is_public.eq.false"},
    )

    assert response.status_code == 400
    assert engine.storage.calls == []


async def test_intent_debug(client):
    """Test intent classification endpoint"""
    response = await client.get("/v1/search/intent", params={"query": "写商务邮件"})

    assert response.status_code == 200
    intent = response.json()["intent"]
    assert intent["action"] == "create"
    assert intent["domain"] == "business"


async def test_intent_debug_requires_query(client):
    """Test intent endpoint rejects blank query"""
    response = await client.get("/v1/search/intent")

    assert response.status_code == 400


async def test_stats(client):
    """Test stats endpoint"""
    await client.post("/v1/search", json={"query": "business email", "algorithm": "keyword"})
    response = await client.get("/v1/search/stats")

    assert response.status_code == 200
    body = response.json()
    assert body["cache"]["entries"] == 1
    assert body["searches"]["total_searches"] == 1


async def test_engine_missing_returns_503():
    """Test requests before startup are refused"""
    app.state.search_engine = None
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        response = await http_client.get("/v1/search/stats")

    assert response.status_code == 503
