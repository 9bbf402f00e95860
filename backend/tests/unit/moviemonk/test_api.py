"""Unit tests for the brief HTTP API.

The pipeline and cache dependencies are overridden with fakes.

Run with: pytest backend/tests/unit/moviemonk/test_api.py -v
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from main import app
from moviemonk.api.query import get_pipeline, get_response_cache
from moviemonk.config import Settings
from moviemonk.models import Candidate, CandidateType, ProviderId
from moviemonk.orchestration import ProviderOrchestrator
from moviemonk.pipeline import BriefPipeline
from moviemonk.resolution import EntityResolver

G, M, O, P = ProviderId.GROQ, ProviderId.MISTRAL, ProviderId.OPENROUTER, ProviderId.PERPLEXITY


@pytest.fixture
def search(make_search, movie_candidate):
    return make_search([movie_candidate])


@pytest.fixture
def adapters(make_adapter, make_brief):
    return {p: make_adapter(p, text=make_brief()) for p in (G, M, O, P)}


@pytest.fixture
def client(search, adapters, cache, health, clock):
    orchestrator = ProviderOrchestrator(
        adapters=adapters,
        cache=cache,
        health=health,
        default_order=[G, M, O, P],
        clock=clock,
    )
    pipeline = BriefPipeline(
        EntityResolver(search), orchestrator, Settings(_env_file=None)
    )

    async def _cache():
        return cache

    app.dependency_overrides[get_pipeline] = lambda: pipeline
    app.dependency_overrides[get_response_cache] = _cache
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestQueryEndpoint:
    """Tests for POST /api/v1/query."""

    def test_result(self, client):
        response = client.post("/api/v1/query", json={"q": "Interstellar"})

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["type"] == "result"
        assert body["provider"] == "groq"
        assert body["result"]["title"] == "Interstellar"
        assert body["attempted"] == ["groq"]
        assert body["error"] is None

    def test_second_request_served_from_cache(self, client, adapters):
        client.post("/api/v1/query", json={"q": "Interstellar"})
        body = client.post("/api/v1/query", json={"q": "Interstellar"}).json()

        assert body["from_cache"] is True
        assert len(adapters[G].calls) == 1

    def test_ambiguous(self, client, search):
        search.candidates = [
            Candidate(id="movie:1", title="Dune", type=CandidateType.MOVIE, confidence=0.4),
            Candidate(id="movie:2", title="Dune", type=CandidateType.MOVIE, confidence=0.9),
        ]

        body = client.post("/api/v1/query", json={"q": "Dune"}).json()

        assert body["ok"] is True
        assert body["type"] == "ambiguous"
        assert [c["id"] for c in body["candidates"]] == ["movie:2", "movie:1"]

    def test_selection_round_trip(self, client, search):
        """Test a candidate returned by the API can be posted back as a selection."""
        search.candidates = []
        selection = {"id": "movie:2", "title": "Dune", "type": "movie", "confidence": 0.9}

        body = client.post("/api/v1/query", json={"q": "Dune", "selection": selection}).json()

        assert body["type"] == "result"

    def test_failure_is_200_with_ok_false(self, client, adapters):
        for adapter in adapters.values():
            adapter.text = None
            adapter.error = "Rate limit reached"

        response = client.post("/api/v1/query", json={"q": "Interstellar", "provider": "mistral"})

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is False
        assert body["type"] == "failure"
        assert body["error"]["reason"] == "chain-exhausted"
        assert body["error"]["category"] == "quota"
        assert body["error"]["message"] == "perplexity usage limit reached."
        assert body["error"]["provider"] == "perplexity"
        assert body["attempted"] == ["mistral", "groq", "openrouter", "perplexity"]

    def test_no_match(self, client, search):
        search.candidates = []

        body = client.post("/api/v1/query", json={"q": "xyzzy"}).json()

        assert body["ok"] is False
        assert body["error"]["reason"] == "no-match"
        assert body["error"]["message"] == 'No results found for "xyzzy".'

    def test_validation_error(self, client):
        response = client.post("/api/v1/query", json={"q": "", "provider": "gemini"})

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_blank_follow_up_rejected(self, client, adapters):
        response = client.post(
            "/api/v1/query",
            json={"q": "   ", "history": [{"role": "user", "content": "Interstellar"}]},
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        assert adapters[ProviderId.GROQ].calls == []


class TestOtherEndpoints:
    """Tests for resolve-entity, select-model, cache and health."""

    def test_resolve_entity_single(self, client):
        body = client.get("/api/v1/resolve-entity", params={"q": "interstellar"}).json()

        assert body["type"] == "single"
        assert body["chosen"]["title"] == "Interstellar"

    def test_resolve_entity_missing_q(self, client):
        response = client.get("/api/v1/resolve-entity", params={"q": "  "})

        assert response.status_code == 400
        assert response.json()["error_code"] == "BAD_REQUEST"

    def test_select_model(self, client):
        body = client.get("/api/v1/select-model", params={"type": "review", "title": "Heat"}).json()

        assert body["selected"] == "perplexity"
        assert body["query_type"] == "review"

    def test_purge_cache(self, client):
        client.post("/api/v1/query", json={"q": "Interstellar"})

        body = client.delete("/api/v1/cache").json()

        assert body == {"ok": True, "purged": 1}

    def test_cache_stats(self, client):
        body = client.get("/api/v1/cache/stats").json()

        assert body["entries"] == 0

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"


class TestRequestLogging:
    """Tests for the request ID and access log middleware."""

    def test_request_id_generated_and_logged(self, client):
        calls = []

        with patch(
            "moviemonk.api.middleware.log_api_request",
            side_effect=lambda *args, **kwargs: calls.append((args, kwargs)),
        ):
            response = client.get("/health")

        request_id = response.headers["X-Request-ID"]
        assert request_id
        assert len(calls) == 1
        args, kwargs = calls[0]
        assert args[:3] == ("GET", "/health", 200)
        assert args[3] >= 0
        assert kwargs["request_id"] == request_id

    def test_client_request_id_kept(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"
