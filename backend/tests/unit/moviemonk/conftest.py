"""Pytest fixtures for MovieMonk unit tests."""

import json
from typing import Any

import pytest

from moviemonk.cache import InMemoryStore, ResponseCache
from moviemonk.exceptions import ProviderError
from moviemonk.models import (
    Candidate,
    CandidateType,
    GroundingSource,
    MovieData,
    ProviderId,
)
from moviemonk.orchestration.health import ProviderHealth
from moviemonk.providers.base import BaseProviderAdapter


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeAdapter(BaseProviderAdapter):
    """Scripted provider that advances a fake clock instead of sleeping."""

    def __init__(
        self,
        provider: ProviderId,
        text: str | None = None,
        error: str | None = None,
        delay_ms: float = 0.0,
        clock: FakeClock | None = None,
        sources: list[GroundingSource] | None = None,
    ):
        super().__init__(provider)
        self.text = text
        self.error = error
        self.delay_ms = delay_ms
        self.clock = clock
        self.sources = sources or []
        self.calls: list[dict[str, Any]] = []

    @property
    def is_configured(self) -> bool:
        return True

    async def _complete(self, prompt, schema, history, timeout_ms, complexity):
        self.calls.append(
            {
                "prompt": prompt,
                "history": list(history),
                "timeout_ms": timeout_ms,
                "complexity": complexity,
            }
        )
        if self.clock is not None:
            self.clock.advance(self.delay_ms / 1000)
        if self.error is not None:
            raise ProviderError(self.provider.value, self.error)
        return self.text or "", list(self.sources)


class FakeSearch:
    """Entity search returning a fixed candidate list."""

    def __init__(self, candidates: list[Candidate] | None = None, error: Exception | None = None):
        self.candidates = candidates or []
        self.error = error
        self.queries: list[str] = []

    async def search(self, text: str) -> list[Candidate]:
        self.queries.append(text)
        if self.error is not None:
            raise self.error
        return list(self.candidates)


def brief_payload(title: str = "Interstellar", **overrides: Any) -> dict[str, Any]:
    payload = {
        "title": title,
        "year": "2014",
        "type": "movie",
        "genres": ["Science Fiction", "Drama"],
        "cast": [{"name": "Matthew McConaughey", "role": "Cooper", "known_for": "Dallas Buyers Club"}],
        "crew": {"director": "Christopher Nolan", "writer": "Jonathan Nolan", "music": "Hans Zimmer"},
        "ratings": [{"source": "IMDb", "score": "8.7/10"}],
        "summary_short": "Explorers travel through a wormhole to save humanity.",
    }
    payload.update(overrides)
    return payload


def brief_text(title: str = "Interstellar", **overrides: Any) -> str:
    return json.dumps(brief_payload(title, **overrides))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(start=1_000.0)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def cache(store: InMemoryStore, clock: FakeClock) -> ResponseCache:
    """Response cache over an in-memory store, driven by the fake clock."""
    return ResponseCache(store, ttl_seconds=6 * 60 * 60, clock=clock)


@pytest.fixture
def health() -> ProviderHealth:
    return ProviderHealth(cooldown_seconds=30.0)


@pytest.fixture
def sample_brief() -> MovieData:
    return MovieData.model_validate(brief_payload())


@pytest.fixture
def movie_candidate() -> Candidate:
    return Candidate(
        id="movie:157336",
        title="Interstellar",
        type=CandidateType.MOVIE,
        confidence=0.92,
        year="2014",
    )


@pytest.fixture
def make_adapter(clock: FakeClock):
    """Factory for scripted adapters sharing the fake clock."""

    def _make(provider: ProviderId, **kwargs: Any) -> FakeAdapter:
        kwargs.setdefault("clock", clock)
        return FakeAdapter(ProviderId(provider), **kwargs)

    return _make


@pytest.fixture
def make_brief():
    """Factory for valid brief JSON text."""
    return brief_text


@pytest.fixture
def make_search():
    """Factory for fixed-result entity searches."""
    return FakeSearch
