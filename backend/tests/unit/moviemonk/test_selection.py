"""Unit tests for provider health and provider selection.

Run with: pytest backend/tests/unit/moviemonk/test_selection.py -v
"""

import pytest

from moviemonk.models import Candidate, CandidateType, ProviderId
from moviemonk.orchestration import ProviderHealth, detect_query_type, select_provider


class TestProviderHealth:
    """Tests for cooldown tracking."""

    def test_available_by_default(self, health):
        assert all(health.is_available(p, now=0.0) for p in ProviderId)

    def test_cooldown_window(self, health):
        health.record_failure(ProviderId.GROQ, at=100.0)

        assert health.is_available(ProviderId.GROQ, now=110.0) is False
        assert health.is_available(ProviderId.MISTRAL, now=110.0) is True
        assert health.is_available(ProviderId.GROQ, now=130.0) is True

    def test_stale_mark_cleared(self, health):
        health.record_failure(ProviderId.GROQ, at=100.0)
        health.is_available(ProviderId.GROQ, now=200.0)

        assert health.snapshot()["groq"] is None

    def test_success_clears_failure(self, health):
        health.record_failure(ProviderId.GROQ, at=100.0)
        health.record_success(ProviderId.GROQ)

        assert health.is_available(ProviderId.GROQ, now=101.0) is True

    def test_instances_are_independent(self):
        first, second = ProviderHealth(), ProviderHealth()
        first.record_failure(ProviderId.GROQ, at=0.0)

        assert second.is_available(ProviderId.GROQ, now=1.0) is True

    def test_snapshot_lists_every_provider(self, health):
        health.record_failure(ProviderId.MISTRAL, at=5.0)

        assert health.snapshot() == {
            "groq": None,
            "mistral": 5.0,
            "openrouter": None,
            "perplexity": None,
        }


class TestDetectQueryType:
    """Tests for query type detection."""

    @pytest.mark.parametrize(
        "title,kind,expected",
        [
            ("Interstellar", CandidateType.MOVIE, "movie"),
            ("Zendaya", CandidateType.PERSON, "person"),
            ("Oppenheimer review", CandidateType.REVIEW, "review"),
            ("Avatar box office", CandidateType.MOVIE, "complex"),
            ("Making of Jaws: Production Notes", CandidateType.MOVIE, "complex"),
        ],
    )
    def test_detect(self, title, kind, expected):
        assert detect_query_type(title, kind) == expected


class TestSelectProvider:
    """Tests for the preference matrix."""

    @pytest.mark.parametrize(
        "kind,title,expected",
        [
            (CandidateType.MOVIE, "Heat", ProviderId.GROQ),
            (CandidateType.PERSON, "Al Pacino", ProviderId.MISTRAL),
            (CandidateType.REVIEW, "Heat", ProviderId.PERPLEXITY),
            (CandidateType.MOVIE, "Heat budget", ProviderId.OPENROUTER),
        ],
    )
    def test_matrix_head(self, kind, title, expected):
        candidate = Candidate(id="x", title=title, type=kind, confidence=1.0)

        selection = select_provider(candidate)

        assert selection.selected == expected
        assert len(selection.alternatives) == 3
        assert expected not in selection.alternatives

    def test_skips_cooling_provider(self, health, movie_candidate):
        health.record_failure(ProviderId.GROQ, at=10.0)

        selection = select_provider(movie_candidate, health, now=15.0)

        assert selection.selected == ProviderId.MISTRAL
        assert selection.alternatives == [ProviderId.OPENROUTER, ProviderId.PERPLEXITY]
        assert selection.query_type == "movie"

    def test_all_cooling_falls_back_to_head(self, health, movie_candidate):
        for provider in ProviderId:
            health.record_failure(provider, at=10.0)

        selection = select_provider(movie_candidate, health, now=15.0)

        assert selection.selected == ProviderId.GROQ
        assert selection.alternatives == []
