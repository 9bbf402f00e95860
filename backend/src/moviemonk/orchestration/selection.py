"""Provider selection by query type.

Maps the resolved candidate to a query type and picks the first
provider in that type's preference list that is not cooling down.
"""

from typing import Literal

from pydantic import BaseModel, Field

from ..models import Candidate, CandidateType, ProviderId
from .health import ProviderHealth

QueryType = Literal["movie", "person", "review", "complex"]

COMPLEX_KEYWORDS = (
    "production",
    "budget",
    "box office",
    "awards",
    "analysis",
    "breakdown",
    "comparison",
)

PREFERENCE_MATRIX: dict[str, list[ProviderId]] = {
    # Fast, accurate plot summaries
    "movie": [ProviderId.GROQ, ProviderId.MISTRAL, ProviderId.OPENROUTER, ProviderId.PERPLEXITY],
    # Biographical detail
    "person": [ProviderId.MISTRAL, ProviderId.GROQ, ProviderId.OPENROUTER, ProviderId.PERPLEXITY],
    # Web-aware opinions
    "review": [ProviderId.PERPLEXITY, ProviderId.OPENROUTER, ProviderId.MISTRAL, ProviderId.GROQ],
    "complex": [ProviderId.OPENROUTER, ProviderId.PERPLEXITY, ProviderId.MISTRAL, ProviderId.GROQ],
}

REASONS = {
    "movie": "Movie query - using a fast model for accurate summaries",
    "person": "Person query - using an accurate model for biographical detail",
    "review": "Review query - using a web-aware model for opinions and analysis",
    "complex": "Complex query - using a reasoning model for in-depth analysis",
}


class ModelSelection(BaseModel):
    """Provider recommendation for one candidate."""

    selected: ProviderId
    alternatives: list[ProviderId] = Field(default_factory=list)
    query_type: QueryType
    reason: str


def detect_query_type(title: str, candidate_type: CandidateType) -> QueryType:
    """Classify a candidate as a movie, person, review or complex query."""
    if candidate_type == CandidateType.REVIEW:
        return "review"
    if candidate_type == CandidateType.PERSON:
        return "person"

    lowered = title.lower()
    if any(keyword in lowered for keyword in COMPLEX_KEYWORDS):
        return "complex"
    return "movie"


def select_provider(
    candidate: Candidate, health: ProviderHealth | None = None, now: float = 0.0
) -> ModelSelection:
    """Choose a provider for a candidate.

    Args:
        candidate: The resolved entity
        health: Cooldown state; all providers count as available without it
        now: Current time on the clock ``health`` was fed with

    Returns:
        The first available provider in preference order, or the head of
        the preference list when every provider is cooling down
    """
    query_type = detect_query_type(candidate.title, candidate.type)
    preferences = PREFERENCE_MATRIX[query_type]

    available = [
        p for p in preferences if health is None or health.is_available(p, now)
    ]
    selected = available[0] if available else preferences[0]

    return ModelSelection(
        selected=selected,
        alternatives=[p for p in available if p != selected],
        query_type=query_type,
        reason=REASONS[query_type],
    )
