"""Pydantic models for the MovieMonk brief pipeline.

This module defines the query, provider, result, cache and failure
models shared by the resolver, the orchestrator, the cache and the
HTTP/CLI surfaces.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Enumerations
# =============================================================================


class QueryComplexity(str, Enum):
    """How much reasoning a query needs; picks the model size per provider."""

    SIMPLE = "SIMPLE"
    COMPLEX = "COMPLEX"


class ProviderId(str, Enum):
    """Closed set of LLM backends.

    Declaration order is the default fallback order.
    """

    GROQ = "groq"  # fast
    MISTRAL = "mistral"  # accurate
    OPENROUTER = "openrouter"  # reasoning
    PERPLEXITY = "perplexity"  # secondary, web-grounded


class ChatRole(str, Enum):
    """Roles allowed in prior conversation turns."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class CandidateType(str, Enum):
    """Kinds of entities the search step can return."""

    MOVIE = "movie"
    PERSON = "person"
    REVIEW = "review"


class ErrorCategory(str, Enum):
    """Canonical failure categories for a single provider attempt."""

    TIMEOUT = "timeout"
    AUTH = "auth"
    SAFETY = "safety"
    QUOTA = "quota"
    MALFORMED = "malformed"
    UNKNOWN = "unknown"


class FailureReason(str, Enum):
    """Pipeline-level terminal failures."""

    NO_MATCH = "no-match"
    CHAIN_EXHAUSTED = "chain-exhausted"


# =============================================================================
# Query Models
# =============================================================================


class ChatTurn(BaseModel):
    """One prior conversation turn."""

    role: ChatRole
    content: str

    model_config = ConfigDict(frozen=True)

    @field_validator("role", mode="before")
    @classmethod
    def _map_model_role(cls, value: Any) -> Any:
        # Chat UIs label assistant turns "model"
        if isinstance(value, str) and value.lower() == "model":
            return ChatRole.ASSISTANT
        return value


class Query(BaseModel):
    """A submitted question. Immutable once created."""

    text: str = Field(..., min_length=1)
    complexity: QueryComplexity = QueryComplexity.SIMPLE
    preferred_provider: ProviderId | None = None
    history: tuple[ChatTurn, ...] = ()

    model_config = ConfigDict(frozen=True)

    @property
    def is_follow_up(self) -> bool:
        """True when the query continues an earlier conversation."""
        return len(self.history) > 0


# =============================================================================
# Structured Result
# =============================================================================


class CastMember(BaseModel):
    """A credited performer."""

    name: str
    role: str = ""
    known_for: str = ""

    model_config = ConfigDict(frozen=True, extra="ignore")


class Crew(BaseModel):
    """Key crew credits."""

    director: str = ""
    writer: str = ""
    music: str = ""

    model_config = ConfigDict(frozen=True, extra="ignore")


class Rating(BaseModel):
    """A rating from one source (IMDb, Rotten Tomatoes, ...)."""

    source: str
    score: str

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("score", mode="before")
    @classmethod
    def _stringify_score(cls, value: Any) -> Any:
        if isinstance(value, (int, float)):
            return str(value)
        return value


class WatchOption(BaseModel):
    """Where a title can be watched."""

    platform: str
    link: str = ""
    type: Literal["subscription", "rent", "free", "buy"] = "subscription"

    model_config = ConfigDict(frozen=True, extra="ignore")


class GroundingSource(BaseModel):
    """A web page a provider cited for its answer."""

    uri: str
    title: str = ""

    model_config = ConfigDict(frozen=True)


MEDIA_TYPES = {"movie", "show", "song", "franchise", "person"}
_MEDIA_TYPE_ALIASES = {
    "film": "movie",
    "tv": "show",
    "series": "show",
    "tv show": "show",
    "tv series": "show",
}


class MovieData(BaseModel):
    """The validated brief produced from a provider's raw text.

    Only identity and the short narrative are required; enrichment
    fields (images, trailer, ratings, providers) default to empty so a
    schema-valid answer with gaps still counts as a success.
    """

    title: str = Field(..., min_length=1)
    year: str
    type: str
    summary_short: str

    tmdb_id: str | None = None
    genres: list[str] = Field(default_factory=list)
    poster_url: str = ""
    backdrop_url: str = ""
    trailer_url: str = ""
    ratings: list[Rating] = Field(default_factory=list)
    cast: list[CastMember] = Field(default_factory=list)
    crew: Crew = Field(default_factory=Crew)
    summary_medium: str = ""
    summary_long_spoilers: str = ""
    suspense_breaker: str = ""
    where_to_watch: list[WatchOption] = Field(default_factory=list)
    extra_images: list[str] = Field(default_factory=list)
    ai_notes: str = ""

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("year", mode="before")
    @classmethod
    def _stringify_year(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        normalized = value.strip().lower()
        normalized = _MEDIA_TYPE_ALIASES.get(normalized, normalized)
        if normalized not in MEDIA_TYPES:
            raise ValueError(f"unsupported media type: {value!r}")
        return normalized


# =============================================================================
# Provider / Cache Records
# =============================================================================


@dataclass
class RawProviderResponse:
    """Unparsed output of one adapter call.

    Owned by the orchestrator for the duration of one attempt.
    """

    provider: ProviderId
    text: str = ""
    elapsed_ms: float = 0.0
    error: str | None = None
    sources: list[GroundingSource] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


class CacheEntry(BaseModel):
    """A cached brief for one (normalized query, provider) pair."""

    result: MovieData
    sources: list[GroundingSource] = Field(default_factory=list)
    created_at: float = Field(..., description="Epoch seconds when written")
    normalized_query: str
    provider: ProviderId

    model_config = ConfigDict(frozen=True)


# =============================================================================
# Entity Resolution
# =============================================================================


class Candidate(BaseModel):
    """A possible subject of the query, produced by the search step."""

    id: str
    title: str
    type: CandidateType
    confidence: float = Field(..., ge=0.0, le=1.0)
    snippet: str | None = None
    image: str | None = None
    year: str | None = None
    url: str | None = None

    model_config = ConfigDict(frozen=True)


class SingleMatch(BaseModel):
    """Exactly one candidate; the pipeline proceeds with it."""

    kind: Literal["single"] = "single"
    candidate: Candidate


class Ambiguous(BaseModel):
    """Several candidates, highest confidence first. The caller chooses."""

    kind: Literal["ambiguous"] = "ambiguous"
    candidates: list[Candidate]


class NoMatch(BaseModel):
    """The search step found nothing (or failed)."""

    kind: Literal["none"] = "none"
    query: str
    error: str | None = None


ResolverOutcome = SingleMatch | Ambiguous | NoMatch


# =============================================================================
# Outcomes
# =============================================================================


class ErrorClassification(BaseModel):
    """Category and user-facing message for one failure."""

    category: ErrorCategory
    message: str

    model_config = ConfigDict(frozen=True)


class BriefResult(BaseModel):
    """A successful orchestrator run."""

    kind: Literal["result"] = "result"
    result: MovieData
    provider: ProviderId
    sources: list[GroundingSource] = Field(default_factory=list)
    from_cache: bool = False
    attempted: list[ProviderId] = Field(default_factory=list)
    elapsed_ms: float = 0.0


class AmbiguousResult(BaseModel):
    """The query matched several entities; present them for selection."""

    kind: Literal["ambiguous"] = "ambiguous"
    query: str
    candidates: list[Candidate]


class FailureReport(BaseModel):
    """A terminal failure with a single canonical message."""

    kind: Literal["failure"] = "failure"
    reason: FailureReason
    category: ErrorCategory | None = None
    message: str
    provider: ProviderId | None = Field(
        default=None, description="Last provider attempted, if any"
    )
    attempted: list[ProviderId] = Field(default_factory=list)


PipelineOutcome = BriefResult | AmbiguousResult | FailureReport
