"""Brief query API endpoints for MovieMonk."""

from typing import Any, Literal

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, ConfigDict, Field

from ..cache import ResponseCache, get_cache
from ..config import get_settings
from ..logging import get_context_logger
from ..models import (
    AmbiguousResult,
    BriefResult,
    Candidate,
    CandidateType,
    ChatTurn,
    ErrorCategory,
    FailureReason,
    FailureReport,
    GroundingSource,
    MovieData,
    ProviderId,
    QueryComplexity,
    ResolverOutcome,
)
from ..orchestration.selection import ModelSelection, select_provider
from ..pipeline import BriefPipeline, build_pipeline
from . import BadRequestError

logger = get_context_logger(__name__, component="api")

router = APIRouter()


# =========================
# Request / Response Models
# =========================


class QueryRequest(BaseModel):
    """Body of a brief query."""

    model_config = ConfigDict(str_strip_whitespace=True)

    q: str = Field(..., min_length=1, max_length=500)
    complexity: QueryComplexity = QueryComplexity.SIMPLE
    provider: ProviderId | None = None
    history: list[ChatTurn] = Field(default_factory=list)
    selection: Candidate | None = Field(
        default=None, description="Candidate picked from an earlier ambiguous response"
    )


class FailureDetail(BaseModel):
    """Canonical failure information."""

    reason: FailureReason
    category: ErrorCategory | None = None
    message: str
    provider: ProviderId | None = None


class QueryResponse(BaseModel):
    """Result of a brief query: a brief, candidates to choose from, or a failure."""

    ok: bool
    type: Literal["result", "ambiguous", "failure"]
    result: MovieData | None = None
    provider: ProviderId | None = None
    sources: list[GroundingSource] = Field(default_factory=list)
    from_cache: bool = False
    attempted: list[ProviderId] = Field(default_factory=list)
    candidates: list[Candidate] = Field(default_factory=list)
    error: FailureDetail | None = None


class ResolveEntityResponse(BaseModel):
    """Entity resolution outcome."""

    ok: bool = True
    type: Literal["single", "ambiguous", "none"]
    query: str
    chosen: Candidate | None = None
    candidates: list[Candidate] = Field(default_factory=list)
    error: str | None = None


class CachePurgeResponse(BaseModel):
    """Cache purge result."""

    ok: bool = True
    purged: int


# =========================
# Dependencies
# =========================


async def get_response_cache() -> ResponseCache:
    return await get_cache()


async def get_pipeline(
    request: Request, cache: ResponseCache = Depends(get_response_cache)
) -> BriefPipeline:
    """Pipeline shared across requests, built on first use."""
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        pipeline = build_pipeline(get_settings(), cache=cache)
        request.app.state.pipeline = pipeline
    return pipeline


def to_query_response(
    outcome: BriefResult | AmbiguousResult | FailureReport,
) -> QueryResponse:
    """Flatten a pipeline outcome into the wire response."""
    if isinstance(outcome, BriefResult):
        return QueryResponse(
            ok=True,
            type="result",
            result=outcome.result,
            provider=outcome.provider,
            sources=outcome.sources,
            from_cache=outcome.from_cache,
            attempted=outcome.attempted,
        )
    if isinstance(outcome, AmbiguousResult):
        return QueryResponse(ok=True, type="ambiguous", candidates=outcome.candidates)
    return QueryResponse(
        ok=False,
        type="failure",
        attempted=outcome.attempted,
        error=FailureDetail(
            reason=outcome.reason,
            category=outcome.category,
            message=outcome.message,
            provider=outcome.provider,
        ),
    )


def to_resolve_response(query: str, outcome: ResolverOutcome) -> ResolveEntityResponse:
    if outcome.kind == "single":
        return ResolveEntityResponse(
            type="single", query=query, chosen=outcome.candidate, candidates=[outcome.candidate]
        )
    if outcome.kind == "ambiguous":
        return ResolveEntityResponse(type="ambiguous", query=query, candidates=outcome.candidates)
    return ResolveEntityResponse(ok=outcome.error is None, type="none", query=query, error=outcome.error)


# =========================
# Endpoints
# =========================


@router.post("/query", response_model=QueryResponse)
async def query_brief(
    body: QueryRequest,
    pipeline: BriefPipeline = Depends(get_pipeline),
) -> QueryResponse:
    """Generate a brief for a movie, show or person.

    Terminal failures are reported with ``ok=false`` and a canonical
    message rather than an HTTP error status.
    """
    outcome = await pipeline.resolve(
        body.q,
        complexity=body.complexity,
        preferred_provider=body.provider,
        history=body.history,
        selection=body.selection,
    )
    response = to_query_response(outcome)
    logger.info(
        f"Query {body.q!r} -> {response.type}",
        extra={"provider": response.provider, "from_cache": response.from_cache},
    )
    return response


@router.get("/resolve-entity", response_model=ResolveEntityResponse)
async def resolve_entity(
    q: str = Query("", max_length=500, description="Free-text query"),
    pipeline: BriefPipeline = Depends(get_pipeline),
) -> ResolveEntityResponse:
    """Resolve a query to candidate entities without generating a brief."""
    if not q.strip():
        raise BadRequestError("Missing q", field="q")
    outcome = await pipeline.resolver.resolve(q.strip())
    return to_resolve_response(q.strip(), outcome)


@router.get("/select-model", response_model=ModelSelection)
async def select_model(
    type: CandidateType = Query(CandidateType.MOVIE, description="Candidate type"),
    title: str = Query("", max_length=500),
    pipeline: BriefPipeline = Depends(get_pipeline),
) -> ModelSelection:
    """Recommend a provider for a candidate type and title."""
    candidate = Candidate(id="selection", title=title, type=type, confidence=1.0)
    return select_provider(candidate, pipeline.health, pipeline.orchestrator.now())


@router.delete("/cache", response_model=CachePurgeResponse)
async def purge_cache(
    cache: ResponseCache = Depends(get_response_cache),
) -> CachePurgeResponse:
    """Delete every cached brief."""
    return CachePurgeResponse(purged=await cache.clear())


@router.get("/cache/stats")
async def cache_stats(
    cache: ResponseCache = Depends(get_response_cache),
) -> dict[str, Any]:
    """Cache entry count and hit/miss counters."""
    return await cache.stats()
