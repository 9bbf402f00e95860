"""Caller-facing brief pipeline.

Ties the entity resolver, provider selection and the orchestrator
together:

1. A caller-supplied selection skips resolution; follow-up questions
   (non-empty history) go straight to the orchestrator with the
   question sent as typed.
2. Otherwise the query is resolved: no match is terminal, several
   matches are handed back to the caller to choose from.
3. The resolved title is parsed to upgrade complexity where needed, and
   a provider is recommended when the caller did not name one.
4. The orchestrator runs the fallback chain under the configured budget.
"""

import logging
from typing import Sequence

from .cache import ResponseCache
from .config import Settings, get_settings
from .models import (
    Ambiguous,
    AmbiguousResult,
    BriefResult,
    Candidate,
    ChatTurn,
    FailureReason,
    FailureReport,
    NoMatch,
    ProviderId,
    Query,
    QueryComplexity,
)
from .orchestration.health import ProviderHealth
from .orchestration.orchestrator import ProviderOrchestrator
from .orchestration.prompts import build_prompt
from .orchestration.selection import select_provider
from .query_parser import parse_query, should_use_complex_model
from .resolution.resolver import EntityResolver

logger = logging.getLogger(__name__)

NO_MATCH_MESSAGE = 'No results found for "{query}".'


class BriefPipeline:
    """Resolve a free-text query to a brief, a candidate list or a failure."""

    def __init__(
        self,
        resolver: EntityResolver,
        orchestrator: ProviderOrchestrator,
        settings: Settings | None = None,
    ):
        self.resolver = resolver
        self.orchestrator = orchestrator
        self.settings = settings or get_settings()

    @property
    def health(self) -> ProviderHealth:
        return self.orchestrator.health

    async def close(self) -> None:
        """Close the search client and the provider clients."""
        close_search = getattr(self.resolver.search, "close", None)
        if close_search is not None:
            await close_search()
        await self.orchestrator.close()

    async def resolve(
        self,
        query: str,
        complexity: QueryComplexity = QueryComplexity.SIMPLE,
        preferred_provider: ProviderId | None = None,
        history: Sequence[ChatTurn] | None = None,
        selection: Candidate | None = None,
        total_budget_ms: float | None = None,
    ) -> BriefResult | AmbiguousResult | FailureReport:
        """Run the full pipeline for one query.

        Args:
            query: Free-text query
            complexity: Requested complexity; may be upgraded to COMPLEX
            preferred_provider: Head of the fallback chain
            history: Prior turns for a follow-up question
            selection: Candidate the user picked from an earlier ambiguous result
            total_budget_ms: Overrides the configured budget

        Returns:
            BriefResult, AmbiguousResult or FailureReport
        """
        history = tuple(history or ())
        budget = total_budget_ms if total_budget_ms is not None else self.settings.total_budget_ms
        candidate: Candidate | None = selection
        title = query.strip()

        if selection is not None:
            title = selection.title
        elif not history:
            outcome = await self.resolver.resolve(title)
            if isinstance(outcome, NoMatch):
                return FailureReport(
                    reason=FailureReason.NO_MATCH,
                    message=NO_MATCH_MESSAGE.format(query=title),
                )
            if isinstance(outcome, Ambiguous):
                return AmbiguousResult(query=title, candidates=outcome.candidates)
            candidate = outcome.candidate
            title = candidate.title

        if history:
            prompt = query.strip()
        else:
            parsed = parse_query(query)
            if complexity == QueryComplexity.SIMPLE and should_use_complex_model(parsed):
                logger.debug(f"Upgrading {title!r} to COMPLEX")
                complexity = QueryComplexity.COMPLEX
            prompt = build_prompt(title, parsed)

        if preferred_provider is None and candidate is not None:
            recommendation = select_provider(candidate, self.health, self.orchestrator.now())
            preferred_provider = recommendation.selected
            logger.debug(f"Selected {preferred_provider.value}: {recommendation.reason}")

        request = Query(
            text=title,
            complexity=complexity,
            preferred_provider=preferred_provider,
            history=history,
        )
        return await self.orchestrator.resolve(request, budget, prompt=prompt)


def build_pipeline(
    settings: Settings | None = None,
    cache: ResponseCache | None = None,
    health: ProviderHealth | None = None,
) -> BriefPipeline:
    """Wire a pipeline from settings with the production collaborators."""
    from .providers import build_adapters, default_order
    from .resolution.search import TMDBSearch

    settings = settings or get_settings()
    orchestrator = ProviderOrchestrator(
        adapters=build_adapters(settings),
        cache=cache,
        health=health or ProviderHealth(settings.provider_error_cooldown_seconds),
        default_order=default_order(settings),
        floor_ms=settings.min_floor_ms,
    )
    return BriefPipeline(EntityResolver(TMDBSearch(settings)), orchestrator, settings)
