"""Provider orchestration under a shared time budget.

Drives provider adapters one at a time through a deterministic fallback
chain. Before each attempt the response cache is consulted for that
provider and the remaining budget is checked; the attempt itself runs
with a deadline equal to the remaining budget (never less than the
floor). Every per-provider failure (timeout, auth, safety, quota,
malformed output) is classified and the chain moves on. The run ends
with exactly one of a ``BriefResult`` or a ``FailureReport``.
"""

import asyncio
import time
from typing import Any, Callable, Iterable, Mapping

from ..cache import ResponseCache
from ..errors import MALFORMED_OUTPUT_ERROR, classify
from ..extraction import extract_result
from ..logging import get_context_logger, log_provider_attempt, log_provider_failure
from ..models import (
    BriefResult,
    ErrorCategory,
    ErrorClassification,
    FailureReason,
    FailureReport,
    ProviderId,
    Query,
    RawProviderResponse,
)
from ..providers.base import BaseProviderAdapter
from .health import ProviderHealth
from .prompts import build_prompt, result_schema

logger = get_context_logger(__name__, component="orchestrator")

DEFAULT_FLOOR_MS = 400
BUDGET_EXHAUSTED_MESSAGE = "No provider responded in time."
NO_PROVIDERS_MESSAGE = "No providers are configured."


def build_fallback_chain(
    preferred: ProviderId | None,
    default_order: Iterable[ProviderId],
) -> list[ProviderId]:
    """Preferred provider first, then the default order, without duplicates."""
    chain: list[ProviderId] = []
    head = [preferred] if preferred is not None else []
    for provider in [*head, *default_order]:
        provider = ProviderId(provider)
        if provider not in chain:
            chain.append(provider)
    return chain


class ProviderOrchestrator:
    """Runs one query through the fallback chain.

    Args:
        adapters: Adapter per provider; providers without one are skipped
        cache: Response cache, or None to disable caching
        health: Cooldown state updated after every attempt
        default_order: Fallback order after the preferred provider
        floor_ms: Minimum budget required to start an attempt, and the
            minimum per-call deadline
        clock: Monotonic clock in seconds
    """

    def __init__(
        self,
        adapters: Mapping[ProviderId, BaseProviderAdapter],
        cache: ResponseCache | None = None,
        health: ProviderHealth | None = None,
        default_order: Iterable[ProviderId] | None = None,
        floor_ms: float = DEFAULT_FLOOR_MS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.adapters = dict(adapters)
        self.cache = cache
        self.health = health or ProviderHealth()
        self.default_order = list(default_order) if default_order else list(ProviderId)
        self.floor_ms = floor_ms
        self._clock = clock

    def now(self) -> float:
        """Current time on the orchestrator clock, in seconds."""
        return self._clock()

    async def close(self) -> None:
        """Close every adapter."""
        for adapter in self.adapters.values():
            await adapter.close()

    async def resolve(
        self,
        query: Query,
        total_budget_ms: float,
        prompt: str | None = None,
        schema: dict[str, Any] | None = None,
    ) -> BriefResult | FailureReport:
        """Produce a brief for the query or a single failure report.

        Args:
            query: The query; its text is also the cache key
            total_budget_ms: Time budget for the whole chain
            prompt: User prompt; defaults to a plain brief request
            schema: Result schema given to the model

        Returns:
            BriefResult tagged with the provider that answered, or a
            FailureReport naming every provider attempted
        """
        start = self._clock()
        chain = build_fallback_chain(query.preferred_provider, self.default_order)
        prompt = prompt or build_prompt(query.text)
        schema = schema or result_schema()
        use_cache = self.cache is not None and not query.is_follow_up

        attempted: list[ProviderId] = []
        last_failure: ErrorClassification | None = None

        def elapsed_ms() -> float:
            return (self._clock() - start) * 1000

        for provider in chain:
            adapter = self.adapters.get(provider)
            if adapter is None:
                logger.debug(f"No adapter for {provider.value}, skipping")
                continue

            if use_cache:
                entry = await self.cache.get(query.text, provider)
                if entry is not None:
                    logger.info(f"Cache hit for {provider.value}")
                    return BriefResult(
                        result=entry.result,
                        provider=provider,
                        sources=entry.sources,
                        from_cache=True,
                        attempted=attempted,
                        elapsed_ms=elapsed_ms(),
                    )

            remaining = total_budget_ms - elapsed_ms()
            if remaining <= self.floor_ms:
                logger.warning(
                    f"Budget exhausted ({remaining:.0f} ms left) after {len(attempted)} attempt(s)"
                )
                return FailureReport(
                    reason=FailureReason.CHAIN_EXHAUSTED,
                    category=ErrorCategory.TIMEOUT,
                    message=BUDGET_EXHAUSTED_MESSAGE,
                    provider=attempted[-1] if attempted else None,
                    attempted=attempted,
                )

            deadline_ms = max(self.floor_ms, remaining)
            attempted.append(provider)
            log_provider_attempt(provider.value, len(attempted), remaining, deadline_ms)

            attempt_start = self._clock()
            raw = await self._call(adapter, provider, query, prompt, schema, deadline_ms)
            attempt_ms = (self._clock() - attempt_start) * 1000

            error = raw.error
            if error is None:
                result = extract_result(raw.text)
                if result is not None:
                    self.health.record_success(provider)
                    if use_cache:
                        await self.cache.put(query.text, provider, result, raw.sources)
                    logger.info(
                        f"Provider {provider.value} answered in {attempt_ms:.0f} ms",
                        extra={"provider": provider.value, "attempted": len(attempted)},
                    )
                    return BriefResult(
                        result=result,
                        provider=provider,
                        sources=raw.sources,
                        from_cache=False,
                        attempted=attempted,
                        elapsed_ms=elapsed_ms(),
                    )
                error = MALFORMED_OUTPUT_ERROR

            last_failure = classify(error, provider.value)
            self.health.record_failure(provider, self._clock())
            log_provider_failure(provider.value, last_failure.category.value, attempt_ms, error)

        if last_failure is None:
            logger.error("Fallback chain has no usable providers")
            return FailureReport(
                reason=FailureReason.CHAIN_EXHAUSTED,
                message=NO_PROVIDERS_MESSAGE,
                attempted=attempted,
            )

        return FailureReport(
            reason=FailureReason.CHAIN_EXHAUSTED,
            category=last_failure.category,
            message=last_failure.message,
            provider=attempted[-1],
            attempted=attempted,
        )

    async def _call(
        self,
        adapter: BaseProviderAdapter,
        provider: ProviderId,
        query: Query,
        prompt: str,
        schema: dict[str, Any],
        deadline_ms: float,
    ) -> RawProviderResponse:
        """Call one adapter, abandoning it at the deadline."""
        try:
            return await asyncio.wait_for(
                adapter.call(
                    prompt,
                    schema,
                    history=query.history,
                    timeout_ms=deadline_ms,
                    complexity=query.complexity,
                ),
                timeout=deadline_ms / 1000,
            )
        except asyncio.TimeoutError:
            return RawProviderResponse(
                provider=provider,
                error=f"Request timed out after {deadline_ms:.0f} ms",
                elapsed_ms=deadline_ms,
            )
        except Exception as e:
            logger.exception(f"Adapter for {provider.value} raised")
            return RawProviderResponse(provider=provider, error=str(e) or type(e).__name__)
