"""Base class for LLM provider adapters.

Every backend sits behind the same contract: given a prompt, a result
schema, prior turns and a deadline, return raw text or an error string.
Adapters never raise to their caller; any exception from the transport
or SDK becomes the ``error`` of the returned ``RawProviderResponse``.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Sequence

from ..models import ChatTurn, GroundingSource, ProviderId, QueryComplexity, RawProviderResponse

logger = logging.getLogger(__name__)


class BaseProviderAdapter(ABC):
    """Abstract base class for provider adapters.

    Subclasses implement ``_complete`` and may raise freely; ``call``
    takes care of timing and turning exceptions into error text.
    """

    def __init__(self, provider: ProviderId):
        self.provider = ProviderId(provider)

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials for this provider are present."""
        ...

    async def call(
        self,
        prompt: str,
        schema: dict[str, Any],
        history: Sequence[ChatTurn] = (),
        timeout_ms: float | None = None,
        complexity: QueryComplexity = QueryComplexity.SIMPLE,
    ) -> RawProviderResponse:
        """Ask the provider for a brief.

        Args:
            prompt: User prompt
            schema: JSON schema the answer must follow
            history: Prior conversation turns
            timeout_ms: Per-call deadline passed on to the transport
            complexity: Selects the provider's simple or complex model

        Returns:
            Raw text and grounding sources, or an error string
        """
        start = time.perf_counter()
        try:
            text, sources = await self._complete(
                prompt, schema, history, timeout_ms, complexity
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            elapsed_ms = (time.perf_counter() - start) * 1000
            error = self.describe_error(e)
            logger.warning(f"{self.provider.value} call failed after {elapsed_ms:.0f} ms: {error}")
            return RawProviderResponse(
                provider=self.provider, error=error, elapsed_ms=elapsed_ms
            )

        return RawProviderResponse(
            provider=self.provider,
            text=text or "",
            elapsed_ms=(time.perf_counter() - start) * 1000,
            sources=sources,
        )

    def describe_error(self, error: Exception) -> str:
        """Error text for an exception raised by ``_complete``."""
        return str(error) or type(error).__name__

    async def close(self) -> None:
        """Release network resources; nothing to release by default."""
        return None

    @abstractmethod
    async def _complete(
        self,
        prompt: str,
        schema: dict[str, Any],
        history: Sequence[ChatTurn],
        timeout_ms: float | None,
        complexity: QueryComplexity,
    ) -> tuple[str, list[GroundingSource]]:
        """Run the completion and return (text, sources)."""
        ...
