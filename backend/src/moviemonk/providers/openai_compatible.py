"""Adapters for chat-completions compatible backends.

Groq, Mistral, OpenRouter and Perplexity all expose the OpenAI
chat-completions protocol, so a single adapter built on the ``openai``
SDK serves them all; only the base URL, models and a few request
options differ.
"""

import logging
from typing import Any, Sequence

import openai

from ..exceptions import ProviderError, ProviderNotConfiguredError
from ..models import ChatRole, ChatTurn, GroundingSource, ProviderId, QueryComplexity
from ..orchestration.prompts import build_system_prompt
from .base import BaseProviderAdapter

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.2
MAX_TOKENS = 4096


class OpenAICompatibleAdapter(BaseProviderAdapter):
    """Provider adapter for an OpenAI-compatible chat-completions API."""

    temperature = DEFAULT_TEMPERATURE
    # Ask the backend to enforce a JSON object response
    json_mode = True

    def __init__(
        self,
        provider: ProviderId,
        api_key: str,
        base_url: str,
        simple_model: str,
        complex_model: str,
        client: Any = None,
    ):
        """Initialize the adapter.

        Args:
            provider: Provider identity
            api_key: API key; an empty key makes every call fail with an auth error
            base_url: Chat-completions base URL
            simple_model: Model for SIMPLE queries
            complex_model: Model for COMPLEX queries
            client: Pre-built AsyncOpenAI client (tests inject a mock here)
        """
        super().__init__(provider)
        self.api_key = api_key
        self.base_url = base_url
        self.simple_model = simple_model
        self.complex_model = complex_model
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def client(self) -> Any:
        """Get or create the SDK client."""
        if self._client is None:
            self._client = openai.AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                max_retries=0,
            )
        return self._client

    async def close(self) -> None:
        """Close the SDK client."""
        if self._client is not None:
            await self._client.close()
            self._client = None

    def model_for(self, complexity: QueryComplexity) -> str:
        if complexity == QueryComplexity.COMPLEX:
            return self.complex_model
        return self.simple_model

    def build_messages(
        self, prompt: str, schema: dict[str, Any], history: Sequence[ChatTurn]
    ) -> list[dict[str, str]]:
        """System prompt, prior user/assistant turns, then the prompt."""
        messages = [{"role": "system", "content": build_system_prompt(schema)}]
        for turn in history:
            if turn.role == ChatRole.SYSTEM:
                continue
            messages.append({"role": turn.role.value, "content": turn.content})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def _complete(
        self,
        prompt: str,
        schema: dict[str, Any],
        history: Sequence[ChatTurn],
        timeout_ms: float | None,
        complexity: QueryComplexity,
    ) -> tuple[str, list[GroundingSource]]:
        if not self.is_configured:
            raise ProviderNotConfiguredError(self.provider.value)

        request: dict[str, Any] = {
            "model": self.model_for(complexity),
            "messages": self.build_messages(prompt, schema, history),
            "temperature": self.temperature,
            "max_tokens": MAX_TOKENS,
        }
        if self.json_mode:
            request["response_format"] = {"type": "json_object"}
        if timeout_ms is not None:
            request["timeout"] = timeout_ms / 1000

        response = await self.client.chat.completions.create(**request)

        if not response.choices:
            raise ProviderError(self.provider.value, "Empty response from model")

        choice = response.choices[0]
        if choice.finish_reason == "content_filter":
            raise ProviderError(self.provider.value, "Response blocked by safety filter")

        text = choice.message.content or ""
        if not text.strip():
            raise ProviderError(self.provider.value, "Empty response from model")

        return text, self.extract_sources(response)

    def extract_sources(self, response: Any) -> list[GroundingSource]:
        """Grounding sources attached to a response (none by default)."""
        return []

    def describe_error(self, error: Exception) -> str:
        """Prefix SDK errors with wording the error classifier recognises."""
        detail = str(error) or type(error).__name__
        if isinstance(error, openai.APITimeoutError):
            return f"Request timed out: {detail}"
        if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
            return f"Unauthorized: {detail}"
        if isinstance(error, openai.RateLimitError):
            return f"Rate limit exceeded: {detail}"
        if isinstance(error, openai.APIConnectionError):
            return f"Connection error: {detail}"
        return detail


class PerplexityAdapter(OpenAICompatibleAdapter):
    """Perplexity: web-grounded answers with citations."""

    temperature = 0.1
    # Perplexity rejects response_format=json_object
    json_mode = False

    def extract_sources(self, response: Any) -> list[GroundingSource]:
        citations = getattr(response, "citations", None) or []
        sources = []
        for citation in citations:
            if isinstance(citation, str) and citation:
                sources.append(GroundingSource(uri=citation))
            elif isinstance(citation, dict) and citation.get("url"):
                sources.append(
                    GroundingSource(uri=citation["url"], title=citation.get("title") or "")
                )
        return sources
