"""LLM provider adapters.

Components:
- BaseProviderAdapter: Uniform call contract; never raises
- OpenAICompatibleAdapter: Groq, Mistral and OpenRouter over the openai SDK
- PerplexityAdapter: Web-grounded variant returning citations as sources
"""

from ..config import Settings, get_settings
from ..models import ProviderId
from .base import BaseProviderAdapter
from .openai_compatible import OpenAICompatibleAdapter, PerplexityAdapter

ADAPTER_CLASSES: dict[ProviderId, type[OpenAICompatibleAdapter]] = {
    ProviderId.GROQ: OpenAICompatibleAdapter,
    ProviderId.MISTRAL: OpenAICompatibleAdapter,
    ProviderId.OPENROUTER: OpenAICompatibleAdapter,
    ProviderId.PERPLEXITY: PerplexityAdapter,
}


def build_adapters(settings: Settings | None = None) -> dict[ProviderId, BaseProviderAdapter]:
    """Build one adapter per provider, in the configured default order.

    Providers without an API key still get an adapter; its calls fail
    with an auth error so the chain moves past them.

    Args:
        settings: Settings to read credentials and models from

    Returns:
        Adapters keyed by provider, ordered like ``default_provider_order``
    """
    settings = settings or get_settings()
    adapters: dict[ProviderId, BaseProviderAdapter] = {}

    for provider in default_order(settings):
        simple_model, complex_model = settings.get_provider_models(provider.value)
        credentials = settings.get_provider_credentials(provider.value)
        api_key = credentials[0] if credentials else ""
        adapters[provider] = ADAPTER_CLASSES[provider](
            provider=provider,
            api_key=api_key,
            base_url=settings.get_provider_base_url(provider.value),
            simple_model=simple_model,
            complex_model=complex_model,
        )

    return adapters


def default_order(settings: Settings | None = None) -> list[ProviderId]:
    """Configured fallback order, unknown names dropped and missing providers appended."""
    settings = settings or get_settings()
    known = {p.value for p in ProviderId}
    order: list[ProviderId] = []
    for name in settings.provider_order_list:
        if name in known and ProviderId(name) not in order:
            order.append(ProviderId(name))
    for provider in ProviderId:
        if provider not in order:
            order.append(provider)
    return order


__all__ = [
    "ADAPTER_CLASSES",
    "BaseProviderAdapter",
    "OpenAICompatibleAdapter",
    "PerplexityAdapter",
    "build_adapters",
    "default_order",
]
