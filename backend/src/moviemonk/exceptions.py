"""Internal exception hierarchy.

These are raised inside adapters, the search client and cache stores.
None of them reach callers of the pipeline: adapters convert them to
error text, the resolver converts search failures to ``NoMatch`` and the
response cache swallows store failures.
"""


class MovieMonkError(Exception):
    """Base class for MovieMonk errors."""


class ProviderError(MovieMonkError):
    """An LLM backend call failed."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(message)


class ProviderNotConfiguredError(ProviderError):
    """No API key is configured for a provider."""

    def __init__(self, provider: str):
        super().__init__(provider, f"API key not configured for {provider}")


class SearchError(MovieMonkError):
    """The entity search backend failed or returned an unusable body."""


class CacheStoreError(MovieMonkError):
    """A cache store could not complete an operation."""


class CacheFullError(CacheStoreError):
    """A bounded cache store has no room for another entry."""
