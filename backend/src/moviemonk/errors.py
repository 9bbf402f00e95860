"""Canonical classification of provider failures.

A fixed, ordered substring table maps raw error text to a category and a
user-facing message. Matching is case-insensitive and the first rule
that matches wins.
"""

from .models import ErrorCategory, ErrorClassification

# (substrings, category, message template) in priority order
CLASSIFICATION_RULES: tuple[tuple[tuple[str, ...], ErrorCategory, str], ...] = (
    (("timeout", "timed out"), ErrorCategory.TIMEOUT, "Request to {provider} timed out."),
    (
        ("unauthorized", "auth", "api key"),
        ErrorCategory.AUTH,
        "Authorization failed for {provider}.",
    ),
    (
        ("safety", "blocked"),
        ErrorCategory.SAFETY,
        "Query blocked by safety filters ({provider}).",
    ),
    (("limit", "quota"), ErrorCategory.QUOTA, "{provider} usage limit reached."),
    (("json", "parse"), ErrorCategory.MALFORMED, "Response formatting issue from {provider}."),
)

UNKNOWN_MESSAGE = "Unknown error from {provider}."

# Error text used when a provider answered but nothing could be extracted
MALFORMED_OUTPUT_ERROR = "Could not parse JSON from model output"


def classify(raw_error: str | None, provider: str) -> ErrorClassification:
    """Classify a raw error string from a provider.

    Args:
        raw_error: Error text as reported by the adapter (may be empty)
        provider: Provider identifier, interpolated into the message

    Returns:
        The category and canonical message
    """
    provider = getattr(provider, "value", provider)
    text = (raw_error or "").strip()
    lowered = text.lower()

    for needles, category, template in CLASSIFICATION_RULES:
        if any(needle in lowered for needle in needles):
            return ErrorClassification(category=category, message=template.format(provider=provider))

    return ErrorClassification(
        category=ErrorCategory.UNKNOWN,
        message=text or UNKNOWN_MESSAGE.format(provider=provider),
    )
