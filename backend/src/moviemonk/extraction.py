"""Structured payload extraction from raw LLM text.

Model output is untrusted: it may be wrapped in markdown fences, padded
with prose, or followed by stray braces. Three strategies are tried in
order and the first that yields a JSON object wins:

1. Strip code-fence markers and parse the remainder.
2. Parse the span from the first ``{`` to the last ``}``.
3. Scan from the first ``{`` tracking nesting depth (string aware) and
   parse the balanced span.

No repair is attempted. Trailing commas, single quotes and other
malformations fail every strategy and the caller receives ``None``.
"""

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from .models import MovieData

logger = logging.getLogger(__name__)

# ```json ... ``` or ``` ... ``` at the edges of the text
_LEADING_FENCE = re.compile(r"^\s*(?:```|~~~)[A-Za-z0-9_-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?[ \t]*(?:```|~~~)\s*$")

# Raw text logged on failure is truncated to this many characters
RAW_LOG_LIMIT = 400


def _loads_object(text: str) -> dict[str, Any] | None:
    """Parse text strictly; only a JSON object counts as success."""
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def strip_fences(raw: str) -> str:
    """Remove a leading and trailing code-fence delimiter, if present."""
    text = _LEADING_FENCE.sub("", raw, count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def _outer_span(raw: str) -> str | None:
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end <= start:
        return None
    return raw[start : end + 1]


def _balanced_span(raw: str) -> str | None:
    """Return the first balanced ``{...}`` span, ignoring braces in strings."""
    start = raw.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(raw)):
        char = raw[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return raw[start : index + 1]
    return None


def extract_json(raw: str | None) -> dict[str, Any] | None:
    """Pull a JSON object out of raw model text.

    Args:
        raw: Untrusted text returned by a provider

    Returns:
        The parsed object, or None if every strategy failed
    """
    if not raw or not raw.strip():
        return None

    parsed = _loads_object(strip_fences(raw))
    if parsed is not None:
        return parsed

    span = _outer_span(raw)
    if span is not None:
        parsed = _loads_object(span)
        if parsed is not None:
            return parsed

    span = _balanced_span(raw)
    if span is not None:
        return _loads_object(span)

    return None


def extract_result(raw: str | None) -> MovieData | None:
    """Extract and validate a brief from raw model text.

    A payload that parses but is missing a required field, or carries a
    value of the wrong shape, is treated the same as unparsable text.
    """
    payload = extract_json(raw)
    if payload is None:
        logger.warning(f"No JSON object found in model output: {(raw or '')[:RAW_LOG_LIMIT]!r}")
        return None

    try:
        return MovieData.model_validate(payload)
    except ValidationError as e:
        logger.warning(
            f"Model output failed validation ({e.error_count()} errors): "
            f"{(raw or '')[:RAW_LOG_LIMIT]!r}"
        )
        return None
