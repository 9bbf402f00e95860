"""Prompt construction for brief generation."""

import json
from typing import Any

from ..models import MovieData
from ..query_parser import ParsedQuery, format_for_prompt

SYSTEM_PROMPT_TEMPLATE = """You are MovieMonk, an expert movie and series analyst. Your primary goal is to provide structured, accurate, and detailed information about movies, shows, and more.

You MUST always return your response as a single, valid JSON object that adheres to the schema below. Do not wrap it in prose.

- For factual data like cast, crew, release year, trailer URL, ratings, and where-to-watch, use authoritative sources. Do not hallucinate.
- If a piece of information isn't available or cannot be verified, return an empty string "" for string fields or an empty array [] for array fields.
- Include ratings from prominent sources like IMDb and Rotten Tomatoes when available.
- The 'ai_notes' field is a markdown string with trivia, popular quotes, and similar titles.
- Spoiler rules: summary_short and summary_medium are spoiler-free; summary_long_spoilers reveals everything.
- 'suspense_breaker' is a single, impactful sentence revealing a major twist.

The JSON schema you must adhere to is:
```json
{schema}
```"""


def result_schema() -> dict[str, Any]:
    """JSON schema of the brief, as given to the model."""
    return MovieData.model_json_schema()


def build_system_prompt(schema: dict[str, Any] | None = None) -> str:
    """Render the system prompt with the given (or default) schema."""
    return SYSTEM_PROMPT_TEMPLATE.format(
        schema=json.dumps(schema or result_schema(), indent=2)
    )


def build_prompt(query: str, parsed: ParsedQuery | None = None) -> str:
    """Render the user prompt for a brief request.

    Follow-up questions do not go through here; the pipeline sends them
    as typed, alongside the conversation history.
    """
    if parsed is None:
        return f'Provide a complete brief for "{query}".'
    return (
        f'Provide a complete brief for "{query}".\n'
        f"Context: {format_for_prompt(parsed)}"
    )
