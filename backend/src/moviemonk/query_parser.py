"""Natural-language query parsing.

Extracts a clean title plus year, season/episode and regional language
hints from free text such as "Interstellar 2014", "You season 5" or
"Breaking Bad S03E02". The parsed form drives the search text, the
complexity upgrade and the prompt context.
"""

import re
from dataclasses import dataclass
from typing import Literal

YEAR_PATTERN = re.compile(r"\b(19\d{2}|20[0-2]\d)\b")
SEASON_EPISODE_PATTERN = re.compile(r"\bS(\d{1,2})E(\d{1,2})\b", re.IGNORECASE)
SEASON_PATTERN = re.compile(r"\bseason\s+(\d{1,2})\b", re.IGNORECASE)
SHORT_SEASON_PATTERN = re.compile(r"\bs(\d{1,2})\b", re.IGNORECASE)
EPISODE_PATTERN = re.compile(r"\bepisode\s+(\d{1,2})\b", re.IGNORECASE)

DETAILED_PATTERN = re.compile(
    r"\b(detailed|full plot|complete|spoilers?|breakdown|analysis|in-depth)\b",
    re.IGNORECASE,
)
FILLER_PATTERN = re.compile(
    r"\b(tv\s+show|tv\s+series|movie|film|show|series)\b", re.IGNORECASE
)
EDGE_PUNCTUATION = re.compile(r"^[^\w\s]+|[^\w\s]+$")

# First release year treated as "recent"; recent titles get the larger model
RECENT_YEAR = 2024

REGIONAL_LANGUAGES = {
    "malayalam": "Malayalam",
    "tamil": "Tamil",
    "telugu": "Telugu",
    "kannada": "Kannada",
    "hindi": "Hindi",
    "bengali": "Bengali",
    "marathi": "Marathi",
    "gujarati": "Gujarati",
    "punjabi": "Punjabi",
    "mollywood": "Malayalam",
    "kollywood": "Tamil",
    "tollywood": "Telugu",
    "sandalwood": "Kannada",
    "bollywood": "Hindi",
}


@dataclass
class ParsedQuery:
    """Structured view of a free-text query."""

    title: str
    original_query: str
    year: int | None = None
    season: int | None = None
    episode: int | None = None
    media_type: Literal["movie", "show", "auto"] = "auto"
    language: str | None = None
    is_recent: bool = False
    has_season_info: bool = False
    has_detailed_request: bool = False


def _squash(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def parse_query(query: str) -> ParsedQuery:
    """Parse a free-text query.

    Examples:
        "Interstellar 2014"     -> title="Interstellar", year=2014
        "You season 5"          -> title="You", season=5, media_type="show"
        "Breaking Bad S03E02"   -> title="Breaking Bad", season=3, episode=2
        "RRR tollywood"         -> title="RRR", language="Telugu"
    """
    original = query.strip()
    remaining = original
    parsed = ParsedQuery(title="", original_query=original)

    parsed.has_detailed_request = bool(DETAILED_PATTERN.search(remaining))

    year_match = YEAR_PATTERN.search(remaining)
    if year_match:
        parsed.year = int(year_match.group(1))
        parsed.is_recent = parsed.year >= RECENT_YEAR
        remaining = remaining.replace(year_match.group(0), "", 1)

    se_match = SEASON_EPISODE_PATTERN.search(remaining)
    if se_match:
        parsed.season = int(se_match.group(1))
        parsed.episode = int(se_match.group(2))
        remaining = remaining.replace(se_match.group(0), "", 1)
    else:
        season_match = SEASON_PATTERN.search(remaining) or SHORT_SEASON_PATTERN.search(remaining)
        if season_match:
            parsed.season = int(season_match.group(1))
            remaining = remaining.replace(season_match.group(0), "", 1)

            episode_match = EPISODE_PATTERN.search(remaining)
            if episode_match:
                parsed.episode = int(episode_match.group(1))
                remaining = remaining.replace(episode_match.group(0), "", 1)

    if parsed.season is not None:
        parsed.has_season_info = True
        parsed.media_type = "show"

    lowered = remaining.lower()
    for keyword, language in REGIONAL_LANGUAGES.items():
        if re.search(rf"\b{keyword}\b", lowered):
            parsed.language = language
            remaining = re.sub(rf"\b{keyword}\b", "", remaining, flags=re.IGNORECASE)
            break

    remaining = _squash(FILLER_PATTERN.sub("", remaining))
    parsed.title = _squash(EDGE_PUNCTUATION.sub("", remaining)) or original

    return parsed


def should_use_complex_model(parsed: ParsedQuery) -> bool:
    """Detailed requests, recent releases and episode queries need the larger model."""
    return parsed.has_detailed_request or parsed.is_recent or parsed.has_season_info


def format_for_search(parsed: ParsedQuery) -> str:
    """Search text: the title, followed by the year when known."""
    if parsed.year:
        return f"{parsed.title} {parsed.year}"
    return parsed.title


def format_for_prompt(parsed: ParsedQuery) -> str:
    """One-line context summary for the model prompt."""
    parts = [f'Title: "{parsed.title}"']
    if parsed.year:
        parts.append(f"Year: {parsed.year}")
    if parsed.season:
        parts.append(f"Season: {parsed.season}")
        if parsed.episode:
            parts.append(f"Episode: {parsed.episode}")
    if parsed.media_type != "auto":
        parts.append(f"Type: {parsed.media_type}")
    if parsed.language:
        parts.append(f"Language: {parsed.language}")
    return ", ".join(parts)
