"""Candidate search against TMDB.

Queries TMDB's multi search and scores every movie, show and person
result by fuzzy title similarity, popularity and (for titles) release
year agreement.
"""

import logging
from typing import Any, Protocol

import httpx
from rapidfuzz import fuzz, utils

from ..config import Settings, get_settings
from ..exceptions import SearchError
from ..models import Candidate, CandidateType
from ..query_parser import parse_query

logger = logging.getLogger(__name__)


class EntitySearch(Protocol):
    """Anything that can turn text into scored candidates."""

    async def search(self, text: str) -> list[Candidate]:
        ...


# Scoring weights
TITLE_SIMILARITY_WEIGHT = 0.6
PERSON_SIMILARITY_WEIGHT = 0.7
POPULARITY_WEIGHT = 0.3
YEAR_MATCH_BOOST = 0.2

# TMDB popularity is unbounded; this maps it onto [0, 1]
POPULARITY_SCALE = 100.0

_MEDIA_TYPES = {
    "movie": CandidateType.MOVIE,
    "tv": CandidateType.MOVIE,
    "person": CandidateType.PERSON,
}


def score_candidate(
    query_title: str,
    name: str,
    popularity: float,
    candidate_type: CandidateType,
    query_year: int | None = None,
    release_year: str | None = None,
) -> float:
    """Compute a confidence score in [0, 1] for one search result.

    Args:
        query_title: Title parsed from the user's query
        name: Title or name of the result
        popularity: Raw TMDB popularity
        candidate_type: Result type
        query_year: Year parsed from the query, if any
        release_year: Result's release year, if any

    Returns:
        Confidence score
    """
    similarity = fuzz.ratio(query_title, name, processor=utils.default_process) / 100.0
    popularity_score = min(max(popularity, 0.0) / POPULARITY_SCALE, 1.0)

    if candidate_type == CandidateType.PERSON:
        score = similarity * PERSON_SIMILARITY_WEIGHT + popularity_score * POPULARITY_WEIGHT
    else:
        score = similarity * TITLE_SIMILARITY_WEIGHT + popularity_score * POPULARITY_WEIGHT
        if query_year and release_year and release_year == str(query_year):
            score += YEAR_MATCH_BOOST

    return round(min(max(score, 0.0), 1.0), 3)


class TMDBSearch:
    """TMDB multi search.

    Authenticates with the v4 read token when configured, else with the
    v3 API key. Results are ranked by confidence (ties keep TMDB order)
    before the result limit is applied; every ranked hit reaches the
    resolver unless `search_min_confidence` is raised above zero.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or get_settings()
        self._http_client = http_client

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.settings.tmdb_base_url,
                timeout=httpx.Timeout(self.settings.tmdb_timeout_seconds),
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _auth(self) -> tuple[dict[str, str], dict[str, str]]:
        if self.settings.tmdb_read_token:
            return {"Authorization": f"Bearer {self.settings.tmdb_read_token}"}, {}
        if self.settings.tmdb_api_key:
            return {}, {"api_key": self.settings.tmdb_api_key}
        raise SearchError("TMDB credentials not configured")

    async def search(self, text: str) -> list[Candidate]:
        """Search TMDB for movies, shows and people matching the text.

        Raises:
            SearchError: If TMDB is unreachable or returns an error
        """
        parsed = parse_query(text)
        headers, params = self._auth()
        params.update(
            {
                "query": parsed.title,
                "include_adult": "false",
                "language": "en-US",
                "page": "1",
            }
        )

        try:
            response = await self.http_client.get(
                "/search/multi", params=params, headers=headers
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise SearchError(f"TMDB search failed: HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise SearchError(f"TMDB search failed: {e}") from e
        except ValueError as e:
            raise SearchError("TMDB returned a non-JSON body") from e

        candidates = [
            candidate
            for candidate in (
                self._to_candidate(item, parsed.title, parsed.year)
                for item in payload.get("results") or []
            )
            if candidate is not None
            and candidate.confidence >= self.settings.search_min_confidence
        ]
        candidates.sort(key=lambda c: c.confidence, reverse=True)
        candidates = candidates[: self.settings.search_result_limit]

        logger.debug(f"TMDB search for {parsed.title!r} returned {len(candidates)} candidates")
        return candidates

    def _to_candidate(
        self, item: dict[str, Any], query_title: str, query_year: int | None
    ) -> Candidate | None:
        media_type = item.get("media_type")
        candidate_type = _MEDIA_TYPES.get(media_type)
        if candidate_type is None or item.get("id") is None:
            return None

        name = item.get("title") or item.get("name") or item.get("original_title")
        if not name:
            return None

        release_date = item.get("release_date") or item.get("first_air_date") or ""
        release_year = release_date[:4] or None

        if candidate_type == CandidateType.PERSON:
            snippet = item.get("known_for_department")
            image = item.get("profile_path")
        else:
            snippet = (item.get("overview") or "")[:200] or None
            image = item.get("poster_path")

        return Candidate(
            id=f"{media_type}:{item['id']}",
            title=name,
            type=candidate_type,
            confidence=score_candidate(
                query_title,
                name,
                float(item.get("popularity") or 0.0),
                candidate_type,
                query_year,
                release_year,
            ),
            snippet=snippet,
            image=image,
            year=release_year,
            url=f"https://www.themoviedb.org/{media_type}/{item['id']}",
        )
