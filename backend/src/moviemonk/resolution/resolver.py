"""Query-to-entity resolution."""

import logging

from ..exceptions import SearchError
from ..models import Ambiguous, NoMatch, ResolverOutcome, SingleMatch
from .search import EntitySearch

logger = logging.getLogger(__name__)


class EntityResolver:
    """Classifies search results into a single match, an ambiguous set or no match.

    Several candidates are never narrowed down here, however large the
    score gap: the caller presents them and re-enters with the user's pick.
    """

    def __init__(self, search: EntitySearch):
        self.search = search

    async def resolve(self, query: str) -> ResolverOutcome:
        """Resolve a free-text query.

        Args:
            query: The user's query text

        Returns:
            SingleMatch, Ambiguous (highest confidence first) or NoMatch
        """
        try:
            candidates = await self.search.search(query)
        except SearchError as e:
            logger.warning(f"Entity search failed for {query!r}: {e}")
            return NoMatch(query=query, error=str(e))

        if not candidates:
            logger.info(f"No candidates for {query!r}")
            return NoMatch(query=query)

        if len(candidates) == 1:
            return SingleMatch(candidate=candidates[0])

        # sorted() is stable, so ties keep the search order
        ranked = sorted(candidates, key=lambda c: c.confidence, reverse=True)
        logger.info(f"{len(ranked)} candidates for {query!r}, asking caller to choose")
        return Ambiguous(candidates=ranked)
