"""Entity resolution for incoming queries.

Turns free text into a specific movie, person or review candidate:
- 0 candidates: NoMatch (terminal)
- 1 candidate: SingleMatch, the brief is generated for it
- 2+ candidates: Ambiguous, highest confidence first; the caller picks

Components:
- TMDBSearch: Candidate search against TMDB with fuzzy confidence scoring
- EntityResolver: Classifies search results into the outcomes above
"""

from .resolver import EntityResolver
from .search import EntitySearch, TMDBSearch, score_candidate

__all__ = ["EntityResolver", "EntitySearch", "TMDBSearch", "score_candidate"]
