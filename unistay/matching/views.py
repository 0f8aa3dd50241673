from typing import Iterable, List

from unistay.matching.compatibility import CompatibilityScorer, compatibility_scorer
from unistay.matching.filters import ScoredProfile, filter_candidates
from unistay.matching.ranking import rank
from unistay.models.filters import FilterCriteria, SortKey
from unistay.models.profile import Profile

DEFAULT_TOP_MATCHES = 9


def search_matches(
    viewer: Profile,
    candidates: Iterable[Profile],
    criteria: FilterCriteria,
    sort_key: SortKey = SortKey.MATCH,
    scorer: CompatibilityScorer = compatibility_scorer,
) -> List[ScoredProfile]:
    """Filtered roommate search: filter, then order by the chosen key."""
    return rank(filter_candidates(viewer, candidates, criteria, scorer=scorer), sort_key)


def top_matches(
    viewer: Profile,
    candidates: Iterable[Profile],
    limit: int = DEFAULT_TOP_MATCHES,
    scorer: CompatibilityScorer = compatibility_scorer,
) -> List[ScoredProfile]:
    """Best-scoring candidates with no filters applied."""
    return search_matches(viewer, candidates, FilterCriteria(), SortKey.MATCH, scorer=scorer)[:limit]
