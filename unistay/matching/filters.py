import logging
from typing import Iterable, List

from pydantic import BaseModel

from unistay.matching.compatibility import CompatibilityScorer, compatibility_scorer
from unistay.models.filters import FilterCriteria
from unistay.models.profile import Profile

logger = logging.getLogger(__name__)

# Set-valued criteria and the profile attribute each one constrains
SET_CRITERIA = (
    ("university", "university_id"),
    ("gender", "gender"),
    ("cleanliness", "cleanliness"),
    ("study_schedule", "study_schedule"),
    ("guest_frequency", "guest_frequency"),
    ("drinks_alcohol", "drinks_alcohol"),
    ("lease_duration", "lease_duration"),
)


class ScoredProfile(BaseModel):
    profile: Profile
    score: int


def matches_criteria(candidate: Profile, criteria: FilterCriteria) -> bool:
    for criteria_field, profile_field in SET_CRITERIA:
        allowed = getattr(criteria, criteria_field)
        if allowed and getattr(candidate, profile_field) not in allowed:
            return False

    age = candidate.age or 0
    if criteria.age_min is not None and age < criteria.age_min:
        return False
    if criteria.age_max is not None and age > criteria.age_max:
        return False
    if criteria.budget_max is not None and (candidate.budget or 0) > criteria.budget_max:
        return False
    if criteria.is_smoker is not None and candidate.is_smoker != criteria.is_smoker:
        return False
    return True


def filter_candidates(
    viewer: Profile,
    candidates: Iterable[Profile],
    criteria: FilterCriteria,
    scorer: CompatibilityScorer = compatibility_scorer,
) -> List[ScoredProfile]:
    """
    Score every candidate other than the viewer and keep the ones that pass
    every active criterion. Order follows the input; see ranking.rank.
    """
    results: List[ScoredProfile] = []
    for candidate in candidates:
        if candidate.id == viewer.id:
            continue  # Skip the viewer's own profile
        match_score = scorer.score(viewer, candidate)
        if matches_criteria(candidate, criteria):
            results.append(ScoredProfile(profile=candidate, score=match_score))

    logger.debug("Filter kept %d candidates for %s", len(results), viewer.id)
    return results
