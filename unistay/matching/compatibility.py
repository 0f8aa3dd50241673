import math
from typing import List, Optional

from pydantic import BaseModel

from unistay.models.profile import (
    Cleanliness,
    DrinkingHabit,
    GuestFrequency,
    Profile,
    SeekingGender,
    StudySchedule,
)

CLEANLINESS_LEVELS = {
    Cleanliness.RELAXED.value: 0,
    Cleanliness.AVERAGE.value: 1,
    Cleanliness.TIDY.value: 2,
}

GUEST_LEVELS = {
    GuestFrequency.RARELY.value: 0,
    GuestFrequency.SOMETIMES.value: 1,
    GuestFrequency.OFTEN.value: 2,
}


# --- Result Schema ---
class CompatibilityBreakdown(BaseModel):
    gender: float
    budget: float
    university: float
    lifestyle: float
    interest: float
    total: float
    score: int
    reasons: List[str]


def parse_hobbies(hobbies: Optional[str]) -> List[str]:
    if not hobbies:
        return []
    return [h.strip() for h in hobbies.lower().split(",") if h.strip()]


def _ordinal_points(levels: dict, a, b, neutral) -> float:
    diff = abs(levels.get(a, levels[neutral]) - levels.get(b, levels[neutral]))
    if diff == 0:
        return 1.0
    if diff == 1:
        return 0.5
    return 0.0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class CompatibilityScorer:
    """
    Rule-based roommate compatibility, scored from the viewer's side.

    Five weighted factors add up to 100: mutual gender preference, budget
    closeness, same university, lifestyle habits and shared interests.
    """

    WEIGHTS = {"gender": 20, "budget": 25, "university": 20, "lifestyle": 25, "interest": 10}
    LIFESTYLE_FACTORS = 5

    def _gender(self, viewer: Profile, candidate: Profile) -> float:
        viewer_likes = viewer.seeking_gender == SeekingGender.ANY or viewer.seeking_gender == candidate.gender
        candidate_likes = candidate.seeking_gender == SeekingGender.ANY or candidate.seeking_gender == viewer.gender
        # Both directions or nothing
        if viewer_likes and candidate_likes:
            return float(self.WEIGHTS["gender"])
        return 0.0

    def _budget(self, viewer: Profile, candidate: Profile) -> float:
        viewer_budget = viewer.budget or 0
        budget_diff = abs(viewer_budget - (candidate.budget or 0))
        budget_score = max(0.0, 1 - budget_diff / max(viewer_budget, 1))
        return budget_score * self.WEIGHTS["budget"]

    def _university(self, viewer: Profile, candidate: Profile) -> float:
        if viewer.university_id == candidate.university_id:
            return float(self.WEIGHTS["university"])
        return 0.0

    def lifestyle_points(self, viewer: Profile, candidate: Profile) -> float:
        """Raw lifestyle points out of LIFESTYLE_FACTORS."""
        points = 0.0
        if viewer.is_smoker == candidate.is_smoker:
            points += 1

        if viewer.study_schedule == candidate.study_schedule:
            points += 1
        elif StudySchedule.FLEXIBLE in (viewer.study_schedule, candidate.study_schedule):
            points += 0.5

        points += _ordinal_points(CLEANLINESS_LEVELS, viewer.cleanliness, candidate.cleanliness, Cleanliness.AVERAGE.value)
        points += _ordinal_points(GUEST_LEVELS, viewer.guest_frequency, candidate.guest_frequency, GuestFrequency.SOMETIMES.value)

        if viewer.drinks_alcohol == candidate.drinks_alcohol:
            points += 1
        elif DrinkingHabit.RARELY in (viewer.drinks_alcohol, candidate.drinks_alcohol):
            points += 0.5
        return points

    def _lifestyle(self, viewer: Profile, candidate: Profile) -> float:
        return self.lifestyle_points(viewer, candidate) / self.LIFESTYLE_FACTORS * self.WEIGHTS["lifestyle"]

    def shared_hobbies(self, viewer: Profile, candidate: Profile) -> List[str]:
        theirs = parse_hobbies(candidate.hobbies)
        return [h for h in parse_hobbies(viewer.hobbies) if h in theirs]

    def _interest(self, viewer: Profile, candidate: Profile) -> float:
        interest = 0.0
        if abs((viewer.year_of_study or 0) - (candidate.year_of_study or 0)) <= 1:
            interest += 5
        interest += min(5, len(self.shared_hobbies(viewer, candidate)) * 2.5)
        return interest / 10 * self.WEIGHTS["interest"]

    def breakdown(self, viewer: Profile, candidate: Profile) -> CompatibilityBreakdown:
        gender = self._gender(viewer, candidate)
        budget = self._budget(viewer, candidate)
        university = self._university(viewer, candidate)
        lifestyle = self._lifestyle(viewer, candidate)
        interest = self._interest(viewer, candidate)
        total = gender + budget + university + lifestyle + interest

        reasons = []
        if gender:
            reasons.append("Gender preferences match both ways")
        if budget >= self.WEIGHTS["budget"] * 0.9:
            reasons.append("Budgets are similar")
        elif budget > 0:
            reasons.append("Budgets are moderately compatible")
        else:
            reasons.append("Budgets differ significantly")
        if university:
            reasons.append("Same university")
        if lifestyle >= self.WEIGHTS["lifestyle"] * 0.8:
            reasons.append("Lifestyles line up")
        common = self.shared_hobbies(viewer, candidate)
        if common:
            reasons.append("Shared hobbies: " + ", ".join(common))

        return CompatibilityBreakdown(
            gender=gender,
            budget=budget,
            university=university,
            lifestyle=lifestyle,
            interest=interest,
            total=total,
            score=round_half_up(total),
            reasons=reasons,
        )

    def score(self, viewer: Profile, candidate: Profile) -> int:
        """Compatibility percentage in [0, 100]."""
        return self.breakdown(viewer, candidate).score


# --- Shared instance used by every match view ---
compatibility_scorer = CompatibilityScorer()


def score(viewer: Profile, candidate: Profile) -> int:
    return compatibility_scorer.score(viewer, candidate)
