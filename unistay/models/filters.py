from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from unistay.models.profile import (
    Cleanliness,
    DrinkingHabit,
    Gender,
    GuestFrequency,
    LeaseDuration,
    StudySchedule,
)


class SortKey(str, Enum):
    MATCH = "match"
    RECENT = "recent"
    BUDGET_LOW = "budget-low"
    BUDGET_HIGH = "budget-high"


class FilterCriteria(BaseModel):
    """
    Viewer-supplied search constraints. An empty list or None leaves that
    attribute unconstrained.
    """
    university: List[str] = Field(default_factory=list, description="Acceptable university ids")
    gender: List[Gender] = Field(default_factory=list)
    cleanliness: List[Cleanliness] = Field(default_factory=list)
    study_schedule: List[StudySchedule] = Field(default_factory=list)
    guest_frequency: List[GuestFrequency] = Field(default_factory=list)
    drinks_alcohol: List[DrinkingHabit] = Field(default_factory=list)
    lease_duration: List[LeaseDuration] = Field(default_factory=list)

    age_min: Optional[int] = Field(None, ge=0)
    age_max: Optional[int] = Field(None, ge=0)
    budget_max: Optional[int] = Field(None, ge=0)
    is_smoker: Optional[bool] = None

    class Config:
        use_enum_values = True

    def active_count(self) -> int:
        count = 0
        for values in (
            self.university,
            self.gender,
            self.cleanliness,
            self.study_schedule,
            self.guest_frequency,
            self.drinks_alcohol,
            self.lease_duration,
        ):
            count += len(values)
        for bound in (self.age_min, self.age_max, self.budget_max, self.is_smoker):
            if bound is not None:
                count += 1
        return count
