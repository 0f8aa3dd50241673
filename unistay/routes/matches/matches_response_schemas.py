from typing import List

from pydantic import BaseModel, Field

from unistay.models.filters import FilterCriteria, SortKey
from unistay.routes.profiles.profiles_response_schemas import ProfileResponse


class MatchSearchRequest(BaseModel):
    criteria: FilterCriteria = Field(default_factory=FilterCriteria)
    sort_by: SortKey = SortKey.MATCH


class MatchResult(BaseModel):
    profile: ProfileResponse
    score: int
    reasons: List[str]


class SkippedCandidate(BaseModel):
    profile_id: str
    reason: str


class MatchSearchResponse(BaseModel):
    results: List[MatchResult]
    total: int
    active_filters: int
    skipped: List[SkippedCandidate] = Field(default_factory=list)
