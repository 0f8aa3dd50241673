import logging
import os
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from unistay.db.profile_store import MongoProfileStore
from unistay.errors import NotFoundError, PersistenceError, ProfileValidationError
from unistay.matching.compatibility import compatibility_scorer
from unistay.matching.filters import ScoredProfile
from unistay.matching.views import search_matches, top_matches
from unistay.models.profile import Profile
from unistay.routes.matches.matches_response_schemas import (
    MatchResult,
    MatchSearchRequest,
    MatchSearchResponse,
    SkippedCandidate,
)
from unistay.routes.profiles.profiles_response_schemas import to_profile_response
from unistay.utils.dependencies import get_profile_store
from unistay.utils.jwt_utils import CurrentUser, get_user_from_cookie

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/matches", tags=["Match"])

TOP_MATCHES_LIMIT = int(os.getenv("TOP_MATCHES_LIMIT", "9"))


def _load(store: MongoProfileStore, user_id: str):
    try:
        viewer = store.get(user_id)
        candidates, skipped = store.load_candidates()
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Create your roommate profile first")
    except ProfileValidationError as e:
        raise HTTPException(status_code=422, detail=f"Your profile is invalid: {e}")
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return viewer, candidates, skipped


def _to_result(viewer: Profile, entry: ScoredProfile) -> MatchResult:
    breakdown = compatibility_scorer.breakdown(viewer, entry.profile)
    return MatchResult(
        profile=to_profile_response(entry.profile),
        score=entry.score,
        reasons=breakdown.reasons,
    )


@router.get("/top", response_model=List[MatchResult])
def top_matches_route(
    current_user: CurrentUser = Depends(get_user_from_cookie),
    store: MongoProfileStore = Depends(get_profile_store),
    top_n: int = Query(TOP_MATCHES_LIMIT, ge=1, le=100),
):
    """
    Get the top N roommate matches for the logged-in user.
    """
    viewer, candidates, _skipped = _load(store, current_user.id)
    return [_to_result(viewer, entry) for entry in top_matches(viewer, candidates, limit=top_n)]


@router.post("/search", response_model=MatchSearchResponse)
def search_matches_route(
    request: MatchSearchRequest,
    current_user: CurrentUser = Depends(get_user_from_cookie),
    store: MongoProfileStore = Depends(get_profile_store),
):
    """
    Filtered roommate search, ordered by the requested sort key.
    """
    viewer, candidates, skipped = _load(store, current_user.id)
    ranked = search_matches(viewer, candidates, request.criteria, request.sort_by)
    logger.info(
        "Search by %s: %d of %d candidates, %d skipped",
        viewer.id, len(ranked), len(candidates), len(skipped),
    )
    return MatchSearchResponse(
        results=[_to_result(viewer, entry) for entry in ranked],
        total=len(ranked),
        active_filters=request.criteria.active_count(),
        skipped=[SkippedCandidate(**s) for s in skipped],
    )
