from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path

from unistay.db.profile_store import MongoProfileStore
from unistay.errors import DuplicateProfileError, NotFoundError, PersistenceError, ProfileValidationError
from unistay.models.profile import ProfileCreate, ProfileUpdate
from unistay.routes.profiles.profiles_response_schemas import ProfileResponse, to_profile_response
from unistay.utils.dependencies import get_profile_store
from unistay.utils.jwt_utils import CurrentUser, get_user_from_cookie

router = APIRouter(prefix="/profiles", tags=["Profiles"])


# --- Create Profile ---
@router.post("/", response_model=ProfileResponse)
def create_profile(
    request: ProfileCreate,
    current_user: CurrentUser = Depends(get_user_from_cookie),
    store: MongoProfileStore = Depends(get_profile_store),
):
    try:
        store.get(current_user.id)
    except NotFoundError:
        pass
    except ProfileValidationError:
        raise HTTPException(status_code=400, detail="User already has a profile")
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    else:
        raise HTTPException(status_code=400, detail="User already has a profile")

    fields = request.model_dump(exclude_none=True)
    if not fields.get("image_url") and current_user.image_url:
        fields["image_url"] = current_user.image_url
    try:
        profile = store.create(current_user.id, fields, email=current_user.email)
    except DuplicateProfileError:
        raise HTTPException(status_code=400, detail="User already has a profile")
    except ProfileValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return to_profile_response(profile)


# --- Get Own Profile ---
@router.get("/me", response_model=ProfileResponse)
def get_my_profile(
    current_user: CurrentUser = Depends(get_user_from_cookie),
    store: MongoProfileStore = Depends(get_profile_store),
):
    return get_profile(current_user.id, current_user, store)


# --- Update Own Profile ---
@router.put("/me", response_model=ProfileResponse)
def update_my_profile(
    update: ProfileUpdate,
    current_user: CurrentUser = Depends(get_user_from_cookie),
    store: MongoProfileStore = Depends(get_profile_store),
):
    fields = update.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        profile = store.update(current_user.id, fields)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ProfileValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return to_profile_response(profile)


# --- Get All Profiles ---
@router.get("/", response_model=List[ProfileResponse])
def get_profiles(
    current_user: CurrentUser = Depends(get_user_from_cookie),
    store: MongoProfileStore = Depends(get_profile_store),
):
    try:
        profiles, _skipped = store.load_candidates()
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return [to_profile_response(p) for p in profiles]


# --- Get Profile by ID ---
@router.get("/{profile_id}", response_model=ProfileResponse)
def get_profile(
    profile_id: str = Path(..., description="Profile ID"),
    current_user: CurrentUser = Depends(get_user_from_cookie),
    store: MongoProfileStore = Depends(get_profile_store),
):
    try:
        profile = store.get(profile_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Profile not found")
    except ProfileValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return to_profile_response(profile)
