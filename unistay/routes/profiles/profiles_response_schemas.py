from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from unistay.models.profile import Profile


class ProfileResponse(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    image_url: Optional[str] = None
    contact_number: Optional[str] = None
    student_number: Optional[str] = None
    age: Optional[int] = None
    date_of_birth: Optional[str] = None
    gender: Optional[str] = None
    seeking_gender: Optional[str] = None
    university_id: Optional[str] = None
    course: Optional[str] = None
    year_of_study: Optional[int] = None
    budget: Optional[int] = None
    move_in_date: Optional[str] = None
    lease_duration: Optional[str] = None
    is_smoker: Optional[bool] = None
    drinks_alcohol: Optional[str] = None
    study_schedule: Optional[str] = None
    cleanliness: Optional[str] = None
    guest_frequency: Optional[str] = None
    hobbies: Optional[str] = None
    bio: Optional[str] = None
    roommate_status: str
    created_at: Optional[datetime] = None
    is_complete: bool


def to_profile_response(profile: Profile) -> ProfileResponse:
    return ProfileResponse(**profile.model_dump(), is_complete=profile.is_complete)
