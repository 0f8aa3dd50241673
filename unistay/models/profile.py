import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from unistay.errors import ProfileValidationError

logger = logging.getLogger(__name__)


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"


class SeekingGender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    ANY = "Any"


class LeaseDuration(str, Enum):
    SEMESTER = "Semester"
    FULL_YEAR = "Full Year"
    FLEXIBLE = "Flexible"


class DrinkingHabit(str, Enum):
    SOCIALLY = "Socially"
    RARELY = "Rarely"
    NO = "No"


class StudySchedule(str, Enum):
    EARLY_BIRD = "Early Bird"
    NIGHT_OWL = "Night Owl"
    FLEXIBLE = "Flexible"


class Cleanliness(str, Enum):
    TIDY = "Tidy"
    AVERAGE = "Average"
    RELAXED = "Relaxed"


class GuestFrequency(str, Enum):
    RARELY = "Rarely"
    SOMETIMES = "Sometimes"
    OFTEN = "Often"


class RoommateStatus(str, Enum):
    NO_ROOMMATE = "no-roommate"
    ROOMIES = "roomies"
    PENDING_REQUEST = "pending-request"


# Fields that fall back to "unknown" when a stored value is outside its enum.
NEUTRAL_ENUM_FIELDS = {
    "gender",
    "seeking_gender",
    "lease_duration",
    "drinks_alcohol",
    "study_schedule",
    "cleanliness",
    "guest_frequency",
    "roommate_status",
}


class ProfileFields(BaseModel):
    # Academic
    university_id: Optional[str] = None
    course: Optional[str] = None
    year_of_study: Optional[int] = Field(None, ge=1)

    # Housing preference
    age: Optional[int] = Field(None, ge=0)
    date_of_birth: Optional[str] = Field(None, description="YYYY-MM-DD")
    budget: Optional[int] = Field(None, ge=0, description="Monthly budget, currency agnostic")
    move_in_date: Optional[str] = Field(None, description="YYYY-MM-DD")
    lease_duration: Optional[LeaseDuration] = None

    # Lifestyle
    is_smoker: Optional[bool] = None
    drinks_alcohol: Optional[DrinkingHabit] = None
    study_schedule: Optional[StudySchedule] = None
    cleanliness: Optional[Cleanliness] = None
    guest_frequency: Optional[GuestFrequency] = None

    # Social
    hobbies: Optional[str] = Field(None, description="Comma-separated hobbies, e.g. 'football, chess'")
    bio: Optional[str] = None
    gender: Optional[Gender] = None
    seeking_gender: Optional[SeekingGender] = None

    contact_number: Optional[str] = None
    student_number: Optional[str] = None
    image_url: Optional[str] = None

    class Config:
        use_enum_values = True  # store enum values directly in MongoDB


class Profile(ProfileFields):
    id: str = Field(alias="_id")
    name: str
    email: Optional[str] = None
    roommate_status: RoommateStatus = RoommateStatus.NO_ROOMMATE
    created_at: Optional[datetime] = None

    class Config:
        populate_by_name = True
        use_enum_values = True

    @property
    def is_complete(self) -> bool:
        """Enough is filled in for the profile to take part in matching."""
        return bool(self.contact_number and self.university_id and self.course)


class ProfileCreate(ProfileFields):
    name: str


class ProfileUpdate(ProfileFields):
    """All fields optional; only the ones sent are changed."""
    name: Optional[str] = None


def profile_from_document(doc: Any) -> Profile:
    """
    Build a Profile from a stored document.

    Out-of-range enum values on optional fields are replaced by None, which
    every consumer treats as the neutral default. Anything else that fails
    validation raises ProfileValidationError.
    """
    if not isinstance(doc, dict):
        raise ProfileValidationError(f"Profile document must be an object, got {type(doc).__name__}")

    data: Dict[str, Any] = dict(doc)
    if "_id" in data:
        data["_id"] = str(data["_id"])
    elif "id" in data:
        data["_id"] = str(data.pop("id"))

    try:
        return Profile.model_validate(data)
    except ValidationError as e:
        neutralised = []
        for err in e.errors():
            field = err["loc"][0] if err["loc"] else None
            if err["type"] != "enum" or field not in NEUTRAL_ENUM_FIELDS:
                raise ProfileValidationError(
                    f"Invalid profile {data.get('_id')!r}: {err['loc']} {err['msg']}"
                ) from e
            neutralised.append(field)

    for field in neutralised:
        logger.warning("Profile %s has unknown %s=%r, treating as unset", data.get("_id"), field, data[field])
        data.pop(field)
    try:
        return Profile.model_validate(data)
    except ValidationError as e:
        raise ProfileValidationError(f"Invalid profile {data.get('_id')!r}: {e}") from e
