from datetime import datetime, timedelta, timezone

import mongomock
import pytest

from unistay.db.connection_store import MongoConnectionRequestStore
from unistay.db.profile_store import MongoProfileStore
from unistay.matching.connections import ConnectionWorkflow
from unistay.models.profile import Profile

BASE_PROFILE = {
    "name": "Student",
    "age": 21,
    "university_id": "uni-makerere",
    "course": "Computer Science",
    "year_of_study": 2,
    "budget": 500000,
    "lease_duration": "Full Year",
    "is_smoker": False,
    "drinks_alcohol": "No",
    "study_schedule": "Early Bird",
    "cleanliness": "Tidy",
    "guest_frequency": "Rarely",
    "hobbies": "Football, Chess",
    "gender": "Male",
    "seeking_gender": "Any",
    "contact_number": "0700000000",
}


def make_profile(profile_id: str = "viewer", **overrides) -> Profile:
    data = {**BASE_PROFILE, "_id": profile_id, "name": profile_id.title(), **overrides}
    return Profile.model_validate(data)


class FakeClock:
    def __init__(self, start=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        self.now = self.now + timedelta(minutes=1)
        return self.now


@pytest.fixture
def mongo_db():
    return mongomock.MongoClient(tz_aware=True)["unistay_test"]


@pytest.fixture
def profile_store(mongo_db):
    return MongoProfileStore(mongo_db["profiles"])


@pytest.fixture
def request_store(mongo_db):
    return MongoConnectionRequestStore(mongo_db["connection_requests"])


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def seed_profiles(mongo_db):
    def _seed(*profiles):
        for profile in profiles:
            mongo_db["profiles"].insert_one(profile.model_dump(by_alias=True))
    return _seed


@pytest.fixture
def workflow(request_store, profile_store, clock):
    return ConnectionWorkflow(request_store, profile_store, clock=clock)
