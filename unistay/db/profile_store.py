import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from unistay.errors import DuplicateProfileError, NotFoundError, PersistenceError, ProfileValidationError
from unistay.models.profile import Profile, RoommateStatus, profile_from_document

logger = logging.getLogger(__name__)


class MongoProfileStore:
    """Profiles keyed by the owning user's id."""

    def __init__(self, collection):
        self.collection = collection

    def get(self, profile_id: str) -> Profile:
        try:
            doc = self.collection.find_one({"_id": profile_id})
        except PyMongoError as e:
            raise PersistenceError(f"Failed to load profile {profile_id}: {e}") from e
        if not doc:
            raise NotFoundError(f"Profile {profile_id} not found")
        return profile_from_document(doc)

    def list_documents(self) -> List[Dict[str, Any]]:
        try:
            return list(self.collection.find())
        except PyMongoError as e:
            raise PersistenceError(f"Failed to list profiles: {e}") from e

    def load_candidates(self) -> Tuple[List[Profile], List[Dict[str, str]]]:
        """
        Validate every stored profile. Documents that cannot be repaired are
        returned separately with the reason instead of being dropped silently.
        """
        profiles: List[Profile] = []
        skipped: List[Dict[str, str]] = []
        for doc in self.list_documents():
            try:
                profiles.append(profile_from_document(doc))
            except ProfileValidationError as e:
                profile_id = str(doc.get("_id")) if isinstance(doc, dict) else ""
                logger.warning("Skipping candidate %s: %s", profile_id, e)
                skipped.append({"profile_id": profile_id, "reason": str(e)})
        return profiles, skipped

    def create(self, profile_id: str, fields: Dict[str, Any], email: Optional[str] = None) -> Profile:
        doc = {
            "_id": profile_id,
            **fields,
            "email": email,
            "roommate_status": RoommateStatus.NO_ROOMMATE.value,
            "created_at": datetime.now(timezone.utc),
        }
        profile = profile_from_document(doc)
        try:
            self.collection.insert_one(profile.model_dump(by_alias=True))
        except DuplicateKeyError as e:
            raise DuplicateProfileError(f"Profile {profile_id} already exists") from e
        except PyMongoError as e:
            raise PersistenceError(f"Failed to create profile {profile_id}: {e}") from e
        logger.info("Created profile %s", profile_id)
        return profile

    def update(self, profile_id: str, fields: Dict[str, Any]) -> Profile:
        # Reject bad values before anything is written
        current = self.get(profile_id)
        profile_from_document({**current.model_dump(by_alias=True), **fields})
        try:
            doc = self.collection.find_one_and_update(
                {"_id": profile_id}, {"$set": fields}, return_document=ReturnDocument.AFTER
            )
        except PyMongoError as e:
            raise PersistenceError(f"Failed to update profile {profile_id}: {e}") from e
        if not doc:
            raise NotFoundError(f"Profile {profile_id} not found")
        return profile_from_document(doc)

    def set_roommate_status(self, profile_id: str, status: RoommateStatus) -> Optional[str]:
        """Set the status and return the one it replaced."""
        try:
            before = self.collection.find_one_and_update(
                {"_id": profile_id},
                {"$set": {"roommate_status": RoommateStatus(status).value}},
                projection={"roommate_status": 1},
                return_document=ReturnDocument.BEFORE,
            )
        except PyMongoError as e:
            raise PersistenceError(f"Failed to update roommate status of {profile_id}: {e}") from e
        if before is None:
            raise PersistenceError(f"Profile {profile_id} does not exist, roommate status not updated")
        return before.get("roommate_status", RoommateStatus.NO_ROOMMATE.value)
