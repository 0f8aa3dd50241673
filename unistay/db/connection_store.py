import logging
from datetime import datetime
from typing import List, Optional

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from unistay.errors import DuplicateRequestError, PersistenceError
from unistay.models.connection import ConnectionRequest, RequestStatus, pair_key

logger = logging.getLogger(__name__)


def _to_request(doc) -> ConnectionRequest:
    return ConnectionRequest.model_validate({**doc, "_id": str(doc["_id"])})


def _object_id(request_id: str) -> Optional[ObjectId]:
    if not ObjectId.is_valid(request_id):
        return None
    return ObjectId(request_id)


class MongoConnectionRequestStore:
    """
    Connection requests in MongoDB.

    While a request is pending or accepted it carries `active_pair`, covered by
    a unique sparse index (see db.mongo.ensure_indexes). That index is what
    makes create_if_absent atomic: the find_one beforehand only gives a
    friendlier error in the common case.
    """

    def __init__(self, collection):
        self.collection = collection

    def create_if_absent(
        self,
        sender_id: str,
        recipient_id: str,
        created_at: datetime,
        sender_name: Optional[str] = None,
        sender_image: Optional[str] = None,
    ) -> ConnectionRequest:
        key = pair_key(sender_id, recipient_id)
        doc = {
            "_id": ObjectId(),
            "sender_id": sender_id,
            "recipient_id": recipient_id,
            "sender_name": sender_name,
            "sender_image": sender_image,
            "status": RequestStatus.PENDING.value,
            "created_at": created_at,
            "responded_at": None,
            "active_pair": key,
        }
        try:
            if self.collection.find_one({"active_pair": key}, {"_id": 1}):
                raise DuplicateRequestError(sender_id, recipient_id)
            self.collection.insert_one(doc)
            logger.info("Connection request %s: %s -> %s", doc["_id"], sender_id, recipient_id)
        except DuplicateKeyError as e:
            raise DuplicateRequestError(sender_id, recipient_id) from e
        except PyMongoError as e:
            raise PersistenceError(f"Failed to create connection request: {e}") from e
        return _to_request(doc)

    def get(self, request_id: str) -> Optional[ConnectionRequest]:
        oid = _object_id(request_id)
        if oid is None:
            return None
        try:
            doc = self.collection.find_one({"_id": oid})
        except PyMongoError as e:
            raise PersistenceError(f"Failed to load connection request {request_id}: {e}") from e
        return _to_request(doc) if doc else None

    def transition(
        self,
        request_id: str,
        from_status: RequestStatus,
        to_status: RequestStatus,
        responded_at: Optional[datetime],
    ) -> Optional[ConnectionRequest]:
        """
        Move a request from one status to another in a single conditional
        update. Returns None when the request is missing or not in from_status.
        """
        oid = _object_id(request_id)
        if oid is None:
            return None
        update = {"$set": {"status": RequestStatus(to_status).value, "responded_at": responded_at}}
        if to_status == RequestStatus.REJECTED:
            update["$unset"] = {"active_pair": ""}
        try:
            doc = self.collection.find_one_and_update(
                {"_id": oid, "status": RequestStatus(from_status).value},
                update,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise PersistenceError(f"Failed to update connection request {request_id}: {e}") from e
        return _to_request(doc) if doc else None

    def delete_pending(self, request_id: str, sender_id: str) -> bool:
        oid = _object_id(request_id)
        if oid is None:
            return False
        try:
            result = self.collection.delete_one(
                {"_id": oid, "sender_id": sender_id, "status": RequestStatus.PENDING.value}
            )
        except PyMongoError as e:
            raise PersistenceError(f"Failed to cancel connection request {request_id}: {e}") from e
        return result.deleted_count == 1

    def find_by_pair(self, user_a: str, user_b: str) -> List[ConnectionRequest]:
        """All requests between the two users in either direction, newest first."""
        query = {
            "$or": [
                {"sender_id": user_a, "recipient_id": user_b},
                {"sender_id": user_b, "recipient_id": user_a},
            ]
        }
        return self._list(query)

    def _list(self, query) -> List[ConnectionRequest]:
        try:
            docs = list(self.collection.find(query).sort("created_at", DESCENDING))
        except PyMongoError as e:
            raise PersistenceError(f"Failed to load connection requests: {e}") from e
        return [_to_request(doc) for doc in docs]

    def list_received(self, user_id: str) -> List[ConnectionRequest]:
        return self._list({"recipient_id": user_id})

    def list_sent(self, user_id: str) -> List[ConnectionRequest]:
        return self._list({"sender_id": user_id})
