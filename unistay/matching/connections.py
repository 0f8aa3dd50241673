import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from unistay.errors import InvalidTransitionError, PersistenceError, ProfileValidationError
from unistay.models.connection import (
    ACTIVE_STATUSES,
    ConnectionRequest,
    ConnectionState,
    RequestStatus,
)
from unistay.models.profile import RoommateStatus

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConnectionWorkflow:
    """
    Lifecycle of a roommate connection request:
    NONE -> PENDING -> ACCEPTED | REJECTED. Terminal states are final.

    `requests` is a connection request store (create_if_absent, get,
    transition, delete_pending, find_by_pair, list_received, list_sent) and
    `profiles` anything with set_roommate_status.
    """

    def __init__(self, requests, profiles, clock: Callable[[], datetime] = utcnow):
        self.requests = requests
        self.profiles = profiles
        self.clock = clock

    def send_request(
        self,
        sender_id: str,
        recipient_id: str,
        sender_name: Optional[str] = None,
        sender_image: Optional[str] = None,
    ) -> ConnectionRequest:
        if not sender_id or not recipient_id:
            raise ProfileValidationError("Sender and recipient are required")
        if sender_id == recipient_id:
            raise ProfileValidationError("Cannot send a connection request to yourself")
        return self.requests.create_if_absent(
            sender_id, recipient_id, self.clock(), sender_name=sender_name, sender_image=sender_image
        )

    def _pending(self, request_id: str) -> ConnectionRequest:
        request = self.requests.get(request_id)
        if request is None:
            raise InvalidTransitionError(request_id, "Connection request not found")
        if request.status != RequestStatus.PENDING.value:
            raise InvalidTransitionError(request_id, f"Connection request is already {request.status}")
        return request

    def _transition(self, request_id: str, to_status: RequestStatus) -> ConnectionRequest:
        self._pending(request_id)
        updated = self.requests.transition(request_id, RequestStatus.PENDING, to_status, self.clock())
        if updated is None:
            # Answered by someone else between the read and the update
            raise InvalidTransitionError(request_id, "Connection request is no longer pending")
        logger.info("Connection request %s %s", request_id, updated.status)
        return updated

    def accept_request(self, request_id: str) -> ConnectionRequest:
        """
        Accept a pending request and mark both users as roomies. If either
        profile cannot be updated, everything done so far is undone and the
        request goes back to pending.
        """
        accepted = self._transition(request_id, RequestStatus.ACCEPTED)

        updated = []
        try:
            for user_id in (accepted.sender_id, accepted.recipient_id):
                previous = self.profiles.set_roommate_status(user_id, RoommateStatus.ROOMIES)
                updated.append((user_id, previous))
        except PersistenceError as e:
            logger.error("Accepting %s failed after %d profile update(s), rolling back", request_id, len(updated))
            leftovers = self._roll_back_accept(request_id, updated)
            if leftovers:
                raise PersistenceError(f"{e}; rollback incomplete: {'; '.join(leftovers)}") from e
            raise
        return accepted

    def _roll_back_accept(self, request_id: str, updated) -> List[str]:
        """Undo a partial accept. Returns whatever could not be undone."""
        leftovers = []
        for user_id, previous in reversed(updated):
            try:
                self.profiles.set_roommate_status(user_id, previous or RoommateStatus.NO_ROOMMATE)
            except PersistenceError as e:
                logger.error("Could not restore roommate status of %s: %s", user_id, e)
                leftovers.append(f"roommate status of {user_id} not restored")
        try:
            self.requests.transition(request_id, RequestStatus.ACCEPTED, RequestStatus.PENDING, None)
        except PersistenceError as e:
            logger.error("Could not revert connection request %s to pending: %s", request_id, e)
            leftovers.append(f"request {request_id} left accepted")
        return leftovers

    def reject_request(self, request_id: str) -> ConnectionRequest:
        return self._transition(request_id, RequestStatus.REJECTED)

    def cancel_request(self, request_id: str, sender_id: str) -> None:
        """The sender withdraws a request nobody has answered yet."""
        request = self._pending(request_id)
        if request.sender_id != sender_id:
            raise InvalidTransitionError(request_id, "Only the sender can cancel a connection request")
        if not self.requests.delete_pending(request_id, sender_id):
            raise InvalidTransitionError(request_id, "Connection request is no longer pending")
        logger.info("Connection request %s cancelled", request_id)

    def check_status(self, user_a: str, user_b: str) -> ConnectionState:
        history = self.requests.find_by_pair(user_a, user_b)
        for request in history:
            if request.status in ACTIVE_STATUSES:
                return request.state
        if history:
            return ConnectionState.REJECTED
        return ConnectionState.NONE

    def received_requests(self, user_id: str) -> List[ConnectionRequest]:
        return self.requests.list_received(user_id)

    def sent_requests(self, user_id: str) -> List[ConnectionRequest]:
        return self.requests.list_sent(user_id)
