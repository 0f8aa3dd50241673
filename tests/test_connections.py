import pytest

from conftest import make_profile
from unistay.errors import (
    DuplicateRequestError,
    InvalidTransitionError,
    PersistenceError,
    ProfileValidationError,
)
from unistay.matching.connections import ConnectionWorkflow
from unistay.models.connection import ConnectionState


@pytest.fixture(autouse=True)
def students(seed_profiles):
    seed_profiles(make_profile("alice"), make_profile("bob"), make_profile("carol"))


def test_send_accept_marks_both_students_as_roomies(workflow, profile_store):
    request = workflow.send_request("alice", "bob", sender_name="Alice")
    assert request.status == "pending"
    assert request.sender_name == "Alice"

    with pytest.raises(DuplicateRequestError):
        workflow.send_request("alice", "bob")

    accepted = workflow.accept_request(request.id)
    assert accepted.status == "accepted"
    assert accepted.responded_at is not None
    assert profile_store.get("alice").roommate_status == "roomies"
    assert profile_store.get("bob").roommate_status == "roomies"


def test_duplicate_send_leaves_one_active_request(workflow, mongo_db):
    workflow.send_request("alice", "bob")
    with pytest.raises(DuplicateRequestError):
        workflow.send_request("bob", "alice")
    assert mongo_db["connection_requests"].count_documents({}) == 1


def test_accepted_pair_cannot_request_again(workflow):
    request = workflow.send_request("alice", "bob")
    workflow.accept_request(request.id)
    with pytest.raises(DuplicateRequestError):
        workflow.send_request("bob", "alice")


def test_rejected_pair_can_request_again(workflow):
    request = workflow.send_request("alice", "bob")
    workflow.reject_request(request.id)
    assert workflow.send_request("alice", "bob").status == "pending"


def test_reject_has_no_profile_side_effects(workflow, profile_store):
    request = workflow.send_request("alice", "bob")
    rejected = workflow.reject_request(request.id)
    assert rejected.status == "rejected"
    assert rejected.responded_at is not None
    assert profile_store.get("alice").roommate_status == "no-roommate"
    assert profile_store.get("bob").roommate_status == "no-roommate"


@pytest.mark.parametrize("first", ["accept_request", "reject_request"])
@pytest.mark.parametrize("second", ["accept_request", "reject_request"])
def test_terminal_requests_cannot_be_answered_again(workflow, request_store, first, second):
    request = workflow.send_request("alice", "bob")
    getattr(workflow, first)(request.id)
    before = request_store.get(request.id)

    with pytest.raises(InvalidTransitionError):
        getattr(workflow, second)(request.id)
    assert request_store.get(request.id) == before


@pytest.mark.parametrize("request_id", ["65f000000000000000000000", "garbage"])
def test_unknown_request_cannot_be_answered(workflow, request_id):
    with pytest.raises(InvalidTransitionError):
        workflow.accept_request(request_id)
    with pytest.raises(InvalidTransitionError):
        workflow.reject_request(request_id)


def test_cannot_send_to_yourself(workflow):
    with pytest.raises(ProfileValidationError):
        workflow.send_request("alice", "alice")


def test_check_status_is_direction_agnostic(workflow):
    assert workflow.check_status("alice", "bob") == ConnectionState.NONE
    request = workflow.send_request("alice", "bob")
    assert workflow.check_status("bob", "alice") == ConnectionState.PENDING
    workflow.accept_request(request.id)
    assert workflow.check_status("alice", "bob") == ConnectionState.ACCEPTED
    assert workflow.check_status("alice", "carol") == ConnectionState.NONE


def test_check_status_after_rejection(workflow):
    request = workflow.send_request("alice", "bob")
    workflow.reject_request(request.id)
    assert workflow.check_status("bob", "alice") == ConnectionState.REJECTED
    workflow.send_request("bob", "alice")
    assert workflow.check_status("alice", "bob") == ConnectionState.PENDING


def test_sender_can_cancel_pending_request(workflow):
    request = workflow.send_request("alice", "bob")
    with pytest.raises(InvalidTransitionError):
        workflow.cancel_request(request.id, "bob")
    workflow.cancel_request(request.id, "alice")
    assert workflow.check_status("alice", "bob") == ConnectionState.NONE
    with pytest.raises(InvalidTransitionError):
        workflow.cancel_request(request.id, "alice")


def test_answered_request_cannot_be_cancelled(workflow):
    request = workflow.send_request("alice", "bob")
    workflow.accept_request(request.id)
    with pytest.raises(InvalidTransitionError):
        workflow.cancel_request(request.id, "alice")


def test_received_and_sent_are_newest_first(workflow):
    first = workflow.send_request("alice", "bob")
    second = workflow.send_request("carol", "bob")
    assert [r.id for r in workflow.received_requests("bob")] == [second.id, first.id]
    assert [r.id for r in workflow.sent_requests("alice")] == [first.id]
    assert workflow.sent_requests("bob") == []


class FlakyProfiles:
    """Profile store whose roommate status update fails for one user."""

    def __init__(self, store, failing_id):
        self.store = store
        self.failing_id = failing_id

    def set_roommate_status(self, profile_id, status):
        if profile_id == self.failing_id:
            raise PersistenceError(f"write to {profile_id} timed out")
        return self.store.set_roommate_status(profile_id, status)


def test_failed_second_profile_update_is_rolled_back(request_store, profile_store, clock):
    workflow = ConnectionWorkflow(request_store, FlakyProfiles(profile_store, "bob"), clock=clock)
    request = workflow.send_request("alice", "bob")

    with pytest.raises(PersistenceError):
        workflow.accept_request(request.id)

    assert profile_store.get("alice").roommate_status == "no-roommate"
    assert profile_store.get("bob").roommate_status == "no-roommate"
    restored = request_store.get(request.id)
    assert restored.status == "pending"
    assert restored.responded_at is None


def test_accept_can_be_retried_after_rollback(request_store, profile_store, clock):
    flaky = ConnectionWorkflow(request_store, FlakyProfiles(profile_store, "alice"), clock=clock)
    request = flaky.send_request("alice", "bob")
    with pytest.raises(PersistenceError):
        flaky.accept_request(request.id)

    ConnectionWorkflow(request_store, profile_store, clock=clock).accept_request(request.id)
    assert profile_store.get("alice").roommate_status == "roomies"
    assert profile_store.get("bob").roommate_status == "roomies"


class StuckRequests:
    """Request store that cannot move an accepted request back."""

    def __init__(self, store):
        self.store = store

    def __getattr__(self, name):
        return getattr(self.store, name)

    def transition(self, request_id, from_status, to_status, responded_at):
        if from_status == "accepted":
            raise PersistenceError("write timed out")
        return self.store.transition(request_id, from_status, to_status, responded_at)


def test_incomplete_rollback_is_reported(request_store, profile_store, clock):
    workflow = ConnectionWorkflow(StuckRequests(request_store), FlakyProfiles(profile_store, "bob"), clock=clock)
    request = workflow.send_request("alice", "bob")

    with pytest.raises(PersistenceError, match="rollback incomplete") as exc:
        workflow.accept_request(request.id)

    assert "left accepted" in str(exc.value)
    assert isinstance(exc.value.__cause__, PersistenceError)
    assert profile_store.get("alice").roommate_status == "no-roommate"
    assert request_store.get(request.id).status == "accepted"
