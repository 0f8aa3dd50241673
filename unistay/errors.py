class UniStayError(Exception):
    """Base class for errors raised by the matching core and its stores."""


class ProfileValidationError(UniStayError):
    """Profile data is malformed and has no neutral default to fall back on."""


class NotFoundError(UniStayError):
    pass


class DuplicateRequestError(UniStayError):
    """An active connection request already exists for the pair."""

    def __init__(self, sender_id: str, recipient_id: str):
        super().__init__(f"A connection request between {sender_id} and {recipient_id} is already active")
        self.sender_id = sender_id
        self.recipient_id = recipient_id


class InvalidTransitionError(UniStayError):
    """The request does not exist or is no longer pending."""

    def __init__(self, request_id: str, detail: str = "Request is not pending"):
        super().__init__(f"{detail}: {request_id}")
        self.request_id = request_id
        self.detail = detail


class PersistenceError(UniStayError):
    """The underlying store operation failed."""


class DuplicateProfileError(UniStayError):
    """The user already has a profile."""
