from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class RequestStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


ACTIVE_STATUSES = (RequestStatus.PENDING.value, RequestStatus.ACCEPTED.value)


class ConnectionState(str, Enum):
    """Where a pair of users stands, whichever of them is asking."""
    NONE = "NONE"
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class ConnectionRequest(BaseModel):
    id: str = Field(alias="_id")
    sender_id: str
    recipient_id: str
    sender_name: Optional[str] = None
    sender_image: Optional[str] = None
    status: RequestStatus = RequestStatus.PENDING
    created_at: datetime
    responded_at: Optional[datetime] = None

    class Config:
        populate_by_name = True
        use_enum_values = True

    @property
    def state(self) -> ConnectionState:
        return ConnectionState(RequestStatus(self.status).value.upper())


def pair_key(user_a: str, user_b: str) -> str:
    """Direction-independent key for a pair of users."""
    first, second = sorted((user_a, user_b))
    return f"{first}:{second}"
