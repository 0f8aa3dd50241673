from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from unistay.models.connection import ConnectionRequest, ConnectionState


class SendRequestBody(BaseModel):
    recipient_id: str


class ConnectionRequestResponse(BaseModel):
    id: str
    sender_id: str
    recipient_id: str
    sender_name: Optional[str] = None
    sender_image: Optional[str] = None
    status: str
    created_at: datetime
    responded_at: Optional[datetime] = None


class ConnectionStatusResponse(BaseModel):
    user_id: str
    other_id: str
    state: ConnectionState


def to_request_response(request: ConnectionRequest) -> ConnectionRequestResponse:
    return ConnectionRequestResponse(**request.model_dump())
