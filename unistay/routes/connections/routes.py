from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path

from unistay.errors import (
    DuplicateRequestError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ProfileValidationError,
)
from unistay.matching.connections import ConnectionWorkflow
from unistay.routes.connections.connections_response_schemas import (
    ConnectionRequestResponse,
    ConnectionStatusResponse,
    SendRequestBody,
    to_request_response,
)
from unistay.utils.dependencies import get_connection_workflow
from unistay.utils.jwt_utils import CurrentUser, get_user_from_cookie

router = APIRouter(prefix="/connections", tags=["Connections"])


def _require_recipient(workflow: ConnectionWorkflow, request_id: str, current_user: CurrentUser) -> None:
    try:
        request = workflow.requests.get(request_id)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    if request is not None and request.recipient_id != current_user.id:
        raise HTTPException(status_code=403, detail="Only the recipient can respond to this request")


def _require_sender(workflow: ConnectionWorkflow, request_id: str, current_user: CurrentUser) -> None:
    try:
        request = workflow.requests.get(request_id)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    if request is not None and request.sender_id != current_user.id:
        raise HTTPException(status_code=403, detail="Only the sender can cancel this request")


# --- Send Request ---
@router.post("/requests", response_model=ConnectionRequestResponse)
def send_request(
    body: SendRequestBody,
    current_user: CurrentUser = Depends(get_user_from_cookie),
    workflow: ConnectionWorkflow = Depends(get_connection_workflow),
):
    try:
        sender = workflow.profiles.get(current_user.id)
        workflow.profiles.get(body.recipient_id)
        request = workflow.send_request(
            current_user.id,
            body.recipient_id,
            sender_name=sender.name,
            sender_image=sender.image_url,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ProfileValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except DuplicateRequestError:
        raise HTTPException(status_code=409, detail="Request already pending")
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return to_request_response(request)


# --- Accept Request ---
@router.post("/requests/{request_id}/accept", response_model=ConnectionRequestResponse)
def accept_request(
    request_id: str = Path(..., description="Connection request ID"),
    current_user: CurrentUser = Depends(get_user_from_cookie),
    workflow: ConnectionWorkflow = Depends(get_connection_workflow),
):
    _require_recipient(workflow, request_id, current_user)
    try:
        request = workflow.accept_request(request_id)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return to_request_response(request)


# --- Reject Request ---
@router.post("/requests/{request_id}/reject", response_model=ConnectionRequestResponse)
def reject_request(
    request_id: str = Path(..., description="Connection request ID"),
    current_user: CurrentUser = Depends(get_user_from_cookie),
    workflow: ConnectionWorkflow = Depends(get_connection_workflow),
):
    _require_recipient(workflow, request_id, current_user)
    try:
        request = workflow.reject_request(request_id)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return to_request_response(request)


# --- Cancel Request ---
@router.delete("/requests/{request_id}")
def cancel_request(
    request_id: str = Path(..., description="Connection request ID"),
    current_user: CurrentUser = Depends(get_user_from_cookie),
    workflow: ConnectionWorkflow = Depends(get_connection_workflow),
):
    _require_sender(workflow, request_id, current_user)
    try:
        workflow.cancel_request(request_id, current_user.id)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"detail": "Connection request cancelled"}


@router.get("/requests/received", response_model=List[ConnectionRequestResponse])
def received_requests(
    current_user: CurrentUser = Depends(get_user_from_cookie),
    workflow: ConnectionWorkflow = Depends(get_connection_workflow),
):
    try:
        return [to_request_response(r) for r in workflow.received_requests(current_user.id)]
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/requests/sent", response_model=List[ConnectionRequestResponse])
def sent_requests(
    current_user: CurrentUser = Depends(get_user_from_cookie),
    workflow: ConnectionWorkflow = Depends(get_connection_workflow),
):
    try:
        return [to_request_response(r) for r in workflow.sent_requests(current_user.id)]
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/status/{other_id}", response_model=ConnectionStatusResponse)
def connection_status(
    other_id: str,
    current_user: CurrentUser = Depends(get_user_from_cookie),
    workflow: ConnectionWorkflow = Depends(get_connection_workflow),
):
    try:
        state = workflow.check_status(current_user.id, other_id)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return ConnectionStatusResponse(user_id=current_user.id, other_id=other_id, state=state)
