"""
Request Routes

Create (with draft reuse), read, edit, status change and re-notify.

Handlers are plain ``def`` so FastAPI runs them in its thread pool: the
draft lock waits by sleeping and the Mongo driver is blocking.
"""

from typing import Any, Dict, Optional
from fastapi import APIRouter, Body, Depends, Response, status
from pydantic import BaseModel, Field

from ..deps import get_current_user_dep, get_services
from ...domain.models import ActorContext, DispatchOutcome
from ...services.container import ServiceContainer
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


# =============================================================================
# Schemas
# =============================================================================

class StatusChangeRequest(BaseModel):
    """Body of a status change"""
    status: str = Field(..., min_length=1)
    comment: Optional[str] = Field(None, max_length=5000)


class NotifyRequest(BaseModel):
    """Body of a manual re-notify; omitted fields come from the request"""
    event_type: Optional[str] = None
    status: Optional[str] = None
    previous_status: Optional[str] = None
    comment: Optional[str] = Field(None, max_length=5000)


class NotifyResponse(BaseModel):
    """What the re-notify queued"""
    request_id: str
    outcome: Optional[DispatchOutcome] = None


# =============================================================================
# Endpoints
# =============================================================================

@router.post("", status_code=status.HTTP_201_CREATED)
def create_request(
    response: Response,
    payload: Dict[str, Any] = Body(...),
    actor: ActorContext = Depends(get_current_user_dep),
    services: ServiceContainer = Depends(get_services)
) -> Dict[str, Any]:
    """
    Create a request.

    Status defaults to ``draft``. Sending the same ``draft_session_key``
    again returns the existing draft (200) with the new fields merged in
    instead of creating another one (201).
    """
    result = services.request_service.create_request(payload, actor)
    if not result.created:
        response.status_code = status.HTTP_200_OK
    return result.request.model_dump(mode="json")


@router.get("/{request_id}")
def get_request(
    request_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    services: ServiceContainer = Depends(get_services)
) -> Dict[str, Any]:
    """Get a request by ID"""
    return services.request_service.get_request(request_id).model_dump(mode="json")


@router.put("/{request_id}")
def update_request(
    request_id: str,
    changes: Dict[str, Any] = Body(...),
    actor: ActorContext = Depends(get_current_user_dep),
    services: ServiceContainer = Depends(get_services)
) -> Dict[str, Any]:
    """
    Edit request fields.

    Lifecycle fields are ignored; use ``/status`` to move a request.
    ``"history_event": "edited"`` records the edit in history.
    """
    fields = dict(changes)
    history_event = fields.pop("history_event", None)
    updated = services.request_service.update_request(
        request_id, fields, actor, history_event=history_event
    )
    return updated.model_dump(mode="json")


@router.post("/{request_id}/status")
def change_status(
    request_id: str,
    body: StatusChangeRequest,
    actor: ActorContext = Depends(get_current_user_dep),
    services: ServiceContainer = Depends(get_services)
) -> Dict[str, Any]:
    """
    Move a request to a new status.

    Illegal moves answer 409 with ``allowed_transitions``; a missing
    comment or BOM link answers 400 naming the field.
    """
    updated = services.request_service.change_status(
        request_id, body.status, body.comment, actor
    )
    return updated.model_dump(mode="json")


@router.post("/{request_id}/notify", response_model=NotifyResponse)
def notify(
    request_id: str,
    body: Optional[NotifyRequest] = None,
    actor: ActorContext = Depends(get_current_user_dep),
    services: ServiceContainer = Depends(get_services)
):
    """Re-send the notifications for a request (history is untouched)"""
    body = body or NotifyRequest()
    outcome = services.request_service.notify(
        request_id,
        actor,
        event_type=body.event_type,
        status=body.status,
        previous_status=body.previous_status,
        comment=body.comment
    )
    return NotifyResponse(request_id=request_id, outcome=outcome)
