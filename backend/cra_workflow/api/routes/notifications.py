"""User Notifications API - In-app notification bell endpoints"""
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..deps import get_current_user_dep, get_services
from ...config.settings import settings
from ...domain.models import ActorContext, InAppNotification
from ...services.container import ServiceContainer

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================

class NotificationResponse(BaseModel):
    """Single notification response"""
    notification_id: str
    type: str
    title: str
    body: str
    request_id: Optional[str] = None
    payload: Dict[str, Any] = {}
    is_read: bool
    created_at: str
    read_at: Optional[str] = None

    @classmethod
    def from_notification(cls, n: InAppNotification) -> "NotificationResponse":
        return cls(
            notification_id=n.notification_id,
            type=n.type,
            title=n.title,
            body=n.body,
            request_id=n.request_id,
            payload=n.payload,
            is_read=n.is_read,
            created_at=n.created_at.isoformat(),
            read_at=n.read_at.isoformat() if n.read_at else None
        )


class NotificationListResponse(BaseModel):
    """Page of notifications with the unread badge count"""
    items: List[NotificationResponse]
    unread_count: int


class UnreadCountResponse(BaseModel):
    """Just the unread count"""
    unread_count: int


class MarkReadResponse(BaseModel):
    """Response after marking notifications read"""
    success: bool
    marked_count: int


# =============================================================================
# Endpoints
# =============================================================================

@router.get("", response_model=NotificationListResponse)
def get_notifications(
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.inapp_default_page_size, ge=1, le=100),
    unread_only: bool = Query(False),
    actor: ActorContext = Depends(get_current_user_dep),
    services: ServiceContainer = Depends(get_services)
):
    """Notifications for the current user, newest first"""
    repo = services.inapp_repo
    notifications = repo.get_notifications_for_user(
        user_id=actor.user_id,
        skip=skip,
        limit=limit,
        unread_only=unread_only
    )
    return NotificationListResponse(
        items=[NotificationResponse.from_notification(n) for n in notifications],
        unread_count=repo.get_unread_count(actor.user_id)
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
def get_unread_count(
    actor: ActorContext = Depends(get_current_user_dep),
    services: ServiceContainer = Depends(get_services)
):
    """Lightweight endpoint for polling the notification badge"""
    return UnreadCountResponse(unread_count=services.inapp_repo.get_unread_count(actor.user_id))


@router.post("/read-all", response_model=MarkReadResponse)
def mark_all_read(
    actor: ActorContext = Depends(get_current_user_dep),
    services: ServiceContainer = Depends(get_services)
):
    """Mark all notifications as read for the current user"""
    count = services.inapp_repo.mark_all_as_read(actor.user_id)
    return MarkReadResponse(success=True, marked_count=count)


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def mark_notification_read(
    notification_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    services: ServiceContainer = Depends(get_services)
):
    """Mark a single notification as read (404 if it is not the caller's)"""
    notification = services.inapp_repo.mark_as_read(notification_id, actor.user_id)
    return NotificationResponse.from_notification(notification)
