from fastapi import APIRouter, Depends, Query, Response, status

from app.api.deps import get_notification_service
from app.middleware.auth import CurrentUser, get_current_user
from app.schemas.common import MessageResponse
from app.schemas.notification import MarkAllReadResponse, NotificationListResponse
from services.notifications import DEFAULT_NOTIFICATION_LIMIT, NotificationService
from services.results import unwrap

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    limit: int = DEFAULT_NOTIFICATION_LIMIT,
    offset: int = 0,
    include_read: bool = Query(False, alias="includeRead"),
    user: CurrentUser = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    """
    Caller's notifications, newest first

    Query params:
    - limit: window size (1-100)
    - offset: notifications to skip
    - includeRead: also return notifications already read
    """
    return notifications.list_for_user(user.user_id, limit, offset, include_read)


@router.put("/read-all", response_model=MarkAllReadResponse)
def mark_all_read(
    user: CurrentUser = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    updated = notifications.mark_all_read(user.user_id)
    return MarkAllReadResponse(message="All notifications marked as read", updated=updated)


@router.put("/{notification_id}/read", response_model=MessageResponse)
def mark_read(
    notification_id: int,
    user: CurrentUser = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    unwrap(notifications.mark_read(notification_id, user.user_id))
    return MessageResponse(message="Notification marked as read")


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: int,
    user: CurrentUser = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    unwrap(notifications.delete(notification_id, user.user_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
