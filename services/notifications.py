"""
Notification Service

Every operation is scoped to the recipient: a notification id that belongs to
another user behaves exactly like an id that does not exist.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import func

from app.schemas.notification import NotificationResponse
from models.notification import Notification
from services.base import CachedService
from services.querying import MAX_LIMIT
from services.results import Result

logger = logging.getLogger(__name__)

NOTIFICATIONS_TTL = 5 * 60
DEFAULT_NOTIFICATION_LIMIT = 10

TYPE_REVIEW_APPROVED = "review_approved"
TYPE_REVIEW_REJECTED = "review_rejected"


def notifications_prefix(user_id: int) -> str:
    return f"user:{user_id}:notifications"


def _serialize(notification: Notification) -> Dict[str, Any]:
    return NotificationResponse.model_validate(notification).model_dump(mode="json")


class NotificationService(CachedService):
    """Service for per-user notifications"""

    def create(
        self,
        user_id: int,
        type: str,
        message: str,
        related_id: Optional[int] = None,
        additional_data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        notification = Notification(
            user_id=user_id,
            type=type,
            message=message,
            related_id=related_id,
            additional_data=additional_data,
            is_read=False,
        )
        try:
            self.db.add(notification)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(notification)

        self._invalidate(patterns=(notifications_prefix(user_id),))
        return _serialize(notification)

    def list_for_user(
        self,
        user_id: int,
        limit: int = DEFAULT_NOTIFICATION_LIMIT,
        offset: int = 0,
        include_read: bool = False,
    ) -> Dict[str, Any]:
        """
        One window of the user's notifications, newest first.

        Args:
            user_id: Recipient
            limit: Window size, clamped to 1..MAX_LIMIT
            offset: Rows to skip, negative values count as 0
            include_read: Also return notifications already marked read

        Returns:
            dict: {"notifications": [...], "pagination": {total, limit, offset, hasMore}}
        """
        limit = max(1, min(int(limit), MAX_LIMIT))
        offset = max(0, int(offset))
        key = f"{notifications_prefix(user_id)}:{limit}:{offset}:{str(include_read).lower()}"

        def load():
            query = self.db.query(Notification).filter(Notification.user_id == user_id)
            if not include_read:
                query = query.filter(Notification.is_read.is_(False))

            total = query.with_entities(func.count(Notification.notification_id)).scalar() or 0
            rows = (
                query.order_by(Notification.created_at.desc(), Notification.notification_id.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
            return {
                "notifications": [_serialize(n) for n in rows],
                "pagination": {
                    "total": total,
                    "limit": limit,
                    "offset": offset,
                    "hasMore": offset + limit < total,
                },
            }

        return self._cached(key, NOTIFICATIONS_TTL, load)

    def mark_read(self, notification_id: int, user_id: int) -> Result[None]:
        updated = (
            self.db.query(Notification)
            .filter(Notification.notification_id == notification_id, Notification.user_id == user_id)
            .update({Notification.is_read: True}, synchronize_session=False)
        )
        self.db.commit()
        if not updated:
            return Result.not_found("Notification not found")

        self._invalidate(patterns=(notifications_prefix(user_id),))
        return Result.success()

    def mark_all_read(self, user_id: int) -> int:
        """Mark every unread notification of the user read; returns how many changed."""
        updated = (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
            .update({Notification.is_read: True}, synchronize_session=False)
        )
        self.db.commit()

        self._invalidate(patterns=(notifications_prefix(user_id),))
        return updated

    def delete(self, notification_id: int, user_id: int) -> Result[None]:
        deleted = (
            self.db.query(Notification)
            .filter(Notification.notification_id == notification_id, Notification.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if not deleted:
            return Result.not_found("Notification not found")

        self._invalidate(patterns=(notifications_prefix(user_id),))
        return Result.success()
