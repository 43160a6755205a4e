from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class NotificationResponse(BaseModel):
    notification_id: int
    user_id: int
    type: str
    message: str
    related_id: Optional[int] = None
    additional_data: Optional[Dict[str, Any]] = None
    is_read: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NotificationPagination(BaseModel):
    total: int
    limit: int
    offset: int
    hasMore: bool = Field(..., description="More notifications beyond this window")


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    pagination: NotificationPagination


class MarkAllReadResponse(BaseModel):
    message: str
    updated: int
