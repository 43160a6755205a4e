from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, JSON, false
from sqlalchemy.sql import func

from core.database import Base


class Notification(Base):
    """
    Message addressed to one user.

    Created by system actions (review moderation), read, marked read and
    deleted by the recipient only.
    """
    __tablename__ = "notifications"

    notification_id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(50), nullable=False)
    message = Column(Text, nullable=False)
    related_id = Column(Integer, nullable=True)
    additional_data = Column(JSON, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
