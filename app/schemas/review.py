from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ReviewResponse(BaseModel):
    """Response schema for review, joined with author (and event name in listings)"""
    review_id: int
    event_id: int
    user_id: int
    username: Optional[str] = None
    event_name: Optional[str] = None
    review_text: str = ""
    rating: int
    image_path: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReviewUpdate(BaseModel):
    review_text: Optional[str] = Field(None, max_length=5000)
    rating: Optional[int] = Field(None, ge=1, le=5, description="Rating between 1 and 5")


class ModerationRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000, description="Shown to the author on rejection")


class ReviewAnalytics(BaseModel):
    total_reviews: int = 0
    average_rating: Optional[float] = None
    five_star: int = 0
    four_star: int = 0
    three_star: int = 0
    two_star: int = 0
    one_star: int = 0
    positive_reviews: int = 0
    negative_reviews: int = 0


class AnalyticsResponse(BaseModel):
    analytics: ReviewAnalytics
    recentReviews: List[ReviewResponse]
