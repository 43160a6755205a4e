from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional


def _strip_or_none(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


class EventCreate(BaseModel):
    """Request schema for event creation"""
    name: str = Field(..., description="Event name", min_length=1, max_length=255)
    category_id: int = Field(..., description="Category ID", gt=0)
    event_date: datetime = Field(..., description="Event date and time")
    description: Optional[str] = Field(None, description="Event description")
    location: Optional[str] = Field(None, description="Event location", max_length=255)
    event_type: Optional[str] = Field(None, description="Event type", max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v

    @field_validator("description", "location", "event_type")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        return _strip_or_none(v)


class EventUpdate(BaseModel):
    """Request schema for event update; unset fields are left untouched"""
    name: Optional[str] = Field(None, description="Event name", min_length=1, max_length=255)
    category_id: Optional[int] = Field(None, description="Category ID", gt=0)
    event_date: Optional[datetime] = Field(None, description="Event date and time")
    description: Optional[str] = Field(None, description="Event description")
    location: Optional[str] = Field(None, description="Event location", max_length=255)
    event_type: Optional[str] = Field(None, description="Event type", max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v

    @field_validator("description", "location", "event_type")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        return _strip_or_none(v)


class EventResponse(BaseModel):
    """Response schema for event"""
    event_id: int = Field(..., description="Event ID")
    user_id: Optional[int] = Field(None, description="Creator user ID")
    category_id: int = Field(..., description="Category ID")
    name: str = Field(..., description="Event name")
    description: Optional[str] = Field(None, description="Event description")
    event_date: datetime = Field(..., description="Event date and time")
    location: Optional[str] = Field(None, description="Event location")
    event_type: Optional[str] = Field(None, description="Event type")
    image_path: Optional[str] = Field(None, description="Image reference")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    class Config:
        from_attributes = True


class PastEventResponse(EventResponse):
    """Past event with its review summary"""
    review_count: int = Field(0, description="Number of reviews")
    avg_rating: Optional[float] = Field(None, description="Average rating")
