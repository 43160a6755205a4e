"""
User and authentication schemas for API request/response validation.
"""

from datetime import datetime
from typing import Optional, Literal

from pydantic import BaseModel, EmailStr, Field, field_validator


class RegisterRequest(BaseModel):
    """Request schema for registration"""
    username: str = Field(..., min_length=1, max_length=50, description="Unique username")
    email: EmailStr = Field(..., description="Unique email address")
    password: str = Field(..., min_length=1, description="Plain password")

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username is required")
        return v


class RegisterResponse(BaseModel):
    message: str
    userId: int
    role: str


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    message: str
    token: str
    username: str
    role: str


class UserProfile(BaseModel):
    """Response schema for a user profile (no credentials)"""
    user_id: int
    username: str
    email: str
    role: str
    bio: Optional[str] = None
    profile_picture: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    """Only supplied fields change"""
    email: Optional[EmailStr] = None
    bio: Optional[str] = Field(None, max_length=2000)
    profile_picture: Optional[str] = Field(None, max_length=500)


class PasswordChange(BaseModel):
    currentPassword: str = Field(..., min_length=1)
    newPassword: str = Field(..., min_length=6, description="At least 6 characters")


class RoleUpdate(BaseModel):
    role: Literal["user", "admin"]


class Activity(BaseModel):
    """One entry of a user's recent activity feed"""
    activity_type: Literal["event_created", "review_submitted"]
    event_id: int
    name: Optional[str] = None
    review_id: Optional[int] = None
    rating: Optional[int] = None
    event_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
