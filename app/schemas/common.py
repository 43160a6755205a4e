from typing import Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    message: str = Field(..., description="Human readable outcome")


class ErrorResponse(BaseModel):
    """Uniform failure body"""
    error: str = Field(..., description="Error message")
    details: Optional[str] = Field(None, description="Diagnostic trace (omitted in production)")
