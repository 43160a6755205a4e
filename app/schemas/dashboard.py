from pydantic import BaseModel, Field


class DashboardStats(BaseModel):
    """Aggregate counters shown on the dashboard"""
    totalEvents: int = Field(0, description="All events")
    upcomingEvents: int = Field(0, description="Events from today on")
    completedEvents: int = Field(0, description="Events before today")
    totalReviews: int = Field(0, description="All reviews")
