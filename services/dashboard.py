from typing import Any, Dict

from sqlalchemy import func

from app.schemas.dashboard import DashboardStats
from models.event import Event
from models.review import Review
from services.base import CachedService
from services.events import start_of_today

DASHBOARD_KEY = "dashboard:stats"
DASHBOARD_TTL = 5 * 60


class DashboardService(CachedService):
    """Aggregate counters for the dashboard page"""

    def get_stats(self) -> Dict[str, Any]:
        return self._cached(DASHBOARD_KEY, DASHBOARD_TTL, self._load)

    def _load(self) -> Dict[str, Any]:
        today = start_of_today()
        total_events = self.db.query(func.count(Event.event_id)).scalar() or 0
        upcoming = self.db.query(func.count(Event.event_id)).filter(Event.event_date >= today).scalar() or 0
        completed = self.db.query(func.count(Event.event_id)).filter(Event.event_date < today).scalar() or 0
        total_reviews = self.db.query(func.count(Review.review_id)).scalar() or 0

        return DashboardStats(
            totalEvents=total_events,
            upcomingEvents=upcoming,
            completedEvents=completed,
            totalReviews=total_reviews,
        ).model_dump()
