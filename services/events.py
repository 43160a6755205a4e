"""
Event Service

Data access for events: cached single-event and listing reads, and writes
that invalidate every cached list or aggregate that could contain the event.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from app.schemas.event import EventCreate, EventResponse, PastEventResponse
from models.category import Category
from models.event import Event
from models.review import Review
from services.base import CachedService
from services.querying import Page, PageRequest, SortOrder, SortPolicy, paginate
from services.results import Result

logger = logging.getLogger(__name__)

EVENT_TTL = 5 * 60
EVENT_LIST_TTL = 2 * 60
UPCOMING_TTL = 2 * 60
PAST_TTL = 60

# Everything an event write can make stale
EVENT_WRITE_PATTERNS = ("events:", "dashboard:", "reviews:", "user:*:activities")

EVENT_FIELDS = ("name", "description", "event_date", "location", "event_type", "category_id", "image_path")

_SORT_COLUMNS = {
    "name": Event.name,
    "event_date": Event.event_date,
    "category_id": Event.category_id,
    "created_at": Event.created_at,
}

EVENT_SORT = SortPolicy(_SORT_COLUMNS, default_field="created_at", tie_breaker=Event.event_id)
UPCOMING_SORT = SortPolicy(
    _SORT_COLUMNS, default_field="event_date", tie_breaker=Event.event_id, default_order=SortOrder.ASC
)
PAST_SORT = SortPolicy(_SORT_COLUMNS, default_field="event_date", tie_breaker=Event.event_id)


def event_key(event_id: int) -> str:
    return f"event:{event_id}"


def start_of_today() -> datetime:
    return datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


@dataclass(frozen=True)
class EventFilters:
    category_id: Optional[int] = None

    def cache_token(self) -> str:
        return f"{self.category_id or '*'}"


def serialize_event(event: Event) -> Dict[str, Any]:
    return EventResponse.model_validate(event).model_dump(mode="json")


def _serialize_past(row) -> Dict[str, Any]:
    event, review_count, avg_rating = row
    data = EventResponse.model_validate(event).model_dump()
    data["review_count"] = int(review_count or 0)
    data["avg_rating"] = float(avg_rating) if avg_rating is not None else None
    return PastEventResponse(**data).model_dump(mode="json")


class EventService(CachedService):
    """Service for event reads and admin writes"""

    def get_by_id(self, event_id: int) -> Result[Dict[str, Any]]:
        """
        Get a single event, cached for EVENT_TTL seconds.

        Args:
            event_id: Event ID

        Returns:
            Result with the serialized event, or NOT_FOUND
        """
        def load():
            event = self.db.query(Event).filter(Event.event_id == event_id).first()
            return serialize_event(event) if event else None

        data = self._cached(event_key(event_id), EVENT_TTL, load)
        if data is None:
            return Result.not_found("Event not found")
        return Result.success(data)

    def list_events(
        self,
        filters: EventFilters,
        page_request: PageRequest,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Page:
        sort = EVENT_SORT.resolve(sort_by, sort_order)
        key = f"events:list:{page_request.cache_token()}:{sort.cache_token()}:{filters.cache_token()}"

        def load():
            query = self.db.query(Event)
            if filters.category_id is not None:
                query = query.filter(Event.category_id == filters.category_id)
            return paginate(query, page_request, EVENT_SORT.order_by(sort), serialize_event).to_dict()

        return Page.from_dict(self._cached(key, EVENT_LIST_TTL, load))

    def list_upcoming(
        self, page_request: PageRequest, sort_by: Optional[str] = None, sort_order: Optional[str] = None
    ) -> Page:
        """Events dated today or later, soonest first by default."""
        sort = UPCOMING_SORT.resolve(sort_by, sort_order)
        today = start_of_today()
        key = f"events:upcoming:{today.date().isoformat()}:{page_request.cache_token()}:{sort.cache_token()}"

        def load():
            query = self.db.query(Event).filter(Event.event_date >= today)
            return paginate(query, page_request, UPCOMING_SORT.order_by(sort), serialize_event).to_dict()

        return Page.from_dict(self._cached(key, UPCOMING_TTL, load))

    def list_past(
        self, page_request: PageRequest, sort_by: Optional[str] = None, sort_order: Optional[str] = None
    ) -> Page:
        """Events dated before today with their review count and average rating."""
        sort = PAST_SORT.resolve(sort_by, sort_order)
        today = start_of_today()
        key = f"events:past:{today.date().isoformat()}:{page_request.cache_token()}:{sort.cache_token()}"

        def load():
            review_count = (
                self.db.query(func.count(Review.review_id))
                .filter(Review.event_id == Event.event_id)
                .correlate(Event)
                .scalar_subquery()
            )
            avg_rating = (
                self.db.query(func.avg(Review.rating))
                .filter(Review.event_id == Event.event_id)
                .correlate(Event)
                .scalar_subquery()
            )
            query = (
                self.db.query(Event, review_count.label("review_count"), avg_rating.label("avg_rating"))
                .filter(Event.event_date < today)
            )
            return paginate(query, page_request, PAST_SORT.order_by(sort), _serialize_past).to_dict()

        return Page.from_dict(self._cached(key, PAST_TTL, load))

    def create(self, user_id: int, data: EventCreate, image_path: Optional[str] = None) -> Result[Dict[str, Any]]:
        """
        Insert an event created by an administrator.

        Returns:
            Result with the new event, or INVALID when the category does not exist
        """
        if not self._category_exists(data.category_id):
            return Result.invalid("Invalid category_id")

        event = Event(
            user_id=user_id,
            category_id=data.category_id,
            name=data.name,
            description=data.description,
            event_date=data.event_date,
            location=data.location,
            event_type=data.event_type,
            image_path=image_path,
        )
        try:
            self.db.add(event)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Event insert rejected by the database: {e.orig}")
            return Result.invalid("Invalid event data")
        self.db.refresh(event)

        self._invalidate(patterns=EVENT_WRITE_PATTERNS)
        logger.info(f"Event created: event_id={event.event_id} by user_id={user_id}")
        return Result.success(serialize_event(event))

    def update(self, event_id: int, fields: Dict[str, Any]) -> Result[Dict[str, Any]]:
        """
        Change only the supplied fields of an event.

        Returns:
            Result with the updated event; NO_CHANGES when no field was supplied,
            NOT_FOUND when the event does not exist
        """
        changes = {k: v for k, v in fields.items() if k in EVENT_FIELDS}
        if not changes:
            return Result.no_changes("No fields to update")

        event = self.db.query(Event).filter(Event.event_id == event_id).first()
        if not event:
            return Result.not_found("Event not found")

        if "category_id" in changes and not self._category_exists(changes["category_id"]):
            return Result.invalid("Invalid category_id")

        for field, value in changes.items():
            setattr(event, field, value)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Event update rejected by the database: {e.orig}")
            return Result.invalid("Invalid event data")
        self.db.refresh(event)

        self._invalidate_event(event_id)
        return Result.success(serialize_event(event))

    def delete(self, event_id: int) -> Result[None]:
        """Delete an event and its reviews in one transaction."""
        try:
            self.db.query(Review).filter(Review.event_id == event_id).delete(synchronize_session=False)
            deleted = self.db.query(Event).filter(Event.event_id == event_id).delete(synchronize_session=False)
            if not deleted:
                self.db.rollback()
                return Result.not_found("Event not found")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self._invalidate_event(event_id)
        logger.info(f"Event deleted: event_id={event_id}")
        return Result.success()

    def _category_exists(self, category_id: int) -> bool:
        return self.db.query(Category.category_id).filter(Category.category_id == category_id).first() is not None

    def _invalidate_event(self, event_id: int) -> None:
        self._invalidate(
            keys=[event_key(event_id)],
            patterns=(f"{event_key(event_id)}:",) + EVENT_WRITE_PATTERNS,
        )
