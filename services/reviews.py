"""
Review Service

Reviews are joined with their author (and event name for listings) at the
service layer. Creation runs as a single transaction guarded by the
(event_id, user_id) unique constraint.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError

from app.schemas.review import ReviewAnalytics, ReviewResponse
from models.event import Event
from models.review import REVIEW_STATUSES, Review
from models.user import User
from services.base import CachedService
from services.querying import Page, PageRequest, SortPolicy, paginate
from services.results import Result

logger = logging.getLogger(__name__)

EVENT_REVIEWS_TTL = 2 * 60
REVIEW_LIST_TTL = 2 * 60
ANALYTICS_TTL = 5 * 60
RECENT_REVIEWS_LIMIT = 5

# Lists and aggregates that include review rows or review counts
REVIEW_WRITE_PATTERNS = ("reviews:", "events:past", "dashboard:", "user:*:activities")

REVIEW_FIELDS = ("review_text", "rating")

REVIEW_SORT = SortPolicy(
    {
        "created_at": Review.created_at,
        "rating": Review.rating,
        "event_id": Review.event_id,
        "user_id": Review.user_id,
    },
    default_field="created_at",
    tie_breaker=Review.review_id,
)

DUPLICATE_REVIEW = "You have already reviewed this event"


def event_reviews_key(event_id: int) -> str:
    return f"event:{event_id}:reviews"


@dataclass(frozen=True)
class ReviewFilters:
    event_id: Optional[int] = None
    user_id: Optional[int] = None
    min_rating: Optional[int] = None
    max_rating: Optional[int] = None
    status: Optional[str] = None

    def cache_token(self) -> str:
        return ":".join(
            "*" if value is None else str(value)
            for value in (self.event_id, self.user_id, self.min_rating, self.max_rating, self.status)
        )


def _serialize_row(row) -> Dict[str, Any]:
    review, username, event_name = row
    return ReviewResponse(
        review_id=review.review_id,
        event_id=review.event_id,
        user_id=review.user_id,
        username=username,
        event_name=event_name,
        review_text=review.review_text or "",
        rating=review.rating,
        image_path=review.image_path,
        status=review.status,
        created_at=review.created_at,
        updated_at=review.updated_at,
    ).model_dump(mode="json")


class ReviewService(CachedService):
    """Service for event reviews and their moderation"""

    def _joined(self):
        return (
            self.db.query(Review, User.username, Event.name.label("event_name"))
            .join(User, Review.user_id == User.user_id)
            .join(Event, Review.event_id == Event.event_id)
        )

    def get_by_id(self, review_id: int) -> Optional[Review]:
        return self.db.query(Review).filter(Review.review_id == review_id).first()

    def get(self, review_id: int) -> Result[Dict[str, Any]]:
        row = self._joined().filter(Review.review_id == review_id).first()
        if not row:
            return Result.not_found("Review not found")
        return Result.success(_serialize_row(row))

    def list_for_event(self, event_id: int) -> List[Dict[str, Any]]:
        """All reviews of one event, newest first (cached)."""
        def load():
            rows = (
                self._joined()
                .filter(Review.event_id == event_id)
                .order_by(Review.created_at.desc(), Review.review_id.desc())
                .all()
            )
            return [_serialize_row(row) for row in rows]

        return self._cached(event_reviews_key(event_id), EVENT_REVIEWS_TTL, load)

    def create(
        self,
        event_id: int,
        user_id: int,
        review_text: str,
        rating: int,
        image_path: Optional[str] = None,
    ) -> Result[Dict[str, Any]]:
        """
        Create a review inside one transaction.

        The event must exist and the user must not have reviewed it yet. The
        unique constraint on (event_id, user_id) catches a concurrent duplicate
        that slipped past the check.

        Returns:
            Result with the new review joined with its author; NOT_FOUND when the
            event does not exist, CONFLICT when the user already reviewed it
        """
        try:
            event = self.db.query(Event.event_id).filter(Event.event_id == event_id).first()
            if not event:
                self.db.rollback()
                return Result.not_found("Event not found")

            if self._has_reviewed(event_id, user_id):
                self.db.rollback()
                return Result.conflict(DUPLICATE_REVIEW)

            review = Review(
                event_id=event_id,
                user_id=user_id,
                review_text=review_text or "",
                rating=rating,
                image_path=image_path,
            )
            self.db.add(review)
            self.db.flush()

            row = self._joined().filter(Review.review_id == review.review_id).one()
            data = _serialize_row(row)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(f"Duplicate review rejected by constraint: event_id={event_id}, user_id={user_id}")
            return Result.conflict(DUPLICATE_REVIEW)
        except Exception:
            self.db.rollback()
            raise

        self._invalidate_for_event(event_id)
        return Result.success(data)

    def _has_reviewed(self, event_id: int, user_id: int) -> bool:
        return (
            self.db.query(Review.review_id)
            .filter(Review.event_id == event_id, Review.user_id == user_id)
            .first()
        ) is not None

    def update(self, review_id: int, fields: Dict[str, Any]) -> Result[Dict[str, Any]]:
        changes = {k: v for k, v in fields.items() if k in REVIEW_FIELDS and v is not None}
        if not changes:
            return Result.no_changes("No fields to update")

        review = self.get_by_id(review_id)
        if not review:
            return Result.not_found("Review not found")

        for field, value in changes.items():
            setattr(review, field, value)
        self.db.commit()

        self._invalidate_for_event(review.event_id)
        return self.get(review_id)

    def set_status(self, review_id: int, status: str) -> Result[Dict[str, Any]]:
        """Moderation: mark a review approved, rejected or pending."""
        if status not in REVIEW_STATUSES:
            return Result.invalid("Invalid review status")

        review = self.get_by_id(review_id)
        if not review:
            return Result.not_found("Review not found")

        review.status = status
        self.db.commit()

        self._invalidate_for_event(review.event_id)
        logger.info(f"Review {review_id} moderated: {status}")
        return self.get(review_id)

    def delete(self, review_id: int) -> Result[None]:
        review = self.get_by_id(review_id)
        if not review:
            return Result.not_found("Review not found")

        event_id = review.event_id
        deleted = (
            self.db.query(Review)
            .filter(Review.review_id == review_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if not deleted:
            return Result.not_found("Review not found")

        self._invalidate_for_event(event_id)
        return Result.success()

    def list_reviews(
        self,
        filters: ReviewFilters,
        page_request: PageRequest,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Page:
        sort = REVIEW_SORT.resolve(sort_by, sort_order)
        key = f"reviews:list:{filters.cache_token()}:{page_request.cache_token()}:{sort.cache_token()}"

        def load():
            query = self._joined()
            if filters.event_id is not None:
                query = query.filter(Review.event_id == filters.event_id)
            if filters.user_id is not None:
                query = query.filter(Review.user_id == filters.user_id)
            if filters.min_rating is not None:
                query = query.filter(Review.rating >= filters.min_rating)
            if filters.max_rating is not None:
                query = query.filter(Review.rating <= filters.max_rating)
            if filters.status is not None:
                query = query.filter(Review.status == filters.status)
            return paginate(query, page_request, REVIEW_SORT.order_by(sort), _serialize_row).to_dict()

        return Page.from_dict(self._cached(key, REVIEW_LIST_TTL, load))

    def analytics(self, event_id: Optional[int] = None) -> Dict[str, Any]:
        """Rating distribution plus the most recent reviews, overall or for one event."""
        key = f"reviews:analytics:{event_id}" if event_id else "reviews:analytics"
        return self._cached(key, ANALYTICS_TTL, lambda: self._load_analytics(event_id))

    def _load_analytics(self, event_id: Optional[int]) -> Dict[str, Any]:
        def stars(n):
            return func.count(case((Review.rating == n, 1)))

        query = self.db.query(
            func.count(Review.review_id).label("total_reviews"),
            func.avg(Review.rating).label("average_rating"),
            stars(5).label("five_star"),
            stars(4).label("four_star"),
            stars(3).label("three_star"),
            stars(2).label("two_star"),
            stars(1).label("one_star"),
            func.count(case((Review.rating >= 4, 1))).label("positive_reviews"),
            func.count(case((Review.rating <= 2, 1))).label("negative_reviews"),
        )
        if event_id:
            query = query.filter(Review.event_id == event_id)
        row = query.one()

        analytics = ReviewAnalytics(
            total_reviews=row.total_reviews or 0,
            average_rating=float(row.average_rating) if row.average_rating is not None else None,
            five_star=row.five_star or 0,
            four_star=row.four_star or 0,
            three_star=row.three_star or 0,
            two_star=row.two_star or 0,
            one_star=row.one_star or 0,
            positive_reviews=row.positive_reviews or 0,
            negative_reviews=row.negative_reviews or 0,
        )

        recent = self._joined()
        if event_id:
            recent = recent.filter(Review.event_id == event_id)
        recent_rows = (
            recent.order_by(Review.created_at.desc(), Review.review_id.desc())
            .limit(RECENT_REVIEWS_LIMIT)
            .all()
        )

        return {
            "analytics": analytics.model_dump(mode="json"),
            "recentReviews": [_serialize_row(r) for r in recent_rows],
        }

    def _invalidate_for_event(self, event_id: int) -> None:
        self._invalidate(keys=[event_reviews_key(event_id)], patterns=REVIEW_WRITE_PATTERNS)
