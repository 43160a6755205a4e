import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Response, status

from app.api.deps import get_notification_service, get_review_service
from app.middleware.auth import CurrentUser, get_current_user, require_admin
from app.schemas.review import AnalyticsResponse, ModerationRequest, ReviewResponse, ReviewUpdate
from app.utils.pagination import set_pagination_headers
from core.errors import AuthorizationError
from models.review import REVIEW_STATUSES, STATUS_APPROVED, STATUS_REJECTED
from services.notifications import TYPE_REVIEW_APPROVED, TYPE_REVIEW_REJECTED, NotificationService
from services.querying import PageRequest, positive_int
from services.results import unwrap
from services.reviews import ReviewFilters, ReviewService

logger = logging.getLogger(__name__)

router = APIRouter()


def _owned_review(review_id: int, user: CurrentUser, reviews: ReviewService, action: str):
    review = unwrap(reviews.get(review_id))
    if review["user_id"] != user.user_id and not user.is_admin:
        raise AuthorizationError(f"You can only {action} your own reviews")
    return review


@router.get("", response_model=List[ReviewResponse])
def list_reviews(
    response: Response,
    event_id: Optional[str] = None,
    user_id: Optional[str] = None,
    min_rating: Optional[str] = None,
    max_rating: Optional[str] = None,
    status: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    user: CurrentUser = Depends(get_current_user),
    reviews: ReviewService = Depends(get_review_service),
):
    """
    List reviews with filters

    Query params:
    - event_id, user_id, min_rating, max_rating, status: filters
    - sort_by: created_at, rating, event_id or user_id (default created_at)
    - sort_order: asc or desc (default desc)
    - page, limit: pagination (limit capped at 100)
    """
    filters = ReviewFilters(
        event_id=positive_int(event_id, None),
        user_id=positive_int(user_id, None),
        min_rating=positive_int(min_rating, None),
        max_rating=positive_int(max_rating, None),
        status=status if status in REVIEW_STATUSES else None,
    )
    result = reviews.list_reviews(filters, PageRequest.from_params(page, limit), sort_by, sort_order)
    set_pagination_headers(response, result)
    return result.items


@router.get("/analytics", response_model=AnalyticsResponse)
def review_analytics(
    event_id: Optional[str] = None,
    user: CurrentUser = Depends(get_current_user),
    reviews: ReviewService = Depends(get_review_service),
):
    """Rating distribution and most recent reviews, overall or for one event"""
    return reviews.analytics(positive_int(event_id, None))


@router.put("/{review_id}", response_model=ReviewResponse)
def update_review(
    review_id: int,
    payload: ReviewUpdate,
    user: CurrentUser = Depends(get_current_user),
    reviews: ReviewService = Depends(get_review_service),
):
    """Edit a review (author or admin)"""
    _owned_review(review_id, user, reviews, "edit")
    return unwrap(reviews.update(review_id, payload.model_dump(exclude_none=True)))


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_review(
    review_id: int,
    user: CurrentUser = Depends(get_current_user),
    reviews: ReviewService = Depends(get_review_service),
):
    """Delete a review (author or admin)"""
    _owned_review(review_id, user, reviews, "delete")
    unwrap(reviews.delete(review_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _notify_author(
    notifications: NotificationService,
    review: dict,
    approved: bool,
    reason: Optional[str],
) -> None:
    """
    Tell the author about a moderation decision.

    Failures are logged and never fail the moderation request.
    """
    event_name = review.get("event_name") or "an event"
    if approved:
        message = f"Your review of {event_name} has been approved"
    else:
        message = f"Your review of {event_name} has been rejected"
        if reason:
            message = f"{message}: {reason}"

    try:
        notifications.create(
            user_id=review["user_id"],
            type=TYPE_REVIEW_APPROVED if approved else TYPE_REVIEW_REJECTED,
            message=message,
            related_id=review["review_id"],
            additional_data={"event_id": review["event_id"], "reason": reason},
        )
    except Exception as e:
        logger.error(
            f"Failed to notify user {review['user_id']} about review {review['review_id']}: {e}",
            exc_info=True,
        )


@router.put("/{review_id}/approve", response_model=ReviewResponse)
def approve_review(
    review_id: int,
    admin: CurrentUser = Depends(require_admin),
    reviews: ReviewService = Depends(get_review_service),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Approve a review (admin only); the author is notified"""
    review = unwrap(reviews.set_status(review_id, STATUS_APPROVED))
    _notify_author(notifications, review, approved=True, reason=None)
    return review


@router.put("/{review_id}/reject", response_model=ReviewResponse)
def reject_review(
    review_id: int,
    payload: Optional[ModerationRequest] = Body(None),
    admin: CurrentUser = Depends(require_admin),
    reviews: ReviewService = Depends(get_review_service),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Reject a review (admin only); the author is notified with the optional reason"""
    review = unwrap(reviews.set_status(review_id, STATUS_REJECTED))
    reason = payload.reason if payload else None
    _notify_author(notifications, review, approved=False, reason=reason)
    return review
