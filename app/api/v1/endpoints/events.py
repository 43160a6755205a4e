import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status

from app.api.deps import get_event_service, get_image_store, get_review_service
from app.middleware.auth import CurrentUser, get_current_user, require_admin
from app.schemas.event import EventCreate, EventResponse, EventUpdate, PastEventResponse
from app.schemas.review import ReviewResponse
from app.utils.pagination import set_pagination_headers
from app.utils.validation import parse_form
from core.errors import ValidationError
from services.events import EventFilters, EventService
from services.querying import PageRequest, positive_int
from services.results import unwrap
from services.reviews import ReviewService
from services.uploads import ImageStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[EventResponse])
def list_events(
    response: Response,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    category_id: Optional[str] = None,
    events: EventService = Depends(get_event_service),
):
    """
    List events

    Query params:
    - page, limit: pagination (limit capped at 100)
    - sort_by: name, event_date, category_id or created_at (default created_at)
    - sort_order: asc or desc (default desc)
    - category_id: only events of this category
    """
    result = events.list_events(
        EventFilters(category_id=positive_int(category_id, None)),
        PageRequest.from_params(page, limit),
        sort_by,
        sort_order,
    )
    set_pagination_headers(response, result)
    return result.items


@router.get("/upcoming", response_model=List[EventResponse])
def list_upcoming_events(
    response: Response,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    events: EventService = Depends(get_event_service),
):
    """Events from today on, soonest first by default"""
    result = events.list_upcoming(PageRequest.from_params(page, limit), sort_by, sort_order)
    set_pagination_headers(response, result)
    return result.items


@router.get("/past", response_model=List[PastEventResponse])
def list_past_events(
    response: Response,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    events: EventService = Depends(get_event_service),
):
    """Events before today with review count and average rating"""
    result = events.list_past(PageRequest.from_params(page, limit), sort_by, sort_order)
    set_pagination_headers(response, result)
    return result.items


@router.get("/{event_id}", response_model=EventResponse)
def get_event(event_id: int, events: EventService = Depends(get_event_service)):
    return unwrap(events.get_by_id(event_id))


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
def create_event(
    name: str = Form(...),
    category_id: int = Form(...),
    event_date: datetime = Form(...),
    description: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    event_type: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    admin: CurrentUser = Depends(require_admin),
    events: EventService = Depends(get_event_service),
    images: ImageStore = Depends(get_image_store),
):
    """
    Create a new event (admin only)

    Multipart form; ``image`` is optional.
    """
    data = parse_form(
        EventCreate,
        name=name,
        category_id=category_id,
        event_date=event_date,
        description=description,
        location=location,
        event_type=event_type,
    )
    image_path = images.save(image, "event")
    result = events.create(admin.user_id, data, image_path)
    if not result.ok:
        images.discard(image_path)
    return unwrap(result)


@router.put("/{event_id}", response_model=EventResponse)
def update_event(
    event_id: int,
    name: Optional[str] = Form(None),
    category_id: Optional[int] = Form(None),
    event_date: Optional[datetime] = Form(None),
    description: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    event_type: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    admin: CurrentUser = Depends(require_admin),
    events: EventService = Depends(get_event_service),
    images: ImageStore = Depends(get_image_store),
):
    """
    Update event details (admin only)

    Only supplied fields change; 400 when nothing was supplied.
    """
    update = parse_form(
        EventUpdate,
        name=name,
        category_id=category_id,
        event_date=event_date,
        description=description,
        location=location,
        event_type=event_type,
    )
    fields = update.model_dump(exclude_none=True)
    image_path = images.save(image, "event")
    if image_path:
        fields["image_path"] = image_path

    result = events.update(event_id, fields)
    if not result.ok:
        images.discard(image_path)
    return unwrap(result)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    event_id: int,
    admin: CurrentUser = Depends(require_admin),
    events: EventService = Depends(get_event_service),
):
    """Delete an event and its reviews (admin only)"""
    unwrap(events.delete(event_id))
    logger.info(f"Admin {admin.user_id} deleted event {event_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{event_id}/reviews", response_model=List[ReviewResponse])
def list_event_reviews(event_id: int, reviews: ReviewService = Depends(get_review_service)):
    return reviews.list_for_event(event_id)


@router.post("/{event_id}/reviews", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def create_review(
    event_id: int,
    rating: int = Form(...),
    review_text: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    user: CurrentUser = Depends(get_current_user),
    reviews: ReviewService = Depends(get_review_service),
    images: ImageStore = Depends(get_image_store),
):
    """
    Review an event

    One review per user and event: 404 for an unknown event, 409 for a
    second review.
    """
    if not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5")

    image_path = images.save(image, "review")
    result = reviews.create(event_id, user.user_id, (review_text or "").strip(), rating, image_path)
    if not result.ok:
        images.discard(image_path)
    return unwrap(result)
