"""
API Dependencies
Dependency injection functions for FastAPI endpoints
"""
from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from core.cache import Cache
from core.config import Settings
from services.categories import CategoryService
from services.dashboard import DashboardService
from services.events import EventService
from services.notifications import NotificationService
from services.reviews import ReviewService
from services.uploads import ImageStore
from services.users import UserService


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with"""
    return request.app.state.settings


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Dependency for getting a database session from the application's pool

    Yields:
        Session: SQLAlchemy session, closed (connection returned) after the request
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_cache(request: Request) -> Cache:
    return request.app.state.cache


def get_image_store(request: Request) -> ImageStore:
    return request.app.state.image_store


def get_user_service(
    db: Session = Depends(get_db),
    cache: Cache = Depends(get_cache),
    settings: Settings = Depends(get_app_settings),
) -> UserService:
    return UserService(db, cache, settings)


def get_event_service(db: Session = Depends(get_db), cache: Cache = Depends(get_cache)) -> EventService:
    return EventService(db, cache)


def get_review_service(db: Session = Depends(get_db), cache: Cache = Depends(get_cache)) -> ReviewService:
    return ReviewService(db, cache)


def get_notification_service(
    db: Session = Depends(get_db), cache: Cache = Depends(get_cache)
) -> NotificationService:
    return NotificationService(db, cache)


def get_category_service(db: Session = Depends(get_db), cache: Cache = Depends(get_cache)) -> CategoryService:
    return CategoryService(db, cache)


def get_dashboard_service(db: Session = Depends(get_db), cache: Cache = Depends(get_cache)) -> DashboardService:
    return DashboardService(db, cache)
