"""
Unit tests for models (SQLAlchemy and Pydantic).

Tests cover:
- Table names and column constraints
- Database-level uniqueness and rating range
- Pydantic schema validation
"""

from datetime import datetime

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from app.schemas.event import EventCreate, EventUpdate
from app.schemas.review import ReviewUpdate
from app.schemas.user import PasswordChange, RegisterRequest, RoleUpdate
from models import Category, Event, Notification, Review, User


class TestTableDefinitions:
    """Test suite for SQLAlchemy model definitions."""

    def test_table_names(self):
        assert User.__tablename__ == "users"
        assert Category.__tablename__ == "eventcategories"
        assert Event.__tablename__ == "events"
        assert Review.__tablename__ == "reviews"
        assert Notification.__tablename__ == "notifications"

    def test_username_and_email_are_unique(self):
        assert User.__table__.columns["username"].unique is True
        assert User.__table__.columns["email"].unique is True

    def test_role_defaults_to_user(self):
        assert User.__table__.columns["role"].default.arg == "user"

    def test_review_status_defaults_to_pending(self):
        assert Review.__table__.columns["status"].default.arg == "pending"

    def test_review_has_event_user_unique_constraint(self):
        names = {c.name for c in Review.__table__.constraints}
        assert "uq_reviews_event_user" in names

    def test_event_category_is_required(self):
        assert Event.__table__.columns["category_id"].nullable is False


class TestDatabaseConstraints:
    """Constraints enforced by the database itself."""

    def test_duplicate_review_rejected(self, db, make_event, member, make_review):
        event = make_event()
        make_review(event, member)

        db.add(Review(event_id=event.event_id, user_id=member.user_id, rating=3, review_text=""))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_rating_out_of_range_rejected(self, db, make_event, member):
        event = make_event()
        db.add(Review(event_id=event.event_id, user_id=member.user_id, rating=6, review_text=""))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_duplicate_email_rejected(self, db, make_user):
        make_user("bob", email="shared@example.com")
        db.add(User(username="carol", email="shared@example.com", password_hash="x"))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()


class TestSchemas:
    """Test suite for Pydantic schema validation."""

    def test_event_create_strips_text(self):
        event = EventCreate(
            name="  Launch  ",
            category_id=1,
            event_date=datetime(2030, 1, 1, 10, 0),
            location="  Hall A ",
            description="   ",
        )
        assert event.name == "Launch"
        assert event.location == "Hall A"
        assert event.description is None

    def test_event_create_requires_fields(self):
        with pytest.raises(ValidationError):
            EventCreate(name="Launch")

    def test_event_create_rejects_blank_name(self):
        with pytest.raises(ValidationError):
            EventCreate(name="   ", category_id=1, event_date=datetime(2030, 1, 1))

    def test_event_update_all_optional(self):
        assert EventUpdate().model_dump(exclude_none=True) == {}

    def test_event_update_strips_text(self):
        update = EventUpdate(description="  Rooftop  ", location=" Roof ", event_type="   ")
        assert update.description == "Rooftop"
        assert update.location == "Roof"
        assert update.event_type is None
        assert update.model_dump(exclude_none=True) == {"description": "Rooftop", "location": "Roof"}

    def test_review_update_rating_range(self):
        with pytest.raises(ValidationError):
            ReviewUpdate(rating=0)
        assert ReviewUpdate(rating=5).rating == 5

    def test_register_requires_valid_email(self):
        with pytest.raises(ValidationError):
            RegisterRequest(username="alice", email="not-an-email", password="secret123")

    def test_password_change_minimum_length(self):
        with pytest.raises(ValidationError):
            PasswordChange(currentPassword="old", newPassword="12345")

    def test_role_update_only_known_roles(self):
        with pytest.raises(ValidationError):
            RoleUpdate(role="superuser")
