"""
Unit tests for the data-access services.

Tests cover:
- Read-through caching and invalidation on writes
- Typed results for expected failures
- Review creation transaction
- Notification scoping
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.schemas.event import EventCreate
from models.notification import Notification
from models.review import Review
from services.categories import CATEGORIES_KEY, CategoryService
from services.dashboard import DASHBOARD_KEY, DashboardService
from services.events import EventFilters, EventService, event_key
from services.notifications import NotificationService
from services.querying import PageRequest
from services.results import Outcome
from services.reviews import ReviewFilters, ReviewService, event_reviews_key
from services.users import UserFilters, UserService, profile_key


@pytest.fixture
def events(db, cache):
    return EventService(db, cache)


@pytest.fixture
def reviews(db, cache):
    return ReviewService(db, cache)


@pytest.fixture
def users(db, cache, settings):
    return UserService(db, cache, settings)


@pytest.fixture
def notifications(db, cache):
    return NotificationService(db, cache)


class TestEventService:
    """Test suite for EventService."""

    def test_get_by_id_caches_result(self, events, make_event, cache):
        event = make_event()
        result = events.get_by_id(event.event_id)

        assert result.ok
        assert cache.get(event_key(event.event_id))["name"] == "Launch party"

    def test_missing_event_is_not_cached(self, events, cache):
        result = events.get_by_id(999)

        assert result.outcome is Outcome.NOT_FOUND
        assert cache.get(event_key(999)) is None

    def test_update_is_visible_within_ttl(self, events, make_event):
        event = make_event()
        events.get_by_id(event.event_id)

        updated = events.update(event.event_id, {"name": "Renamed"})

        assert updated.ok
        assert events.get_by_id(event.event_id).value["name"] == "Renamed"

    def test_update_without_fields(self, events, make_event):
        event = make_event()
        assert events.update(event.event_id, {}).outcome is Outcome.NO_CHANGES

    def test_update_missing_event(self, events):
        assert events.update(999, {"name": "x"}).outcome is Outcome.NOT_FOUND

    def test_update_with_unknown_category(self, events, make_event):
        event = make_event()
        assert events.update(event.event_id, {"category_id": 999}).outcome is Outcome.INVALID

    def test_create_with_unknown_category(self, events, admin):
        data = EventCreate(name="Launch", category_id=999, event_date=datetime(2030, 1, 1))
        assert events.create(admin.user_id, data).outcome is Outcome.INVALID

    def test_create_invalidates_lists(self, events, admin, category):
        page_request = PageRequest.from_params()
        assert events.list_events(EventFilters(), page_request).total == 0

        data = EventCreate(name="Launch", category_id=category.category_id, event_date=datetime(2030, 1, 1))
        assert events.create(admin.user_id, data).ok

        assert events.list_events(EventFilters(), page_request).total == 1

    def test_delete_removes_reviews(self, events, db, make_event, member, make_review):
        event = make_event()
        make_review(event, member)

        assert events.delete(event.event_id).ok
        db.expire_all()
        assert db.query(Review).count() == 0

    def test_delete_missing_event(self, events):
        assert events.delete(999).outcome is Outcome.NOT_FOUND

    def test_category_filter(self, events, db, make_event, category):
        from models.category import Category

        other = Category(category_name="Music")
        db.add(other)
        db.commit()
        make_event("Talk")
        make_event("Concert", category_id=other.category_id)

        page = events.list_events(EventFilters(category_id=other.category_id), PageRequest.from_params())

        assert [e["name"] for e in page.items] == ["Concert"]

    def test_upcoming_and_past_split_on_today(self, events, make_event, member, make_review):
        make_event("Tomorrow", days=1)
        past = make_event("Last week", days=-7)
        make_review(past, member, rating=4)

        upcoming = events.list_upcoming(PageRequest.from_params())
        past_page = events.list_past(PageRequest.from_params())

        assert [e["name"] for e in upcoming.items] == ["Tomorrow"]
        assert [e["name"] for e in past_page.items] == ["Last week"]
        assert past_page.items[0]["review_count"] == 1
        assert past_page.items[0]["avg_rating"] == 4.0

    def test_sort_fallback_for_unknown_field(self, events, make_event):
        make_event("B", days=2)
        make_event("A", days=1)

        by_default = events.list_events(EventFilters(), PageRequest.from_params(), "nonsense", None)
        newest_first = events.list_events(EventFilters(), PageRequest.from_params(), "created_at", "desc")

        assert [e["event_id"] for e in by_default.items] == [e["event_id"] for e in newest_first.items]


class TestReviewService:
    """Test suite for ReviewService."""

    def test_create_review(self, reviews, make_event, member):
        event = make_event()
        result = reviews.create(event.event_id, member.user_id, "Great", 5)

        assert result.ok
        assert result.value["username"] == "alice"
        assert result.value["status"] == "pending"

    def test_second_review_conflicts(self, reviews, db, make_event, member):
        event = make_event()
        assert reviews.create(event.event_id, member.user_id, "Great", 5).ok

        second = reviews.create(event.event_id, member.user_id, "Again", 1)

        assert second.outcome is Outcome.CONFLICT
        db.expire_all()
        assert db.query(Review).filter(Review.event_id == event.event_id).count() == 1

    def test_unique_constraint_catches_duplicate_past_the_check(
        self, reviews, db, make_event, member, make_user, monkeypatch
    ):
        """A concurrent duplicate that the existence check misses is still a conflict."""
        event = make_event()
        assert reviews.create(event.event_id, member.user_id, "Great", 5).ok
        monkeypatch.setattr(reviews, "_has_reviewed", lambda event_id, user_id: False)

        second = reviews.create(event.event_id, member.user_id, "Again", 1)

        assert second.outcome is Outcome.CONFLICT
        assert second.message == "You have already reviewed this event"
        db.expire_all()
        assert db.query(Review).filter(Review.event_id == event.event_id).count() == 1

        # The rolled back session keeps working
        other = reviews.create(event.event_id, make_user("bob").user_id, "Fine", 3)
        assert other.ok
        assert db.query(Review).filter(Review.event_id == event.event_id).count() == 2

    def test_review_for_missing_event(self, reviews, member):
        assert reviews.create(999, member.user_id, "?", 3).outcome is Outcome.NOT_FOUND

    def test_create_invalidates_event_reviews(self, reviews, make_event, member, cache):
        event = make_event()
        assert reviews.list_for_event(event.event_id) == []
        assert cache.get(event_reviews_key(event.event_id)) == []

        reviews.create(event.event_id, member.user_id, "Great", 5)

        assert len(reviews.list_for_event(event.event_id)) == 1

    def test_update_and_delete(self, reviews, make_event, member, make_review):
        review = make_review(make_event(), member)

        assert reviews.update(review.review_id, {"rating": 2}).value["rating"] == 2
        assert reviews.update(review.review_id, {}).outcome is Outcome.NO_CHANGES
        assert reviews.delete(review.review_id).ok
        assert reviews.delete(review.review_id).outcome is Outcome.NOT_FOUND

    def test_set_status(self, reviews, make_event, member, make_review):
        review = make_review(make_event(), member)

        assert reviews.set_status(review.review_id, "approved").value["status"] == "approved"
        assert reviews.set_status(review.review_id, "bogus").outcome is Outcome.INVALID
        assert reviews.set_status(999, "approved").outcome is Outcome.NOT_FOUND

    def test_filters(self, reviews, make_event, make_user, make_review):
        event = make_event()
        for i, rating in enumerate([1, 3, 5]):
            make_review(event, make_user(f"user{i}"), rating=rating)

        page = reviews.list_reviews(ReviewFilters(min_rating=2), PageRequest.from_params(), "rating", "asc")

        assert page.total == 2
        assert [r["rating"] for r in page.items] == [3, 5]

    def test_analytics(self, reviews, make_event, make_user, make_review):
        event = make_event()
        for i, rating in enumerate([5, 5, 4, 2, 1]):
            make_review(event, make_user(f"user{i}"), rating=rating)

        data = reviews.analytics(event.event_id)["analytics"]

        assert data["total_reviews"] == 5
        assert data["five_star"] == 2
        assert data["positive_reviews"] == 3
        assert data["negative_reviews"] == 2
        assert data["average_rating"] == pytest.approx(3.4)

    def test_analytics_without_reviews(self, reviews):
        data = reviews.analytics()
        assert data["analytics"]["total_reviews"] == 0
        assert data["analytics"]["average_rating"] is None
        assert data["recentReviews"] == []


class TestUserService:
    """Test suite for UserService."""

    def test_register_and_authenticate(self, users):
        registered = users.register("bob", "bob@example.com", "secret123")
        assert registered.ok
        assert registered.value["role"] == "user"

        assert users.authenticate("bob", "secret123").ok

    def test_duplicate_username(self, users):
        users.register("bob", "bob@example.com", "secret123")
        result = users.register("bob", "other@example.com", "secret123")
        assert result.outcome is Outcome.CONFLICT
        assert result.message == "Username already taken"

    def test_duplicate_email(self, users):
        users.register("bob", "bob@example.com", "secret123")
        result = users.register("rob", "bob@example.com", "secret123")
        assert result.outcome is Outcome.CONFLICT
        assert result.message == "Email already registered"

    def test_same_message_for_unknown_user_and_wrong_password(self, users, member):
        wrong_password = users.authenticate("alice", "nope")
        unknown_user = users.authenticate("nobody", "secret123")

        assert wrong_password.outcome is unknown_user.outcome is Outcome.UNAUTHORIZED
        assert wrong_password.message == unknown_user.message

    def test_profile_update_invalidates_cache(self, users, member, cache):
        assert users.get_profile(member.user_id).value["bio"] is None
        assert cache.get(profile_key(member.user_id)) is not None

        users.update_profile(member.user_id, {"bio": "Hello"})

        assert users.get_profile(member.user_id).value["bio"] == "Hello"

    def test_profile_update_email_conflict(self, users, member, make_user):
        make_user("bob")
        result = users.update_profile(member.user_id, {"email": "bob@example.com"})
        assert result.outcome is Outcome.CONFLICT

    def test_profile_update_without_fields(self, users, member):
        assert users.update_profile(member.user_id, {"username": "hacker"}).outcome is Outcome.NO_CHANGES

    def test_change_password(self, users, member):
        assert users.change_password(member.user_id, "wrong", "newpass1").outcome is Outcome.UNAUTHORIZED
        assert users.change_password(member.user_id, "secret123", "newpass1").ok
        assert users.authenticate("alice", "newpass1").ok

    def test_update_role(self, users, member):
        assert users.update_role(member.user_id, "admin").value["role"] == "admin"
        assert users.update_role(member.user_id, "root").outcome is Outcome.INVALID

    def test_activities_merge_events_and_reviews(self, users, admin, make_event, make_review):
        event = make_event()
        make_review(event, admin)

        activities = users.get_activities(admin.user_id)

        assert {a["activity_type"] for a in activities} == {"event_created", "review_submitted"}

    def test_list_users_search_and_role(self, users, admin, member, make_user):
        make_user("bobby")

        by_search = users.list_users(UserFilters(search="bob"), PageRequest.from_params())
        by_role = users.list_users(UserFilters(role="admin"), PageRequest.from_params())
        everyone = users.list_users(UserFilters(role="all"), PageRequest.from_params())

        assert [u["username"] for u in by_search.items] == ["bobby"]
        assert [u["username"] for u in by_role.items] == ["admin"]
        assert everyone.total == 3


class TestNotificationService:
    """Test suite for NotificationService."""

    def test_list_hides_read_by_default(self, notifications, member):
        first = notifications.create(member.user_id, "review_approved", "Approved")
        notifications.create(member.user_id, "review_rejected", "Rejected")
        notifications.mark_read(first["notification_id"], member.user_id)

        unread = notifications.list_for_user(member.user_id)
        everything = notifications.list_for_user(member.user_id, include_read=True)

        assert unread["pagination"]["total"] == 1
        assert everything["pagination"]["total"] == 2

    def test_pagination_window(self, notifications, member):
        for i in range(5):
            notifications.create(member.user_id, "info", f"n{i}")

        window = notifications.list_for_user(member.user_id, limit=2, offset=2)

        assert len(window["notifications"]) == 2
        assert window["pagination"] == {"total": 5, "limit": 2, "offset": 2, "hasMore": True}

    def test_limit_and_offset_are_clamped(self, notifications, member):
        window = notifications.list_for_user(member.user_id, limit=1000, offset=-3)
        assert window["pagination"]["limit"] == 100
        assert window["pagination"]["offset"] == 0

    def test_other_users_notification_is_not_found(self, notifications, member, admin):
        note = notifications.create(member.user_id, "info", "private")

        assert notifications.mark_read(note["notification_id"], admin.user_id).outcome is Outcome.NOT_FOUND
        assert notifications.delete(note["notification_id"], admin.user_id).outcome is Outcome.NOT_FOUND

    def test_mark_all_read(self, notifications, db, member):
        for i in range(3):
            notifications.create(member.user_id, "info", f"n{i}")

        assert notifications.mark_all_read(member.user_id) == 3
        assert notifications.list_for_user(member.user_id)["pagination"]["total"] == 0
        db.expire_all()
        assert db.query(Notification).filter(Notification.is_read.is_(False)).count() == 0

    def test_additional_data_round_trip(self, notifications, member):
        note = notifications.create(member.user_id, "info", "m", related_id=7, additional_data={"event_id": 3})
        assert note["additional_data"] == {"event_id": 3}
        assert note["related_id"] == 7


class TestCategoryAndDashboard:
    def test_categories_sorted_and_cached(self, db, cache, category):
        from models.category import Category

        db.add(Category(category_name="Arts"))
        db.commit()

        names = [c["category_name"] for c in CategoryService(db, cache).list_all()]

        assert names == ["Arts", "Technology"]
        assert cache.get(CATEGORIES_KEY) is not None

    def test_dashboard_stats(self, db, cache, make_event, member, make_review):
        make_event("Soon", days=3)
        past = make_event("Done", days=-3)
        make_review(past, member)

        stats = DashboardService(db, cache).get_stats()

        assert stats == {"totalEvents": 2, "upcomingEvents": 1, "completedEvents": 1, "totalReviews": 1}
        assert cache.get(DASHBOARD_KEY) == stats
