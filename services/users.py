"""
User Service

Registration, credential checks, profile reads/updates, role changes and the
activity feed. Profile and activity reads are cached per user.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from app.schemas.user import Activity, UserProfile
from core.config import Settings
from core.security import hash_password, verify_password
from models.event import Event
from models.review import Review
from models.user import ROLE_USER, ROLES, User
from services.base import CachedService
from services.querying import Page, PageRequest, SortOrder, SortPolicy, paginate
from services.results import Result

logger = logging.getLogger(__name__)

PROFILE_TTL = 10 * 60
ACTIVITIES_TTL = 5 * 60
USER_LIST_TTL = 2 * 60
ACTIVITY_SOURCE_LIMIT = 5
ACTIVITY_FEED_LIMIT = 10

USER_WRITE_PATTERNS = ("users:",)

PROFILE_FIELDS = ("email", "bio", "profile_picture")

USER_SORT = SortPolicy(
    {"created_at": User.created_at, "username": User.username},
    default_field="created_at",
    tie_breaker=User.user_id,
    default_order=SortOrder.DESC,
)

INVALID_CREDENTIALS = "Invalid credentials"


def profile_key(user_id: int) -> str:
    return f"user:{user_id}:profile"


def activities_key(user_id: int) -> str:
    return f"user:{user_id}:activities"


def serialize_profile(user: User) -> Dict[str, Any]:
    return UserProfile.model_validate(user).model_dump(mode="json")


@dataclass(frozen=True)
class UserFilters:
    search: Optional[str] = None
    role: Optional[str] = None

    def cache_token(self) -> str:
        return f"{self.search or ''}:{self.role or 'all'}"


class UserService(CachedService):
    """Service for user accounts"""

    def __init__(self, db, cache, settings: Settings):
        super().__init__(db, cache)
        self.settings = settings

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.user_id == user_id).first()

    def get_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def register(self, username: str, email: str, password: str) -> Result[Dict[str, Any]]:
        """
        Create a user account with the default role.

        Returns:
            Result with userId/username/email/role, or CONFLICT when the username
            or email is already taken
        """
        if self.get_by_username(username):
            return Result.conflict("Username already taken")
        if self.get_by_email(email):
            return Result.conflict("Email already registered")

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password, self.settings),
            role=ROLE_USER,
        )
        try:
            self.db.add(user)
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration
            self.db.rollback()
            return Result.conflict("Username or email already registered")
        self.db.refresh(user)

        self._invalidate(patterns=USER_WRITE_PATTERNS)
        logger.info(f"User registered: user_id={user.user_id}")
        return Result.success({
            "userId": user.user_id,
            "username": user.username,
            "email": user.email,
            "role": user.role,
        })

    def authenticate(self, username: str, password: str) -> Result[User]:
        """
        Check credentials.

        Unknown usernames and wrong passwords produce the same UNAUTHORIZED
        result so callers cannot probe which usernames exist.
        """
        user = self.get_by_username(username)
        if not verify_password(password, user.password_hash if user else None, self.settings):
            return Result.unauthorized(INVALID_CREDENTIALS)
        return Result.success(user)

    def get_profile(self, user_id: int) -> Result[Dict[str, Any]]:
        def load():
            user = self.get_by_id(user_id)
            return serialize_profile(user) if user else None

        data = self._cached(profile_key(user_id), PROFILE_TTL, load)
        if data is None:
            return Result.not_found("User not found")
        return Result.success(data)

    def update_profile(self, user_id: int, fields: Dict[str, Any]) -> Result[Dict[str, Any]]:
        """
        Change only the supplied profile fields (email, bio, profile_picture).

        Returns:
            Result with the updated profile; NO_CHANGES, NOT_FOUND or CONFLICT
            (email used by another account)
        """
        changes = {k: v for k, v in fields.items() if k in PROFILE_FIELDS}
        if not changes:
            return Result.no_changes("No fields to update provided")

        user = self.get_by_id(user_id)
        if not user:
            return Result.not_found("User not found")

        if "email" in changes and not changes["email"]:
            return Result.invalid("Email cannot be empty")
        if "email" in changes and changes["email"] != user.email:
            other = self.get_by_email(changes["email"])
            if other and other.user_id != user_id:
                return Result.conflict("Email already registered")

        for field, value in changes.items():
            setattr(user, field, value)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return Result.conflict("Email already registered")
        self.db.refresh(user)

        self._invalidate_user(user_id)
        return Result.success(serialize_profile(user))

    def change_password(self, user_id: int, current_password: str, new_password: str) -> Result[None]:
        user = self.get_by_id(user_id)
        if not user:
            return Result.not_found("User not found")
        if not verify_password(current_password, user.password_hash, self.settings):
            return Result.unauthorized("Current password is incorrect")

        user.password_hash = hash_password(new_password, self.settings)
        self.db.commit()
        logger.info(f"Password changed for user_id={user_id}")
        return Result.success()

    def update_role(self, user_id: int, role: str) -> Result[Dict[str, Any]]:
        if role not in ROLES:
            return Result.invalid("Invalid role specified")

        user = self.get_by_id(user_id)
        if not user:
            return Result.not_found("User not found")

        user.role = role
        self.db.commit()
        self.db.refresh(user)

        self._invalidate_user(user_id)
        logger.info(f"Role of user_id={user_id} set to {role}")
        return Result.success(serialize_profile(user))

    def get_activities(self, user_id: int) -> List[Dict[str, Any]]:
        """
        Recent activity feed: events the user created and reviews they submitted,
        newest first.
        """
        return self._cached(activities_key(user_id), ACTIVITIES_TTL, lambda: self._load_activities(user_id))

    def _load_activities(self, user_id: int) -> List[Dict[str, Any]]:
        created_events = (
            self.db.query(Event)
            .filter(Event.user_id == user_id)
            .order_by(Event.created_at.desc(), Event.event_id.desc())
            .limit(ACTIVITY_SOURCE_LIMIT)
            .all()
        )
        submitted_reviews = (
            self.db.query(Review, Event.name)
            .join(Event, Review.event_id == Event.event_id)
            .filter(Review.user_id == user_id)
            .order_by(Review.created_at.desc(), Review.review_id.desc())
            .limit(ACTIVITY_SOURCE_LIMIT)
            .all()
        )

        activities = [
            Activity(
                activity_type="event_created",
                event_id=event.event_id,
                name=event.name,
                event_date=event.event_date,
                created_at=event.created_at,
            )
            for event in created_events
        ]
        activities.extend(
            Activity(
                activity_type="review_submitted",
                event_id=review.event_id,
                name=event_name,
                review_id=review.review_id,
                rating=review.rating,
                created_at=review.created_at,
            )
            for review, event_name in submitted_reviews
        )

        activities.sort(key=lambda a: a.created_at.timestamp() if a.created_at else 0.0, reverse=True)
        return [a.model_dump(mode="json") for a in activities[:ACTIVITY_FEED_LIMIT]]

    def list_users(self, filters: UserFilters, page_request: PageRequest) -> Page:
        sort = USER_SORT.resolve(None, None)
        key = f"users:list:{filters.cache_token()}:{page_request.cache_token()}"

        def load():
            query = self.db.query(User)
            if filters.search:
                query = query.filter(
                    User.username.icontains(filters.search, autoescape=True)
                    | User.email.icontains(filters.search, autoescape=True)
                )
            if filters.role in ROLES:
                query = query.filter(User.role == filters.role)
            return paginate(query, page_request, USER_SORT.order_by(sort), serialize_profile).to_dict()

        return Page.from_dict(self._cached(key, USER_LIST_TTL, load))

    def _invalidate_user(self, user_id: int) -> None:
        self._invalidate(patterns=(f"user:{user_id}:",) + USER_WRITE_PATTERNS)
