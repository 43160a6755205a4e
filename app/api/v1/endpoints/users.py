import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile

from app.api.deps import get_image_store, get_user_service
from app.middleware.auth import CurrentUser, get_current_user, require_admin
from app.schemas.common import MessageResponse
from app.schemas.user import Activity, PasswordChange, ProfileUpdate, RoleUpdate, UserProfile
from app.utils.pagination import set_pagination_headers
from app.utils.validation import parse_form
from core.errors import AuthorizationError
from models.user import ROLE_ADMIN
from services.querying import PageRequest
from services.results import unwrap
from services.uploads import ImageStore
from services.users import UserFilters, UserService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/profile", response_model=UserProfile)
def get_profile(
    user: CurrentUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    return unwrap(users.get_profile(user.user_id))


@router.put("/profile", response_model=UserProfile)
def update_profile(
    email: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    profile_picture: Optional[UploadFile] = File(None),
    user: CurrentUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
    images: ImageStore = Depends(get_image_store),
):
    """
    Update own profile

    Multipart form with any of email, bio and a profile_picture image.
    """
    changes = parse_form(ProfileUpdate, email=email, bio=bio)
    fields = changes.model_dump(exclude_none=True)
    picture = images.save(profile_picture, "profile")
    if picture:
        fields["profile_picture"] = picture

    result = users.update_profile(user.user_id, fields)
    if not result.ok:
        images.discard(picture)
    return unwrap(result)


@router.put("/password", response_model=MessageResponse)
def change_password(
    payload: PasswordChange,
    user: CurrentUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    unwrap(users.change_password(user.user_id, payload.currentPassword, payload.newPassword))
    return MessageResponse(message="Password updated successfully")


@router.get("/activities", response_model=List[Activity])
def get_activities(
    user: CurrentUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    """Latest events created and reviews submitted by the caller"""
    return users.get_activities(user.user_id)


@router.get("", response_model=List[UserProfile])
def list_users(
    response: Response,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    search: Optional[str] = None,
    role: Optional[str] = None,
    admin: CurrentUser = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    """
    List accounts (admin only)

    Query params:
    - search: substring of username or email
    - role: "user" or "admin" (anything else lists all)
    - page, limit: pagination (limit capped at 100)
    """
    result = users.list_users(
        UserFilters(search=(search or "").strip() or None, role=role),
        PageRequest.from_params(page, limit),
    )
    set_pagination_headers(response, result)
    return result.items


@router.put("/{user_id}/role", response_model=UserProfile)
def update_role(
    user_id: int,
    payload: RoleUpdate,
    admin: CurrentUser = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    """Change a user's role (admin only); admins cannot demote themselves"""
    if user_id == admin.user_id and payload.role != ROLE_ADMIN:
        raise AuthorizationError("Administrators cannot demote themselves")

    profile = unwrap(users.update_role(user_id, payload.role))
    logger.info(f"Admin {admin.user_id} set role of user {user_id} to {payload.role}")
    return profile
