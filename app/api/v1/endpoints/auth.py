import logging

from fastapi import APIRouter, Depends, Request, status

from app.api.deps import get_app_settings, get_user_service
from app.middleware.rate_limit import auth_rate_limit, limiter
from app.schemas.user import LoginRequest, LoginResponse, RegisterRequest, RegisterResponse
from core.config import Settings
from core.security import create_access_token
from services.results import unwrap
from services.users import UserService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(auth_rate_limit)
def register(
    request: Request,
    payload: RegisterRequest,
    users: UserService = Depends(get_user_service),
):
    """
    Register a new account

    New accounts always get the "user" role; 409 when the username or email
    is already taken.
    """
    user = unwrap(users.register(payload.username, payload.email, payload.password))
    return RegisterResponse(message="User registered successfully", userId=user["userId"], role=user["role"])


@router.post("/login", response_model=LoginResponse)
@limiter.limit(auth_rate_limit)
def login(
    request: Request,
    payload: LoginRequest,
    users: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Exchange credentials for a 24h access token

    Unknown username and wrong password give the same 401 response.
    """
    user = unwrap(users.authenticate(payload.username, payload.password))
    token = create_access_token(user.user_id, user.username, user.role, settings)
    logger.info(f"User {user.user_id} logged in")
    return LoginResponse(message="Login successful", token=token, username=user.username, role=user.role)
