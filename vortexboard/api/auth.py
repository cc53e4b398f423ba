# Authentication API routes for user registration, login, and profile management

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from vortexboard.db import get_app_db
from vortexboard.db_handlers.user import UserDBHandler
from vortexboard.dependencies.auth import get_current_user
from vortexboard.dependencies.services import get_notification_service
from vortexboard.errors import AuthenticationError, ValidationError
from vortexboard.models import User
from vortexboard.schemas import (
    AuthResponse,
    UserLogin,
    UserRegister,
    UserResponse,
    UserSummary,
    UserUpdateDetails,
    UserUpdatePassword,
)
from vortexboard.services.activity import log_activity
from vortexboard.services.notifications import NotificationService
from vortexboard.utils.auth import create_access_token, get_password_hash, verify_password
from vortexboard.utils.logger import setup_logger

logger = setup_logger("api.auth")

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        token=create_access_token(user.id), user=UserSummary.model_validate(user)
    )


@router.post(
    "/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED
)
async def register_user(
    user_data: UserRegister,
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_app_db),
    user_db_handler: UserDBHandler = Depends(),
    notifier: NotificationService = Depends(get_notification_service),
):
    """Register a new account and return a token for it."""
    existing_user = await user_db_handler.get_user_by_email(user_data.email, db=db)
    if existing_user:
        raise ValidationError("User already exists with this email")

    user = await user_db_handler.create(
        {
            "name": user_data.name,
            "email": user_data.email,
            "hashed_password": get_password_hash(user_data.password),
        },
        db=db,
    )
    logger.info(f"New user registered: {user.email}")

    log_activity(background_tasks, request, user.id, "user.register", "user", user.id)
    background_tasks.add_task(notifier.welcome, user)
    return auth_response(user)


@router.post("/login", response_model=AuthResponse)
async def login_user(
    user_data: UserLogin,
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_app_db),
    user_db_handler: UserDBHandler = Depends(),
):
    """Authenticate with email and password and return a JWT."""
    user = await user_db_handler.get_user_by_email(user_data.email, db=db)
    if not user or not verify_password(user_data.password, user.hashed_password):
        raise AuthenticationError("Invalid credentials")

    logger.info(f"User logged in: {user.email}")
    log_activity(background_tasks, request, user.id, "user.login", "user", user.id)
    return auth_response(user)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Retrieve the authenticated user's profile."""
    return UserResponse(user=UserSummary.model_validate(current_user))


@router.put("/updatedetails", response_model=UserResponse)
async def update_details(
    details: UserUpdateDetails,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    user_db_handler: UserDBHandler = Depends(),
):
    """Update name and/or email."""
    update_data = details.model_dump(exclude_unset=True, exclude_none=True)
    new_email = update_data.get("email")
    if new_email and new_email != current_user.email:
        other = await user_db_handler.get_user_by_email(new_email, db=db)
        if other and other.id != current_user.id:
            raise ValidationError("Email is already in use")

    user = await user_db_handler.update(current_user, update_data, db=db)
    log_activity(
        background_tasks,
        request,
        user.id,
        "user.update",
        "user",
        user.id,
        fields=sorted(update_data),
    )
    return UserResponse(user=UserSummary.model_validate(user))


@router.put("/updatepassword", response_model=AuthResponse)
async def update_password(
    passwords: UserUpdatePassword,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    user_db_handler: UserDBHandler = Depends(),
):
    """Change the password after checking the current one. Returns a fresh token."""
    if not verify_password(passwords.current_password, current_user.hashed_password):
        raise AuthenticationError("Password is incorrect")

    user = await user_db_handler.update(
        current_user,
        {"hashed_password": get_password_hash(passwords.new_password)},
        db=db,
    )
    log_activity(
        background_tasks, request, user.id, "user.update", "user", user.id, fields=["password"]
    )
    return auth_response(user)
