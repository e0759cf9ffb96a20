"""User API endpoints: authentication, profile and admin management."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from docmarket.config import get_settings
from docmarket.database import get_db
from docmarket.dependencies import CurrentUser, get_current_user, require_admin
from docmarket.rate_limit import limiter
from docmarket.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    MessageResponse,
    ProfileResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UserResponse,
)
from docmarket.schemas.user import (
    UserCreateRequest,
    UserEnvelope,
    UserListResponse,
    UserMutationResponse,
    UserUpdateRequest,
)
from docmarket.services.auth import get_auth_service
from docmarket.services.users import get_user_service

logger = logging.getLogger("docmarket")

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.post("/register", response_model=AuthResponse, status_code=201)
@limiter.limit("5/minute")
def register(request: Request, body: RegisterRequest, db: Session = Depends(get_db)) -> AuthResponse:
    """Register a new user account and log it in."""
    auth_service = get_auth_service()
    user = auth_service.register(db, body.email, body.password, phone=body.phone)
    return AuthResponse(
        message="User registered successfully",
        token=auth_service.issue_token(user),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
@limiter.limit("10/minute")
def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)) -> AuthResponse:
    """Authenticate and receive a JWT token."""
    auth_service = get_auth_service()
    user = auth_service.authenticate(db, body.email, body.password)
    return AuthResponse(
        message="Login successful",
        token=auth_service.issue_token(user),
        user=UserResponse.model_validate(user),
    )


@router.post("/request-reset", response_model=ForgotPasswordResponse, response_model_exclude_none=True)
@limiter.limit("3/minute")
def request_reset(
    request: Request,
    body: ForgotPasswordRequest,
    db: Session = Depends(get_db),
) -> ForgotPasswordResponse:
    """Email a password reset link. Development mode also returns the token."""
    result = get_auth_service().request_password_reset(db, body.email)

    if result.email_sent:
        message = "Reset link sent to email"
    else:
        message = "Password reset requested. If your email is registered, you will receive reset instructions."

    if get_settings().is_development:
        return ForgotPasswordResponse(message=message, token=result.raw_token, reset_url=result.reset_url)
    return ForgotPasswordResponse(message=message)


@router.post("/reset-password", response_model=MessageResponse)
@limiter.limit("5/minute")
def reset_password(request: Request, body: ResetPasswordRequest, db: Session = Depends(get_db)) -> MessageResponse:
    """Set a new password using a reset token."""
    get_auth_service().reset_password(db, body.token, body.new_password)
    return MessageResponse(message="Password reset successful")


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    """Return the authenticated user's profile."""
    record = get_user_service().get_user(db, user.user_id)
    return ProfileResponse(user=UserResponse.model_validate(record))


@router.get("", response_model=UserListResponse)
def list_users(
    search: str | None = None,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> UserListResponse:
    """List all users, newest first."""
    users = get_user_service().list_users(db, search=search)
    return UserListResponse(users=[UserResponse.model_validate(u) for u in users])


@router.get("/{user_id}", response_model=UserEnvelope)
def get_user(
    user_id: int,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> UserEnvelope:
    """Get a single user by ID."""
    user = get_user_service().get_user(db, user_id)
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.post("", response_model=UserMutationResponse, status_code=201)
def create_user(
    body: UserCreateRequest,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> UserMutationResponse:
    """Create a user with the given role."""
    user = get_user_service().create_user(db, body.email, body.password, phone=body.phone, role=body.role)
    logger.info("Admin %s created user %s", admin.user_id, user.id)
    return UserMutationResponse(message="User created successfully", user=UserResponse.model_validate(user))


@router.put("/{user_id}", response_model=UserMutationResponse)
def update_user(
    user_id: int,
    body: UserUpdateRequest,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> UserMutationResponse:
    """Update the supplied fields of a user."""
    service = get_user_service()
    user = service.get_user(db, user_id)
    user = service.update_user(
        db,
        user,
        email=body.email,
        phone=body.phone,
        password=body.password,
        role=body.role,
        phone_supplied="phone" in body.model_fields_set,
    )
    return UserMutationResponse(message="User updated successfully", user=UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> MessageResponse:
    """Delete a user and its reset tokens."""
    service = get_user_service()
    user = service.get_user(db, user_id)
    service.delete_user(db, user)
    logger.info("Admin %s deleted user %s", admin.user_id, user_id)
    return MessageResponse(message="User deleted successfully")
