"""Authentication dependencies for FastAPI routes."""

from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from docmarket.database import get_db
from docmarket.errors import Forbidden, Unauthenticated
from docmarket.services.auth import get_auth_service


@dataclass
class CurrentUser:
    """Authenticated user context."""

    user_id: int
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def bearer_token(request: Request) -> str:
    """Extract the token from ``Authorization: Bearer <token>``. Raises 401 if absent or malformed."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise Unauthenticated("Authentication required")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthenticated("Malformed authorization header")
    return token.strip()


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> CurrentUser:
    """Validate the bearer token against a live user. Raises 401 if invalid."""
    token = bearer_token(request)
    user = get_auth_service().resolve_token(db, token)
    # Role comes from the store so a demoted admin loses access immediately
    return CurrentUser(user_id=user.id, email=user.email, role=user.role)


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Require an authenticated admin. Raises 403 for other roles."""
    if not user.is_admin:
        raise Forbidden("Admin access required")
    return user
