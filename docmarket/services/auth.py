"""Authentication service: registration, login, bearer tokens and password reset."""

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

import bcrypt
from sqlalchemy import func
from sqlalchemy.orm import Session

from docmarket.config import get_settings
from docmarket.errors import Conflict, InvalidCredentials, InvalidOrExpired, NotFound, Unauthenticated, ValidationError
from docmarket.models.password_reset import PasswordResetToken
from docmarket.models.user import User
from docmarket.services.jwt import get_jwt_service
from docmarket.services.mailer import get_mailer

logger = logging.getLogger("docmarket")

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    raw = password.encode("utf-8")
    if len(raw) > BCRYPT_MAX_BYTES:
        raise ValidationError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
    return bcrypt.hashpw(raw, bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    raw = password.encode("utf-8")
    if len(raw) > BCRYPT_MAX_BYTES:
        return False
    return bcrypt.checkpw(raw, password_hash.encode("utf-8"))


def hash_reset_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def normalize_email(email: str) -> str:
    return email.strip().lower()


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(func.lower(User.email) == normalize_email(email)).first()


@dataclass
class ResetRequest:
    """Outcome of a password reset request."""

    user_id: int
    email: str
    raw_token: str
    reset_url: str
    email_sent: bool


class AuthService:
    """Handles user registration, authentication and password reset."""

    def register(self, db: Session, email: str, password: str, phone: str | None = None, role: str = "user") -> User:
        """Create a user account. Raises Conflict if the email is taken."""
        if find_user_by_email(db, email):
            raise Conflict("User already exists")

        user = User(
            email=normalize_email(email),
            phone=phone or None,
            password_hash=hash_password(password),
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("User registered: id=%s email=%s role=%s", user.id, user.email, user.role)
        return user

    def authenticate(self, db: Session, email: str, password: str) -> User:
        """Check credentials. Unknown email and wrong password fail the same way."""
        user = find_user_by_email(db, email)
        if not user or not verify_password(password, user.password_hash):
            raise InvalidCredentials()
        return user

    def issue_token(self, user: User) -> str:
        return get_jwt_service().create_token(user_id=user.id, email=user.email, role=user.role)

    def resolve_token(self, db: Session, token: str) -> User:
        """Map a bearer token onto its live user. Raises Unauthenticated."""
        payload = get_jwt_service().decode_token(token)
        if not payload:
            raise Unauthenticated("Invalid or expired token")
        user = db.get(User, int(payload["id"]))
        if not user:
            raise Unauthenticated("Please authenticate")
        return user

    def request_password_reset(self, db: Session, email: str) -> ResetRequest:
        """Issue a fresh reset token for the user and email the raw value.

        Any token previously issued to the user is deleted. Raises NotFound
        if no account uses the email.
        """
        settings = get_settings()
        user = find_user_by_email(db, email)
        if not user:
            raise NotFound("User not found")

        raw_token = secrets.token_hex(32)
        db.query(PasswordResetToken).filter(PasswordResetToken.user_id == user.id).delete(synchronize_session=False)
        db.add(
            PasswordResetToken(
                user_id=user.id,
                token_hash=hash_reset_token(raw_token),
                expires_at=datetime.utcnow() + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES),
            )
        )
        db.commit()

        reset_url = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?token={raw_token}"
        email_sent = get_mailer().send_password_reset(user.email, reset_url, settings.RESET_TOKEN_EXPIRE_MINUTES)
        if not email_sent:
            logger.info("PASSWORD RESET for user %s: %s", user.id, reset_url)

        return ResetRequest(
            user_id=user.id,
            email=user.email,
            raw_token=raw_token,
            reset_url=reset_url,
            email_sent=email_sent,
        )

    def reset_password(self, db: Session, raw_token: str, new_password: str) -> User:
        """Consume a reset token and set the new password."""
        row = db.query(PasswordResetToken).filter(PasswordResetToken.token_hash == hash_reset_token(raw_token)).first()
        if not row:
            raise InvalidOrExpired("Invalid or expired reset token")

        if row.is_expired():
            db.delete(row)
            db.commit()
            raise InvalidOrExpired("Reset token has expired")

        user = row.user
        user.password_hash = hash_password(new_password)
        db.query(PasswordResetToken).filter(PasswordResetToken.user_id == user.id).delete(synchronize_session=False)
        db.commit()
        db.refresh(user)
        logger.info("Password reset for user %s", user.id)
        return user


_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get singleton auth service instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
