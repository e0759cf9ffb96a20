"""Admin user management."""

import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from docmarket.database import contains_pattern
from docmarket.errors import Conflict, NotFound, ValidationError
from docmarket.models.user import ROLES, User
from docmarket.services.auth import find_user_by_email, get_auth_service, hash_password, normalize_email

logger = logging.getLogger("docmarket")


class UserService:
    """Handles admin CRUD over user accounts."""

    def list_users(self, db: Session, search: str | None = None) -> list[User]:
        query = db.query(User)
        if search:
            pattern = contains_pattern(search)
            query = query.filter(
                or_(
                    User.email.ilike(pattern, escape="\\"),
                    User.phone.ilike(pattern, escape="\\"),
                )
            )
        return query.order_by(User.created_at.desc(), User.id.desc()).all()

    def get_user(self, db: Session, user_id: int) -> User:
        user = db.get(User, user_id)
        if not user:
            raise NotFound("User not found")
        return user

    def create_user(self, db: Session, email: str, password: str, phone: str | None = None, role: str = "user") -> User:
        if role not in ROLES:
            raise ValidationError(f"Role must be one of: {', '.join(ROLES)}")
        return get_auth_service().register(db, email, password, phone=phone, role=role)

    def update_user(
        self,
        db: Session,
        user: User,
        email: str | None = None,
        phone: str | None = None,
        password: str | None = None,
        role: str | None = None,
        phone_supplied: bool = False,
    ) -> User:
        """Apply a partial update.

        ``phone_supplied`` distinguishes an explicit ``null`` (clear the phone)
        from an omitted field.
        """
        if not email and not password and not role and not phone_supplied:
            raise ValidationError("No fields to update")

        if email:
            existing = find_user_by_email(db, email)
            if existing and existing.id != user.id:
                raise Conflict("Email is already in use")
            user.email = normalize_email(email)
        if phone_supplied:
            user.phone = phone or None
        if role:
            if role not in ROLES:
                raise ValidationError(f"Role must be one of: {', '.join(ROLES)}")
            user.role = role
        if password:
            user.password_hash = hash_password(password)

        db.commit()
        db.refresh(user)
        logger.info("User updated: id=%s", user.id)
        return user

    def delete_user(self, db: Session, user: User) -> None:
        """Delete the account together with its reset tokens."""
        user_id = user.id
        db.delete(user)
        db.commit()
        logger.info("User deleted: id=%s", user_id)


_user_service: UserService | None = None


def get_user_service() -> UserService:
    """Get singleton user service instance."""
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
