"""Client-side session/identity context.

The context owns the current token and user. It is created once at the
application root, restored with ``load()`` at startup and emptied with
``clear()`` on logout or when the server rejects the token.
"""

import enum
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from docmarket.client.api import ApiClient, ApiError
from docmarket.client.storage import MemoryStorage

logger = logging.getLogger("docmarket.client")

TOKEN_KEY = "token"
USER_KEY = "user"


class SessionStatus(enum.Enum):
    IDLE = "idle"
    LOADING = "loading"


@dataclass(frozen=True)
class Notification:
    """Transient message for the user interface."""

    title: str
    description: str
    level: str = "info"


def log_notification(notification: Notification) -> None:
    level = logging.ERROR if notification.level == "error" else logging.INFO
    logger.log(level, "%s: %s", notification.title, notification.description)


class SessionContext:
    """Current user and bearer token, mirrored to durable storage."""

    def __init__(
        self,
        api: ApiClient,
        storage: Any = None,
        notify: Callable[[Notification], None] | None = None,
    ) -> None:
        self.api = api
        self.storage = storage if storage is not None else MemoryStorage()
        self.notify = notify or log_notification
        self.token: str | None = None
        self.user: dict | None = None
        self.status = SessionStatus.IDLE

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def is_admin(self) -> bool:
        return bool(self.user) and self.user.get("role") == "admin"

    @property
    def is_loading(self) -> bool:
        return self.status is SessionStatus.LOADING

    def load(self) -> dict | None:
        """Restore a persisted session, then re-validate it against the server."""
        token = self.storage.get(TOKEN_KEY)
        if not token:
            return None
        self.token = token
        self.api.token = token
        self.user = self.storage.get(USER_KEY)
        return self.fetch_profile()

    def clear(self) -> None:
        """Drop the session from memory and storage."""
        self.token = None
        self.user = None
        self.api.token = None
        self.storage.remove(TOKEN_KEY)
        self.storage.remove(USER_KEY)

    def _start(self, token: str, user: dict) -> None:
        self.token = token
        self.user = user
        self.api.token = token
        self.storage.set(TOKEN_KEY, token)
        self.storage.set(USER_KEY, user)

    @contextmanager
    def _loading(self) -> Iterator[None]:
        self.status = SessionStatus.LOADING
        try:
            yield
        finally:
            self.status = SessionStatus.IDLE

    def _failed(self, title: str, exc: ApiError) -> None:
        self.notify(Notification(title, exc.message, "error"))

    def fetch_profile(self) -> dict | None:
        """Refresh the cached user. A rejected token ends the session."""
        if not self.token:
            return None
        try:
            data = self.api.users.profile()
        except ApiError as exc:
            if exc.status_code == 401:
                logger.info("Stored token rejected, clearing session")
                self.clear()
            else:
                logger.warning("Error fetching profile: %s", exc.message)
            return None
        self.user = data["user"]
        self.storage.set(USER_KEY, self.user)
        return self.user

    def login(self, email: str, password: str) -> dict:
        with self._loading():
            try:
                data = self.api.users.login(email, password)
            except ApiError as exc:
                self._failed("Login Failed", exc)
                raise
            self._start(data["token"], data["user"])
            self.notify(Notification("Login Successful", "Welcome back!"))
            self.fetch_profile()
        return self.user

    def register(self, email: str, phone: str | None, password: str) -> dict:
        with self._loading():
            try:
                data = self.api.users.register(email, password, phone=phone)
            except ApiError as exc:
                self._failed("Registration Failed", exc)
                raise
            self._start(data["token"], data["user"])
            self.notify(Notification("Registration Successful", "Your account has been created successfully!"))
            self.fetch_profile()
        return self.user

    def request_password_reset(self, email: str) -> dict:
        with self._loading():
            try:
                data = self.api.users.request_reset(email)
            except ApiError as exc:
                self._failed("Request Failed", exc)
                raise
            self.notify(Notification("Reset Link Sent", "Check your email for password reset instructions"))
        return data

    def reset_password(self, token: str, new_password: str) -> dict:
        with self._loading():
            try:
                data = self.api.users.reset_password(token, new_password)
            except ApiError as exc:
                self._failed("Reset Failed", exc)
                raise
            self.notify(Notification("Password Reset Successful", "You can now log in with your new password"))
        return data

    def logout(self) -> None:
        """End the session locally. The token stays valid server-side until it expires."""
        self.clear()
        self.notify(Notification("Logged Out", "You have been logged out successfully"))
