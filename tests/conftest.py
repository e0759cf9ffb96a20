"""Pytest configuration and fixtures."""

import os
import tempfile

# Settings are read at import time, so the environment is pinned before any docmarket import
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="docmarket-test-uploads-")
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["APP_ENV"] = "development"
os.environ["SENDGRID_API_KEY"] = ""
os.environ["ADMIN_PASSWORD"] = ""

from pathlib import Path  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from docmarket.config import get_settings  # noqa: E402
from docmarket.database import Base, get_db  # noqa: E402
from docmarket.models.document import Document  # noqa: E402, F401
from docmarket.models.password_reset import PasswordResetToken  # noqa: E402, F401
from docmarket.models.service import Service  # noqa: E402, F401
from docmarket.models.user import User  # noqa: E402, F401
from docmarket.services.auth import AuthService  # noqa: E402


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="client")
def client_fixture(db_session: Session):
    """Create a test client with overridden DB dependency and disabled rate limiting."""
    from docmarket.rate_limit import limiter
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    with TestClient(app) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture(name="upload_dir")
def upload_dir_fixture() -> Path:
    """Root directory uploads are written to."""
    return Path(get_settings().UPLOAD_DIR)


def _make_user(db_session: Session, email: str, password: str, role: str) -> dict:
    auth_service = AuthService()
    user = auth_service.register(db_session, email, password, phone="555-0100", role=role)
    token = auth_service.issue_token(user)
    return {
        "user_id": user.id,
        "email": user.email,
        "password": password,
        "role": user.role,
        "token": token,
        "headers": {"Authorization": f"Bearer {token}"},
    }


@pytest.fixture(name="test_user")
def test_user_fixture(db_session: Session):
    """Create a regular user and return its credentials and token."""
    return _make_user(db_session, "test@example.com", "password123", "user")


@pytest.fixture(name="admin_user")
def admin_user_fixture(db_session: Session):
    """Create an admin user and return its credentials and token."""
    return _make_user(db_session, "admin@example.com", "adminpass123", "admin")
