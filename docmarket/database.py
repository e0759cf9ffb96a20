"""Database session management."""

import logging
import sqlite3
from collections.abc import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from docmarket.config import get_settings

logger = logging.getLogger("docmarket")


def _engine_options(url: str) -> dict:
    settings = get_settings()
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,
    }


@event.listens_for(Engine, "connect")
def _register_sqlite_functions(dbapi_connection, connection_record) -> None:
    # SQLite's built-in lower() only folds ASCII; ilike compiles to lower() LIKE lower()
    if isinstance(dbapi_connection, sqlite3.Connection):
        dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def contains_pattern(search: str) -> str:
    """LIKE pattern matching ``search`` anywhere, with wildcards taken literally. Use with ``escape="\\"``."""
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


settings = get_settings()
engine = create_engine(settings.DATABASE_URL, echo=settings.DEBUG, **_engine_options(settings.DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def get_db() -> Generator[Session, None, None]:
    """Yield a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ping(db: Session) -> bool:
    """Return True when the database answers a trivial query."""
    try:
        db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database ping failed")
        return False
    return True


def init_db(bind: Engine | None = None) -> None:
    """Create missing tables and bootstrap the admin account.

    Errors propagate so that a failed schema setup aborts startup.
    """
    # Import all models so they register with Base.metadata
    from docmarket.models.document import Document  # noqa: F401
    from docmarket.models.password_reset import PasswordResetToken  # noqa: F401
    from docmarket.models.service import Service  # noqa: F401
    from docmarket.models.user import User
    from docmarket.services.auth import hash_password

    bind = bind or engine
    Base.metadata.create_all(bind=bind)

    settings = get_settings()
    if not settings.ADMIN_PASSWORD:
        return

    db = Session(bind=bind)
    try:
        if db.query(User).filter(User.role == "admin").first():
            return
        admin = User(
            email=settings.ADMIN_EMAIL.lower().strip(),
            password_hash=hash_password(settings.ADMIN_PASSWORD),
            role="admin",
        )
        db.add(admin)
        db.commit()
        logger.info("Default admin user created: %s", admin.email)
    finally:
        db.close()
