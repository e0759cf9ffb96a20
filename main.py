"""DocMarket - Document marketplace API."""

import logging
import time
from contextlib import asynccontextmanager
from http import HTTPStatus

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from docmarket.config import get_settings
from docmarket.database import get_db, init_db, ping
from docmarket.errors import AppError, PayloadTooLarge, ValidationError
from docmarket.rate_limit import limiter
from docmarket.routers import contact_router, documents_router, services_router, users_router
from docmarket.services.storage import PUBLIC_PREFIX, get_upload_storage

APP_NAME = "docmarket"
APP_VERSION = "0.1.0"

# Logging
logger = logging.getLogger("docmarket")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the schema and bootstrap the admin before serving requests."""
    for warning in get_settings().validate():
        logger.warning(warning)
    try:
        init_db()
    except Exception:
        logger.exception("Database initialization failed")
        raise
    logger.info("Database initialization complete")
    yield


app = FastAPI(title="DocMarket", version=APP_VERSION, lifespan=lifespan)
app.state.limiter = limiter


def error_response(status_code: int, message: str, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": message, "error": error})


# --- Security headers middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Uploaded files are embedded by the preview viewers, API responses never are
        if request.url.path.startswith("/api/"):
            response.headers["X-Frame-Options"] = "DENY"
        return response


# --- Request size limit middleware ---
class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        max_body_size = get_settings().MAX_REQUEST_SIZE_MB * 1024 * 1024
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > max_body_size:
            return error_response(400, "Request body too large", PayloadTooLarge.__name__)
        return await call_next(request)


# --- Audit logging middleware ---
class AuditLogMiddleware(BaseHTTPMiddleware):
    AUDIT_PATHS = ("/api/users", "/api/services", "/api/documents", "/api/contact")

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000

        path = request.url.path
        method = request.method
        if method in ("POST", "PUT", "DELETE") and path.startswith(self.AUDIT_PATHS):
            logger.info(
                "AUDIT %s %s -> %d (%.0fms) from %s",
                method,
                path,
                response.status_code,
                duration_ms,
                request.client.host if request.client else "unknown",
            )

        return response


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestSizeLimitMiddleware)
app.add_middleware(AuditLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Uploaded binaries
upload_storage = get_upload_storage()
upload_storage.ensure_directories()
app.mount(PUBLIC_PREFIX, StaticFiles(directory=str(upload_storage.root)), name="uploads")

# API routers
app.include_router(users_router)
app.include_router(services_router)
app.include_router(documents_router)
app.include_router(contact_router)


# --- Error handlers ---
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render domain errors as JSON."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.name, request.method, request.url.path, exc.message)
    return error_response(exc.status_code, exc.message, exc.name)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed input as a 400 ValidationError."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        msg = first.get("msg", "invalid value")
        message = f"{location}: {msg}" if location else msg
    else:
        message = "Invalid request"
    return error_response(400, message, ValidationError.__name__)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes and methods still answer in the same JSON envelope."""
    error = HTTPStatus(exc.status_code).phrase.replace(" ", "")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": error},
        headers=exc.headers,
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded."""
    return error_response(429, "Rate limit exceeded. Try again later.", "RateLimitExceeded")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures; expose their text only outside production."""
    logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc, exc_info=exc)
    settings = get_settings()
    content = {"detail": "Internal server error", "error": "ServerError"}
    if settings.DEBUG or settings.is_development:
        content["message"] = str(exc)
    return JSONResponse(status_code=500, content=content)


# --- Health check ---
@app.get("/health")
@app.get("/api/health")
def health_check(db: Session = Depends(get_db)) -> JSONResponse:
    """Report process and database liveness."""
    if not ping(db):
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "database": "unreachable", "app": APP_NAME},
        )
    return JSONResponse(content={"status": "ok", "database": "ok", "app": APP_NAME, "version": APP_VERSION})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=5000)
