"""API routers."""

from docmarket.routers.contact import router as contact_router
from docmarket.routers.documents import router as documents_router
from docmarket.routers.services import router as services_router
from docmarket.routers.users import router as users_router

__all__ = ["users_router", "services_router", "documents_router", "contact_router"]
