"""Catalog service API endpoints."""

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from docmarket.database import get_db
from docmarket.dependencies import CurrentUser, require_admin
from docmarket.schemas.auth import MessageResponse
from docmarket.schemas.service import (
    ServiceEnvelope,
    ServiceListResponse,
    ServiceMutationResponse,
    ServiceResponse,
)
from docmarket.services.catalog import get_service_catalog
from docmarket.services.storage import IMAGE_POLICY

router = APIRouter(prefix="/api/services", tags=["Services"])


@router.get("", response_model=ServiceListResponse)
def list_services(search: str | None = None, db: Session = Depends(get_db)) -> ServiceListResponse:
    """List catalog services."""
    services = get_service_catalog().list_services(db, search=search)
    return ServiceListResponse(services=[ServiceResponse.model_validate(s) for s in services])


@router.get("/{service_id}", response_model=ServiceEnvelope)
def get_service(service_id: int, db: Session = Depends(get_db)) -> ServiceEnvelope:
    """Get a single service by ID."""
    service = get_service_catalog().get_service(db, service_id)
    return ServiceEnvelope(service=ServiceResponse.model_validate(service))


@router.post("", response_model=ServiceMutationResponse, status_code=201)
async def create_service(
    title: str | None = Form(None),
    description: str | None = Form(None),
    long_description: str | None = Form(None),
    image: UploadFile | None = File(None),
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ServiceMutationResponse:
    """Create a service, with an optional image."""
    catalog = get_service_catalog()
    stored = await catalog.storage.store_all([(image, IMAGE_POLICY)])
    with catalog.storage.cleanup_on_error(stored):
        service = catalog.create_service(
            db,
            title=title,
            description=description,
            long_description=long_description,
            image=stored.get("image"),
        )
    return ServiceMutationResponse(
        message="Service created successfully",
        service=ServiceResponse.model_validate(service),
    )


@router.put("/{service_id}", response_model=ServiceMutationResponse)
async def update_service(
    service_id: int,
    title: str | None = Form(None),
    description: str | None = Form(None),
    long_description: str | None = Form(None),
    image: UploadFile | None = File(None),
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ServiceMutationResponse:
    """Update the supplied fields of a service; a new image replaces the old one."""
    catalog = get_service_catalog()
    service = catalog.get_service(db, service_id)
    stored = await catalog.storage.store_all([(image, IMAGE_POLICY)])
    with catalog.storage.cleanup_on_error(stored):
        service = catalog.update_service(
            db,
            service,
            title=title,
            description=description,
            long_description=long_description,
            image=stored.get("image"),
        )
    return ServiceMutationResponse(
        message="Service updated successfully",
        service=ServiceResponse.model_validate(service),
    )


@router.delete("/{service_id}", response_model=MessageResponse)
def delete_service(
    service_id: int,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> MessageResponse:
    """Delete a service and its image."""
    catalog = get_service_catalog()
    service = catalog.get_service(db, service_id)
    catalog.delete_service(db, service)
    return MessageResponse(message="Service deleted successfully")
