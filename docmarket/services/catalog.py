"""Service catalog: CRUD for the services offered on the site."""

import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from docmarket.database import contains_pattern
from docmarket.errors import NotFound, ValidationError
from docmarket.models.service import Service
from docmarket.services.storage import StoredFile, UploadStorage, get_upload_storage

logger = logging.getLogger("docmarket")


class ServiceCatalog:
    """Handles listing and admin management of catalog services."""

    def __init__(self, storage: UploadStorage | None = None) -> None:
        self._storage = storage

    @property
    def storage(self) -> UploadStorage:
        return self._storage or get_upload_storage()

    def list_services(self, db: Session, search: str | None = None) -> list[Service]:
        """List services, newest first, optionally filtered by a title/description substring."""
        query = db.query(Service)
        if search:
            pattern = contains_pattern(search)
            query = query.filter(
                or_(
                    Service.title.ilike(pattern, escape="\\"),
                    Service.description.ilike(pattern, escape="\\"),
                )
            )
        return query.order_by(Service.created_at.desc(), Service.id.desc()).all()

    def get_service(self, db: Session, service_id: int) -> Service:
        service = db.get(Service, service_id)
        if not service:
            raise NotFound("Service not found")
        return service

    def create_service(
        self,
        db: Session,
        title: str | None,
        description: str | None,
        long_description: str | None = None,
        image: StoredFile | None = None,
    ) -> Service:
        if not title or not title.strip() or not description or not description.strip():
            raise ValidationError("Title and description are required")

        service = Service(
            title=title.strip(),
            description=description,
            long_description=long_description or description,
            image_path=image.public_path if image else None,
        )
        db.add(service)
        self.storage.commit_replacing(db, {"image": image} if image else {}, [])
        db.refresh(service)
        logger.info("Service created: id=%s", service.id)
        return service

    def update_service(
        self,
        db: Session,
        service: Service,
        title: str | None = None,
        description: str | None = None,
        long_description: str | None = None,
        image: StoredFile | None = None,
    ) -> Service:
        """Apply a partial update. ``None`` leaves a field untouched."""
        if title is not None:
            if not title.strip():
                raise ValidationError("Title cannot be empty")
            service.title = title.strip()
        if description is not None:
            if not description.strip():
                raise ValidationError("Description cannot be empty")
            service.description = description
        if long_description is not None:
            service.long_description = long_description or None

        previous: list[str | None] = []
        stored: dict[str, StoredFile] = {}
        if image:
            previous.append(service.image_path)
            service.image_path = image.public_path
            stored["image"] = image

        self.storage.commit_replacing(db, stored, previous)
        db.refresh(service)
        return service

    def delete_service(self, db: Session, service: Service) -> None:
        """Delete the row, then its image."""
        service_id, image_path = service.id, service.image_path
        db.delete(service)
        db.commit()
        self.storage.remove(image_path)
        logger.info("Service deleted: id=%s", service_id)


_service_catalog: ServiceCatalog | None = None


def get_service_catalog() -> ServiceCatalog:
    """Get singleton service catalog instance."""
    global _service_catalog
    if _service_catalog is None:
        _service_catalog = ServiceCatalog()
    return _service_catalog
