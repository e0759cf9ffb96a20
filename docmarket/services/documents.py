"""Document service: catalog queries, admin CRUD and preview building."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from sqlalchemy import or_
from sqlalchemy.orm import Session

from docmarket.database import contains_pattern
from docmarket.errors import NotFound, ValidationError
from docmarket.models.document import DEFAULT_CATEGORY, Document
from docmarket.preview import (
    DEFAULT_OVERLAY,
    FRAME_HEIGHT_PX,
    TEXT_PREVIEW_LIMIT,
    Overlay,
    PreviewStrategy,
    classify,
    file_extension,
    truncate_text,
)
from docmarket.services.storage import StoredFile, UploadStorage, get_upload_storage

logger = logging.getLogger("docmarket")

ALL_CATEGORIES = "all"


@dataclass
class DocumentPreview:
    """Server-side description of how a document should be previewed."""

    document_id: int
    strategy: PreviewStrategy
    format: str
    file_url: str
    text: str | None = None
    frame_height: int = FRAME_HEIGHT_PX
    overlay: Overlay = field(default_factory=lambda: DEFAULT_OVERLAY)


class DocumentService:
    """Handles document listing, admin management and previews."""

    def __init__(self, storage: UploadStorage | None = None) -> None:
        self._storage = storage

    @property
    def storage(self) -> UploadStorage:
        return self._storage or get_upload_storage()

    def list_documents(self, db: Session, category: str | None = None, search: str | None = None) -> list[Document]:
        """List documents, newest first.

        ``category`` matches exactly (``all`` disables the filter); ``search``
        is a case-insensitive substring of title or description. Both filters
        combine with AND.
        """
        query = db.query(Document)
        if category and category != ALL_CATEGORIES:
            query = query.filter(Document.category == category)
        if search:
            pattern = contains_pattern(search)
            query = query.filter(
                or_(
                    Document.title.ilike(pattern, escape="\\"),
                    Document.description.ilike(pattern, escape="\\"),
                )
            )
        return query.order_by(Document.created_at.desc(), Document.id.desc()).all()

    def get_document(self, db: Session, document_id: int) -> Document:
        document = db.get(Document, document_id)
        if not document:
            raise NotFound("Document not found")
        return document

    def create_document(
        self,
        db: Session,
        title: str | None,
        description: str | None,
        document_file: StoredFile | None,
        thumbnail: StoredFile | None = None,
        preview_text: str | None = None,
        category: str | None = None,
    ) -> Document:
        if not title or not title.strip() or not description or not description.strip():
            raise ValidationError("Title and description are required")
        if document_file is None:
            raise ValidationError("Document file is required")

        document = Document(
            title=title.strip(),
            description=description,
            preview_text=preview_text or None,
            category=(category or "").strip() or DEFAULT_CATEGORY,
            document_path=document_file.public_path,
            thumbnail_path=thumbnail.public_path if thumbnail else None,
        )
        db.add(document)
        stored = {"document": document_file}
        if thumbnail:
            stored["thumbnail"] = thumbnail
        self.storage.commit_replacing(db, stored, [])
        db.refresh(document)
        logger.info("Document created: id=%s category=%s", document.id, document.category)
        return document

    def update_document(
        self,
        db: Session,
        document: Document,
        title: str | None = None,
        description: str | None = None,
        preview_text: str | None = None,
        category: str | None = None,
        document_file: StoredFile | None = None,
        thumbnail: StoredFile | None = None,
    ) -> Document:
        """Apply a partial update. ``None`` leaves a field or file untouched.

        Replaced files are deleted only after the row points at the new ones.
        """
        if title is not None:
            if not title.strip():
                raise ValidationError("Title cannot be empty")
            document.title = title.strip()
        if description is not None:
            if not description.strip():
                raise ValidationError("Description cannot be empty")
            document.description = description
        if preview_text is not None:
            document.preview_text = preview_text or None
        if category is not None:
            document.category = category.strip() or DEFAULT_CATEGORY

        previous: list[str | None] = []
        stored: dict[str, StoredFile] = {}
        if document_file:
            previous.append(document.document_path)
            document.document_path = document_file.public_path
            stored["document"] = document_file
        if thumbnail:
            previous.append(document.thumbnail_path)
            document.thumbnail_path = thumbnail.public_path
            stored["thumbnail"] = thumbnail

        self.storage.commit_replacing(db, stored, previous)
        db.refresh(document)
        return document

    def delete_document(self, db: Session, document: Document) -> None:
        """Delete the row, then the document and thumbnail files."""
        document_id = document.id
        paths = (document.document_path, document.thumbnail_path)
        db.delete(document)
        db.commit()
        for public_path in paths:
            if public_path:
                self.storage.remove(public_path)
        logger.info("Document deleted: id=%s", document_id)

    def file_path(self, document: Document) -> Path:
        """Disk location of the document file. Raises NotFound if it is gone."""
        path = self.storage.resolve(document.document_path)
        if path is None or not path.is_file():
            raise NotFound("Document file not found")
        return path

    def build_preview(self, document: Document) -> DocumentPreview:
        """Classify the document and, for text files, read the truncated excerpt."""
        strategy = classify(document.document_path)
        preview = DocumentPreview(
            document_id=document.id,
            strategy=strategy,
            format=file_extension(document.document_path).upper(),
            file_url=document.document_path,
        )
        if strategy is PreviewStrategy.TEXT:
            path = self.file_path(document)
            with open(path, encoding="utf-8", errors="replace") as f:
                preview.text = truncate_text(f.read(TEXT_PREVIEW_LIMIT + 1))
        return preview


_document_service: DocumentService | None = None


def get_document_service() -> DocumentService:
    """Get singleton document service instance."""
    global _document_service
    if _document_service is None:
        _document_service = DocumentService()
    return _document_service
