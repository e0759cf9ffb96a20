"""Document API endpoints."""

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from docmarket.database import get_db
from docmarket.dependencies import CurrentUser, require_admin
from docmarket.errors import ValidationError
from docmarket.schemas.auth import MessageResponse
from docmarket.schemas.document import (
    DocumentEnvelope,
    DocumentListResponse,
    DocumentMutationResponse,
    DocumentPreviewResponse,
    DocumentResponse,
    OverlayResponse,
)
from docmarket.services.documents import get_document_service
from docmarket.services.storage import DOCUMENT_POLICY, THUMBNAIL_POLICY, has_upload

router = APIRouter(prefix="/api/documents", tags=["Documents"])


@router.get("", response_model=DocumentListResponse)
def list_documents(
    category: str | None = None,
    search: str | None = None,
    db: Session = Depends(get_db),
) -> DocumentListResponse:
    """List documents filtered by exact category and/or a title/description search."""
    documents = get_document_service().list_documents(db, category=category, search=search)
    return DocumentListResponse(documents=[DocumentResponse.model_validate(d) for d in documents])


@router.get("/{document_id}", response_model=DocumentEnvelope)
def get_document(document_id: int, db: Session = Depends(get_db)) -> DocumentEnvelope:
    """Get a single document by ID."""
    document = get_document_service().get_document(db, document_id)
    return DocumentEnvelope(document=DocumentResponse.model_validate(document))


@router.get("/{document_id}/download")
def download_document(document_id: int, db: Session = Depends(get_db)) -> FileResponse:
    """Send the stored document file."""
    service = get_document_service()
    document = service.get_document(db, document_id)
    path = service.file_path(document)
    return FileResponse(path, filename=path.name)


@router.get("/{document_id}/preview", response_model=DocumentPreviewResponse)
def preview_document(document_id: int, db: Session = Depends(get_db)) -> DocumentPreviewResponse:
    """Describe how the document is previewed; text documents include the truncated excerpt."""
    service = get_document_service()
    preview = service.build_preview(service.get_document(db, document_id))
    return DocumentPreviewResponse(
        document_id=preview.document_id,
        strategy=preview.strategy.value,
        format=preview.format,
        file_url=preview.file_url,
        text=preview.text,
        frame_height=preview.frame_height,
        overlay=OverlayResponse(**preview.overlay.to_dict()),
    )


@router.post("", response_model=DocumentMutationResponse, status_code=201)
async def create_document(
    title: str | None = Form(None),
    description: str | None = Form(None),
    preview_text: str | None = Form(None),
    category: str | None = Form(None),
    document: UploadFile | None = File(None),
    thumbnail: UploadFile | None = File(None),
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> DocumentMutationResponse:
    """Create a document. The ``document`` file is required, ``thumbnail`` is optional."""
    if not has_upload(document):
        raise ValidationError("Document file is required")

    service = get_document_service()
    stored = await service.storage.store_all([(document, DOCUMENT_POLICY), (thumbnail, THUMBNAIL_POLICY)])
    with service.storage.cleanup_on_error(stored):
        record = service.create_document(
            db,
            title=title,
            description=description,
            document_file=stored.get("document"),
            thumbnail=stored.get("thumbnail"),
            preview_text=preview_text,
            category=category,
        )
    return DocumentMutationResponse(
        message="Document created successfully",
        document=DocumentResponse.model_validate(record),
    )


@router.put("/{document_id}", response_model=DocumentMutationResponse)
async def update_document(
    document_id: int,
    title: str | None = Form(None),
    description: str | None = Form(None),
    preview_text: str | None = Form(None),
    category: str | None = Form(None),
    document: UploadFile | None = File(None),
    thumbnail: UploadFile | None = File(None),
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> DocumentMutationResponse:
    """Update the supplied fields of a document; uploaded files replace the old ones."""
    service = get_document_service()
    record = service.get_document(db, document_id)
    stored = await service.storage.store_all([(document, DOCUMENT_POLICY), (thumbnail, THUMBNAIL_POLICY)])
    with service.storage.cleanup_on_error(stored):
        record = service.update_document(
            db,
            record,
            title=title,
            description=description,
            preview_text=preview_text,
            category=category,
            document_file=stored.get("document"),
            thumbnail=stored.get("thumbnail"),
        )
    return DocumentMutationResponse(
        message="Document updated successfully",
        document=DocumentResponse.model_validate(record),
    )


@router.delete("/{document_id}", response_model=MessageResponse)
def delete_document(
    document_id: int,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> MessageResponse:
    """Delete a document together with its document and thumbnail files."""
    service = get_document_service()
    record = service.get_document(db, document_id)
    service.delete_document(db, record)
    return MessageResponse(message="Document deleted successfully")
