"""Pydantic schemas for document endpoints."""

from datetime import datetime

from pydantic import BaseModel


class DocumentResponse(BaseModel):
    id: int
    title: str
    description: str
    preview_text: str | None
    category: str
    document_path: str
    thumbnail_path: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DocumentListResponse(BaseModel):
    documents: list[DocumentResponse]


class DocumentEnvelope(BaseModel):
    document: DocumentResponse


class DocumentMutationResponse(BaseModel):
    message: str
    document: DocumentResponse


class OverlayResponse(BaseModel):
    coverage: float
    gradient: str
    message: str
    call_to_action: str


class DocumentPreviewResponse(BaseModel):
    document_id: int
    strategy: str
    format: str
    file_url: str
    text: str | None = None
    frame_height: int
    overlay: OverlayResponse
