"""Document model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text

from docmarket.database import Base

DEFAULT_CATEGORY = "other"


class Document(Base):
    """Previewable document sold through the marketplace."""

    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    preview_text = Column(Text, nullable=True)
    category = Column(String(50), nullable=False, default=DEFAULT_CATEGORY, index=True)
    document_path = Column(String(255), nullable=False)
    thumbnail_path = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
