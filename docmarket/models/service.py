"""Catalog service model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text

from docmarket.database import Base


class Service(Base):
    """A service offered in the public catalog."""

    __tablename__ = "services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    long_description = Column(Text, nullable=True)
    image_path = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
