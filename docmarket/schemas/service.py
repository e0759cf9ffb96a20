"""Pydantic schemas for catalog service endpoints."""

from datetime import datetime

from pydantic import BaseModel


class ServiceResponse(BaseModel):
    id: int
    title: str
    description: str
    long_description: str | None
    image_path: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ServiceListResponse(BaseModel):
    services: list[ServiceResponse]


class ServiceEnvelope(BaseModel):
    service: ServiceResponse


class ServiceMutationResponse(BaseModel):
    message: str
    service: ServiceResponse
