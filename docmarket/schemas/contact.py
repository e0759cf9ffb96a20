"""Pydantic schemas for the contact form."""

from pydantic import BaseModel, Field


class ContactRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=255)
    subject: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1, max_length=10000)


class ContactResponse(BaseModel):
    success: bool
    message: str
