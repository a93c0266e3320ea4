"""
Platebase — Pydantic Request/Response Schemas
===============================================

What:  Pydantic models defining the API contract and the service-layer
       input types.
How:   Route handlers build the input models from form fields; services
       return the response models, which FastAPI serializes to JSON.

Design Decision:
    Schemas are separate from SQLAlchemy models because the wire form of a
    dish differs from its stored form: the photo is raw bytes in the table
    but base64 text (or a data URI) in every response.
"""

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Input Models — what the service layer accepts
# ══════════════════════════════════════════════════════════════════════════


class PhotoUpload(BaseModel):
    """An uploaded photo file as received from the multipart request."""
    filename: str = Field(default="", description="Client-side filename")
    content_type: Optional[str] = Field(default=None, description="Declared MIME type")
    content: bytes = Field(description="Raw file bytes")

    @property
    def size(self) -> int:
        return len(self.content)


class DishInput(BaseModel):
    """
    Field set accepted by the validator.

    None means "not provided"; in partial updates such fields are left
    untouched on the stored record.
    """
    name: Optional[str] = None
    price: Optional[Decimal] = None
    photo: Optional[PhotoUpload] = None


# ══════════════════════════════════════════════════════════════════════════
# Response Models — what the API returns to clients
# ══════════════════════════════════════════════════════════════════════════


class DishResponse(BaseModel):
    """
    What:  Dish as returned by every endpoint.
    Photo: bare base64 for list/create/update, data URI for the detail
           endpoint, null when the dish has no photo.
    """
    id: int = Field(description="Store-assigned dish identifier")
    name: str = Field(description="Dish name")
    price: Decimal = Field(description="Dish price")
    photo: Optional[str] = Field(default=None, description="Encoded photo or null")

    model_config = {"from_attributes": True}


class DishMutationResponse(BaseModel):
    """Returned by POST /dishes (201) and PUT /dishes/{id} (200)."""
    status: bool = Field(default=True)
    message: str = Field(description="Human-readable success message")
    dish: DishResponse


class MessageResponse(BaseModel):
    """Plain message body, used by DELETE /dishes/{id} and 404 responses."""
    message: str


# ══════════════════════════════════════════════════════════════════════════
# Error Response Models
# ══════════════════════════════════════════════════════════════════════════


class ValidationErrorResponse(BaseModel):
    """
    422 body. Every violated rule is listed, grouped by field:
        {"status": false, "message": {"price": ["The price field is required."]}}
    """
    status: bool = False
    message: Dict[str, List[str]]


class ErrorResponse(BaseModel):
    """500 body: {"status": false, "message": "<error text>"}"""
    status: bool = False
    message: str


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
