"""
Medication API - Pydantic Request/Response Schemas
==================================================

What:  The JSON contract of the /medications endpoints.
How:   FastAPI decodes request bodies into MedicationInput and serializes
       MedicationResponse by alias, so `image_url` travels as `imageUrl`.

Schemas are separate from the stored document model: the input schema has
no `id` at all, so an identifier can never be taken from a request body.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from medication_api.models.medication import MedicationDocument


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class MedicationInput(BaseModel):
    """
    What:  Body of POST /medications and PUT /medications/{id}.

    Only type decoding happens here, and it is strict: strings must be JSON
    strings and `price` a finite JSON number. Booleans, numeric strings,
    NaN and Infinity are rejected. Every field has a zero-value default,
    so `{}` is a valid create payload and an update that omits a field
    writes that default. Unknown keys (including `id` and `_id`) are ignored.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        strict=True,
        allow_inf_nan=False,
    )

    name: str = Field(default="", description="Medication name")
    description: str = Field(default="", description="Free-text description")
    price: float = Field(default=0.0, description="Unit price")
    image_url: str = Field(default="", alias="imageUrl", description="Image URL")

    def to_document(self) -> MedicationDocument:
        return MedicationDocument(
            name=self.name,
            description=self.description,
            price=self.price,
            image_url=self.image_url,
        )


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class MedicationResponse(BaseModel):
    """
    What:  External representation of one medication record.
    Who:   Returned by every single-record endpoint and as list items.

    Example:
        {
            "id": "65a1f0c2e4b0a1b2c3d4e5f6",
            "name": "Aspirin",
            "description": "Pain relief",
            "price": 4.5,
            "imageUrl": "http://x/a.png"
        }
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="Server-assigned identifier (24-char hex ObjectId)")
    name: str = Field(description="Medication name")
    description: str = Field(description="Free-text description")
    price: float = Field(description="Unit price")
    image_url: str = Field(alias="imageUrl", description="Image URL")

    @classmethod
    def from_document(cls, document: MedicationDocument) -> "MedicationResponse":
        return cls(
            id=str(document.id),
            name=document.name,
            description=document.description,
            price=document.price,
            image_url=document.image_url,
        )


# ══════════════════════════════════════════════════════════════════════════
# Error & Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "bad_request", "not_found")
        message: Short human-readable description
        request_id: Correlation ID for tracing this error in server logs
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and container health checks."""

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="MongoDB connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
