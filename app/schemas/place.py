"""
Skenderaj Places Backend — Pydantic Request/Response Schemas
=============================================================

What:  The API contract for place records, uploads, errors and health.
Why:   Strict input validation at the boundary, camelCase JSON for clients,
       snake_case attributes for the service layer.
How:   Every model uses a camelCase alias generator. Input accepts either
       spelling; output is serialized by alias (FastAPI's default).

Images Contract:
    `images` is a list of URL strings. Multipart forms can only carry text,
    so a string value is accepted as a compatibility shim:
        '["a", "b"]'  → ["a", "b"]   (JSON list of strings)
        'http://x/1'  → ["http://x/1"] (not JSON: one URL)
        '42' / '{}'   → rejected      (JSON, but not a list of strings)
"""

import json
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def coerce_images(value: Any) -> Any:
    """Normalize a string `images` value; lists pass through untouched."""
    if not isinstance(value, str):
        return value
    if not value.strip():
        return []
    try:
        decoded = json.loads(value)
    except ValueError:
        return [value]
    if isinstance(decoded, list) and all(isinstance(item, str) for item in decoded):
        return decoded
    raise ValueError("images must be a list of URL strings")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlaceFields(CamelModel):
    """
    Input behaviour shared by create and update payloads.

    - Legacy clients send {"coordinates": {"latitude": .., "longitude": ..}};
      it is flattened into the top-level fields.
    - Multipart forms send "" for an empty coordinate; it means null.
    """

    @model_validator(mode="before")
    @classmethod
    def flatten_coordinates(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("coordinates"), dict):
            data = dict(data)
            coordinates = data.pop("coordinates")
            for key in ("latitude", "longitude"):
                if key in coordinates and key not in data:
                    data[key] = coordinates[key]
        return data

    @field_validator("latitude", "longitude", mode="before", check_fields=False)
    @classmethod
    def blank_coordinate_is_null(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("images", mode="before", check_fields=False)
    @classmethod
    def normalize_images(cls, v: Any) -> Any:
        return coerce_images(v)


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class PlaceCreate(PlaceFields):
    """
    What:  Payload for POST /places (JSON) and the multipart create variants.
    Note:  image_url is optional here because an uploaded file can supply it;
           PlaceService rejects a create that ends up without one.
    """
    name: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    location: str = Field(min_length=1, max_length=255)
    historical_significance: str = Field(min_length=1)
    image_url: Optional[str] = Field(default=None, min_length=1)
    images: List[str] = Field(default_factory=list)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class PlaceUpdate(PlaceFields):
    """
    What:  Sparse payload for PATCH /places/{id}.
    How:   Only fields the client actually sent are applied
           (model_dump(exclude_unset=True)); omitted fields keep their value.

    Clearing rules:
        - name, description, location, historical_significance, image_url
          cannot be null (the columns are required)
        - latitude / longitude accept null to clear
        - images accepts [] to clear
    """
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    historical_significance: Optional[str] = Field(default=None, min_length=1)
    image_url: Optional[str] = Field(default=None, min_length=1)
    images: Optional[List[str]] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    @field_validator(
        "name", "description", "location", "historical_significance", "image_url", "images"
    )
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("may not be null")
        return v

    def changes(self) -> dict:
        """Fields explicitly present in the request, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class PlaceResponse(CamelModel):
    """Full representation of a stored place (camelCase on the wire)."""
    id: int
    name: str
    description: str
    location: str
    historical_significance: str
    image_url: str
    images: List[str] = Field(default_factory=list)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    slug: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class MessageResponse(BaseModel):
    message: str = "OK"


class UploadResponse(CamelModel):
    """Returned by POST /upload/image."""
    message: str = "OK"
    image_url: str
    public_id: str


class ErrorResponse(BaseModel):
    """
    Standardized error body.

    Example:
        {
            "error": "not_found",
            "message": "Vendi nuk u gjet",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    media_host: str = Field(description="configured or not_configured")
    uptime_seconds: float
