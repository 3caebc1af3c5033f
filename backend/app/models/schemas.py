"""Pydantic schemas for commands and API responses.

Commands (``UploadCommand``, ``ConfirmCommand``) are the normalised,
typed values produced by ``app.services.validation`` once a raw request
body has passed every check.  Response models describe exactly what the
routers return.  They are intentionally separate from the ORM models so
the stored shape and the exposed shape can evolve independently.
"""

from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from .enums import ImageMimeType, MeasureType


# ---------------------------------------------------------------------------
# Commands


class UploadCommand(BaseModel):
    """A validated upload request."""

    model_config = ConfigDict(frozen=True)

    image: bytes
    mime_type: ImageMimeType
    customer_code: str
    reading_datetime: datetime
    type: MeasureType


class ConfirmCommand(BaseModel):
    """A validated confirmation request."""

    model_config = ConfigDict(frozen=True)

    measure_id: str
    confirmed_value: int


# ---------------------------------------------------------------------------
# API responses


class UploadResponse(BaseModel):
    measure_id: str
    value: int
    image_path: str


class ConfirmResponse(BaseModel):
    success: bool = True


class MeasureRead(BaseModel):
    """A measure as listed for a customer."""

    measure_id: str
    reading_datetime: datetime
    type: MeasureType
    value: int
    confirmed: bool
    image_path: str


class MeasureListResponse(BaseModel):
    customer_code: str
    measures: List[MeasureRead] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error_code: str
    error_description: str
