"""Request validation for the measure endpoints.

One explicit function per request shape.  Each returns a
``ValidationResult``: either ``ok`` with the normalised command, or a
list of human-readable messages, one per violated field constraint.
Every field is checked, so a client gets all problems at once.

Validation is pure; nothing here touches the database, the image store
or the vision service.  Business-level failures (an unknown enum value,
a malformed UUID) are reported here, never further downstream.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Generic, List, Mapping, Optional, TypeVar

from app.models.enums import ImageMimeType, MeasureType
from app.models.schemas import ConfirmCommand, UploadCommand
from app.utils.helpers import decode_base64, is_int32_open, parse_iso_datetime, split_data_uri

T = TypeVar("T")

UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")

_ACCEPTED_MIME_TYPES = {m.value: m for m in ImageMimeType}
_MEASURE_TYPES = {t.value: t for t in MeasureType}


@dataclass
class ValidationResult(Generic[T]):
    """Outcome of validating one request body."""

    value: Optional[T] = None
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors and self.value is not None

    @classmethod
    def success(cls, value: T) -> "ValidationResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, errors: List[str]) -> "ValidationResult[T]":
        return cls(errors=list(errors))


def _check_image(raw: Any, errors: List[str]) -> tuple[Optional[bytes], Optional[ImageMimeType]]:
    if not isinstance(raw, str) or not raw.strip():
        errors.append("image: a base64 data URI image must be provided.")
        return None, None
    parts = split_data_uri(raw)
    if parts is None:
        errors.append("image: must be a data URI in the form data:<mime>;base64,<payload>.")
        return None, None
    mime, payload = parts
    mime_type = _ACCEPTED_MIME_TYPES.get(mime)
    if mime_type is None:
        accepted = ", ".join(sorted(_ACCEPTED_MIME_TYPES))
        errors.append(f"image: unsupported mime type '{mime}' (accepted: {accepted}).")
    data = decode_base64(payload)
    if data is None:
        errors.append("image: a valid base64 image must be provided.")
    return data, mime_type


def validate_upload(body: Any) -> ValidationResult[UploadCommand]:
    """Validate an upload body.

    Expected keys: ``image``, ``customer_code``, ``reading_datetime``, ``type``.
    """
    if not isinstance(body, Mapping):
        return ValidationResult.failure(["body: a JSON object is required."])

    errors: List[str] = []
    data, mime_type = _check_image(body.get("image"), errors)

    customer_code = body.get("customer_code")
    if not isinstance(customer_code, str):
        errors.append("customer_code: the customer code must be a string.")
    elif not customer_code.strip():
        errors.append("customer_code: the customer code must not be empty.")

    raw_datetime = body.get("reading_datetime")
    reading_datetime = parse_iso_datetime(raw_datetime) if isinstance(raw_datetime, str) else None
    if reading_datetime is None:
        errors.append("reading_datetime: must be an ISO-8601 datetime string.")

    raw_type = body.get("type")
    measure_type = _MEASURE_TYPES.get(raw_type) if isinstance(raw_type, str) else None
    if measure_type is None:
        errors.append("type: invalid measure type (expected WATER or GAS).")

    if errors:
        return ValidationResult.failure(errors)
    return ValidationResult.success(
        UploadCommand(
            image=data,
            mime_type=mime_type,
            customer_code=customer_code,
            reading_datetime=reading_datetime,
            type=measure_type,
        )
    )


def _coerce_int(raw: Any) -> Optional[int]:
    # bool is an int subclass; JSON true/false is not a reading.
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    return None


def validate_confirm(body: Any) -> ValidationResult[ConfirmCommand]:
    """Validate a confirmation body (``measure_id``, ``confirmed_value``)."""
    if not isinstance(body, Mapping):
        return ValidationResult.failure(["body: a JSON object is required."])

    errors: List[str] = []
    measure_id = body.get("measure_id")
    if not isinstance(measure_id, str):
        errors.append("measure_id: the measure id must be a string.")
    elif not UUID_RE.match(measure_id):
        errors.append("measure_id: the measure id is not a valid UUID.")

    confirmed_value = _coerce_int(body.get("confirmed_value"))
    if confirmed_value is None:
        errors.append("confirmed_value: the confirmed value must be an integer.")
    elif not is_int32_open(confirmed_value):
        errors.append("confirmed_value: the confirmed value is out of range.")

    if errors:
        return ValidationResult.failure(errors)
    return ValidationResult.success(ConfirmCommand(measure_id=measure_id.lower(), confirmed_value=confirmed_value))


def validate_measure_type(raw: Optional[str]) -> ValidationResult[Optional[MeasureType]]:
    """Validate the optional list filter; case-insensitive.

    ``None`` or an empty string means "no filter" and is reported as a
    success whose ``value`` is ``None``, so check ``errors`` rather than
    ``ok`` here.
    """
    if raw is None or not raw.strip():
        return ValidationResult()
    measure_type = _MEASURE_TYPES.get(raw.strip().upper())
    if measure_type is None:
        return ValidationResult.failure([f"measure_type: '{raw}' is not a valid measure type."])
    return ValidationResult.success(measure_type)
