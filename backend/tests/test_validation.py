from __future__ import annotations

import datetime as dt

from app.models.enums import ImageMimeType, MeasureType
from app.services.validation import validate_confirm, validate_measure_type, validate_upload
from helpers import PNG_BYTES, data_uri, upload_body

MEASURE_ID = "0f8fad5b-d9cb-469f-a165-70867728950e"


def test_valid_upload_is_normalised():
    result = validate_upload(upload_body(type="GAS", image=data_uri(mime="image/jpeg")))
    assert result.ok
    command = result.value
    assert command.image == PNG_BYTES
    assert command.mime_type is ImageMimeType.JPEG
    assert command.type is MeasureType.GAS
    assert command.reading_datetime == dt.datetime(2024, 3, 15, tzinfo=dt.timezone.utc)


def test_upload_reports_every_violation():
    result = validate_upload({"image": "nope", "customer_code": 12, "reading_datetime": "yesterday", "type": "water"})
    assert not result.ok
    fields = [msg.split(":", 1)[0] for msg in result.errors]
    assert fields == ["image", "customer_code", "reading_datetime", "type"]


def test_upload_missing_fields():
    result = validate_upload({})
    assert not result.ok
    assert len(result.errors) == 4


def test_upload_rejects_unsupported_mime_type():
    result = validate_upload(upload_body(image=data_uri(mime="image/gif")))
    assert not result.ok
    assert any("unsupported mime type" in e for e in result.errors)


def test_upload_accepts_every_supported_mime_type():
    for mime in ("image/png", "image/jpeg", "image/webp", "image/heic", "image/heif"):
        assert validate_upload(upload_body(image=data_uri(mime=mime))).ok, mime


def test_upload_rejects_invalid_base64():
    result = validate_upload(upload_body(image="data:image/png;base64,@@@not-base64@@@"))
    assert result.errors == ["image: a valid base64 image must be provided."]


def test_upload_rejects_empty_customer_code():
    result = validate_upload(upload_body(customer_code="  "))
    assert result.errors == ["customer_code: the customer code must not be empty."]


def test_upload_body_must_be_object():
    assert validate_upload(["not", "an", "object"]).errors == ["body: a JSON object is required."]


def test_valid_confirm():
    result = validate_confirm({"measure_id": MEASURE_ID.upper(), "confirmed_value": 1234})
    assert result.ok
    assert result.value.measure_id == MEASURE_ID
    assert result.value.confirmed_value == 1234


def test_confirm_accepts_integral_float():
    assert validate_confirm({"measure_id": MEASURE_ID, "confirmed_value": 12.0}).value.confirmed_value == 12


def test_confirm_rejects_bad_values():
    for bad in (1.5, "12", True, None, 2147483647, -2147483648):
        result = validate_confirm({"measure_id": MEASURE_ID, "confirmed_value": bad})
        assert not result.ok, bad


def test_confirm_rejects_bad_uuid():
    result = validate_confirm({"measure_id": "1234", "confirmed_value": 1})
    assert result.errors == ["measure_id: the measure id is not a valid UUID."]


def test_measure_type_filter_is_case_insensitive():
    assert validate_measure_type("water").value is MeasureType.WATER
    assert validate_measure_type("Gas").value is MeasureType.GAS
    no_filter = validate_measure_type(None)
    assert no_filter.errors == [] and no_filter.value is None
    assert validate_measure_type("electric").errors
