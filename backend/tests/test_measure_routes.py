from __future__ import annotations

import pytest

from app.core.errors import ExtractionOutOfRangeError, ExtractionUnavailableError
from helpers import data_uri, upload_body

UNKNOWN_ID = "0f8fad5b-d9cb-469f-a165-70867728950e"


def test_upload_success(client, fake_extractor):
    fake_extractor.value = 98765
    resp = client.post("/upload", json=upload_body())
    assert resp.status_code == 200
    body = resp.json()
    assert set(body) == {"measure_id", "value", "image_path"}
    assert body["value"] == 98765


def test_uploaded_image_round_trips(client):
    payload = b"\xff\xd8\xff\xe0 jpeg bytes \x00\x01\x02"
    resp = client.post("/upload", json=upload_body(image=data_uri(payload, "image/jpeg")))
    image_path = resp.json()["image_path"]

    image = client.get(image_path)
    assert image.status_code == 200
    assert image.content == payload
    assert image.headers["content-type"] == "image/jpeg"


def test_unknown_image_is_404(client):
    resp = client.get("/images/" + "a" * 32 + ".png")
    assert resp.status_code == 404
    assert resp.json()["error_code"] == "IMAGE_NOT_FOUND"


def test_upload_invalid_data(client, fake_extractor):
    resp = client.post("/upload", json=upload_body(type="ELECTRIC", customer_code=""))
    assert resp.status_code == 400
    body = resp.json()
    assert body["error_code"] == "INVALID_DATA"
    assert "type" in body["error_description"]
    assert "customer_code" in body["error_description"]
    assert fake_extractor.calls == []


def test_upload_malformed_json_is_invalid_data(client):
    resp = client.post("/upload", content=b"{not json", headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["error_code"] == "INVALID_DATA"


def test_upload_double_report_example(client):
    first = client.post("/upload", json=upload_body(reading_datetime="2024-03-15T00:00:00Z"))
    assert first.status_code == 200

    second = client.post("/upload", json=upload_body(reading_datetime="2024-03-28T00:00:00Z"))
    assert second.status_code == 409
    assert second.json()["error_code"] == "DOUBLE_REPORT"

    third = client.post("/upload", json=upload_body(reading_datetime="2024-04-01T00:00:00Z"))
    assert third.status_code == 200


def test_extraction_unavailable_is_opaque_500(client, fake_extractor):
    fake_extractor.error = ExtractionUnavailableError("upstream 429: api key sk-secret over quota")
    resp = client.post("/upload", json=upload_body())
    assert resp.status_code == 500
    assert resp.json() == {"error_code": "INTERNAL_SERVER_ERROR", "error_description": "Internal server error"}


def test_extraction_out_of_range_is_invalid_data(client, fake_extractor):
    fake_extractor.error = ExtractionOutOfRangeError()
    resp = client.post("/upload", json=upload_body())
    assert resp.status_code == 400
    assert resp.json()["error_code"] == "INVALID_DATA"
    assert client.get("/C1/list").status_code == 404


def test_confirm_example(client):
    measure_id = client.post("/upload", json=upload_body()).json()["measure_id"]

    resp = client.patch("/confirm", json={"measure_id": measure_id, "confirmed_value": 1234})
    assert resp.status_code == 200
    assert resp.json() == {"success": True}

    listed = client.get("/C1/list").json()["measures"]
    assert listed[0]["value"] == 1234 and listed[0]["confirmed"] is True

    again = client.patch("/confirm", json={"measure_id": measure_id, "confirmed_value": 1234})
    assert again.status_code == 409
    assert again.json()["error_code"] == "CONFIRMATION_DUPLICATE"


def test_confirm_not_found_and_invalid(client):
    resp = client.patch("/confirm", json={"measure_id": UNKNOWN_ID, "confirmed_value": 1})
    assert resp.status_code == 404
    assert resp.json()["error_code"] == "MEASURE_NOT_FOUND"

    resp = client.patch("/confirm", json={"measure_id": "abc", "confirmed_value": "12"})
    assert resp.status_code == 400
    assert resp.json()["error_code"] == "INVALID_DATA"


def test_list_measures(client):
    water = client.post("/upload", json=upload_body()).json()
    gas = client.post("/upload", json=upload_body(type="GAS")).json()

    resp = client.get("/C1/list")
    assert resp.status_code == 200
    body = resp.json()
    assert body["customer_code"] == "C1"
    assert [m["measure_id"] for m in body["measures"]] == [water["measure_id"], gas["measure_id"]]
    assert body["measures"][0]["image_path"] == water["image_path"]
    assert body["measures"][0]["confirmed"] is False

    only_water = client.get("/C1/list", params={"measure_type": "water"}).json()
    assert [m["type"] for m in only_water["measures"]] == ["WATER"]


def test_customer_named_images_can_list(client):
    uploaded = client.post("/upload", json=upload_body(customer_code="images"))
    assert uploaded.status_code == 200

    resp = client.get("/images/list")
    assert resp.status_code == 200
    assert [m["measure_id"] for m in resp.json()["measures"]] == [uploaded.json()["measure_id"]]
    assert client.get(uploaded.json()["image_path"]).status_code == 200


def test_list_returns_reading_datetime_with_client_offset(client):
    client.post("/upload", json=upload_body(reading_datetime="2024-03-31T23:30:00-03:00"))
    client.post("/upload", json=upload_body(reading_datetime="2024-03-10T08:00:00Z", type="GAS"))

    measures = client.get("/C1/list").json()["measures"]
    assert measures[0]["reading_datetime"] == "2024-03-31T23:30:00-03:00"
    assert measures[1]["reading_datetime"] == "2024-03-10T08:00:00Z"

    # still March for the monthly window
    again = client.post("/upload", json=upload_body(reading_datetime="2024-03-01T00:00:00Z"))
    assert again.json()["error_code"] == "DOUBLE_REPORT"


def test_list_errors(client):
    resp = client.get("/C9/list")
    assert resp.status_code == 404
    assert resp.json()["error_code"] == "MISSING_MEASURES"

    resp = client.get("/C9/list", params={"measure_type": "electric"})
    assert resp.status_code == 400
    assert resp.json()["error_code"] == "INVALID_TYPE"


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
    detailed = client.get("/health/detailed").json()
    assert detailed["services"] == {"database": "healthy", "storage": "healthy"}
    assert detailed["database"]["drivername"] == "sqlite+aiosqlite"


def test_production_requires_openai_key(settings, monkeypatch):
    from app.api.main import create_app

    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    production = settings.model_copy(update={"ENVIRONMENT": "production", "OPENAI_API_KEY": None})
    with pytest.raises(RuntimeError):
        create_app(production)



def test_app_creates_storage_only_on_startup(settings):
    from fastapi.testclient import TestClient

    from app.api.main import create_app

    app = create_app(settings)
    assert not settings.storage_path().exists()

    with TestClient(app):
        assert settings.storage_path().is_dir()
