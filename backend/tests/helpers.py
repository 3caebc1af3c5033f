"""Shared test doubles and payload builders."""

from __future__ import annotations

import base64

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR meter photo"


def data_uri(data: bytes = PNG_BYTES, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def upload_body(**overrides):
    body = {
        "image": data_uri(),
        "customer_code": "C1",
        "reading_datetime": "2024-03-15T00:00:00Z",
        "type": "WATER",
    }
    body.update(overrides)
    return body


class FakeExtractor:
    """Deterministic stand-in for the vision service."""

    def __init__(self, value: int = 1500, error: Exception | None = None):
        self.value = value
        self.error = error
        self.calls: list[tuple[bytes, str]] = []

    async def extract_reading(self, data: bytes, mime_type: str) -> int:
        self.calls.append((data, mime_type))
        if self.error is not None:
            raise self.error
        return self.value
