"""Error taxonomy for the measure pipeline.

Every failure the API reports to a client is an instance of
``MeasureAPIError``.  Each subclass carries the HTTP status code and the
``error_code`` that ends up in the JSON body, so the routers never
build error responses by hand; ``app.api.error_handlers`` renders them.

Server-side failures (``status_code >= 500``) keep their detailed
message for the logs only; clients receive a generic description.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


GENERIC_SERVER_ERROR = "Internal server error"


class MeasureAPIError(Exception):
    """Base class for all errors raised by the measure services."""

    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"
    default_description: str = GENERIC_SERVER_ERROR

    def __init__(self, description: Optional[str] = None) -> None:
        self.description = description or self.default_description
        super().__init__(self.description)

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500

    def public_description(self) -> str:
        """Description safe to show to clients."""
        return GENERIC_SERVER_ERROR if self.is_server_error else self.description

    def to_body(self) -> Dict[str, Any]:
        return {"error_code": self.error_code, "error_description": self.public_description()}


# ---------------------------------------------------------------------------
# Client input (400)


class ClientInputError(MeasureAPIError):
    status_code = 400
    error_code = "INVALID_DATA"
    default_description = "The request data is invalid."


class InvalidDataError(ClientInputError):
    """Request body failed validation; ``messages`` lists every violation."""

    def __init__(self, messages: List[str]) -> None:
        self.messages = list(messages)
        super().__init__(" ".join(self.messages) or None)


class InvalidMeasureTypeError(ClientInputError):
    error_code = "INVALID_TYPE"
    default_description = "Measure type not allowed."


# ---------------------------------------------------------------------------
# Conflicts (409)


class ConflictError(MeasureAPIError):
    status_code = 409
    error_code = "CONFLICT"
    default_description = "The request conflicts with an existing record."


class DoubleReportError(ConflictError):
    error_code = "DOUBLE_REPORT"
    default_description = "A reading for this month has already been reported."


class ConfirmationDuplicateError(ConflictError):
    error_code = "CONFIRMATION_DUPLICATE"
    default_description = "This measure has already been confirmed."


# ---------------------------------------------------------------------------
# Not found (404)


class NotFoundError(MeasureAPIError):
    status_code = 404
    error_code = "NOT_FOUND"
    default_description = "Resource not found."


class MeasureNotFoundError(NotFoundError):
    error_code = "MEASURE_NOT_FOUND"
    default_description = "Measure not found."


class MeasuresNotFoundError(NotFoundError):
    error_code = "MISSING_MEASURES"
    default_description = "No measures found."


class ImageNotFoundError(NotFoundError):
    error_code = "IMAGE_NOT_FOUND"
    default_description = "Image not found."


# ---------------------------------------------------------------------------
# External vision service


class ExternalServiceError(MeasureAPIError):
    """Failure attributed to the reading extractor."""


class ExtractionUnavailableError(ExternalServiceError):
    """The vision service could not be reached or answered with an error."""


class ExtractionNoNumericResultError(ExternalServiceError):
    status_code = 400
    error_code = "INVALID_DATA"
    default_description = "No numeric reading could be extracted from the image."


class ExtractionOutOfRangeError(ExternalServiceError):
    status_code = 400
    error_code = "INVALID_DATA"
    default_description = "The extracted reading is out of the accepted range."


# ---------------------------------------------------------------------------
# Storage (500)


class StorageError(MeasureAPIError):
    """Any persistence-layer failure (database or image store)."""


class ImageStorageError(StorageError):
    pass
