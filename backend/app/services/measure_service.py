"""Measure ingestion and confirmation pipeline.

``MeasureService`` composes the validator, duplicate detector, reading
extractor, image store and repository into the three flows exposed by
the API:

* **upload** - validate, reject a second reading in the same month,
  extract the reading, store the image, then record the measure.  The
  image is written before the record, so a visible measure never points
  at a missing image.  Any failing step aborts the flow and no measure
  is recorded.
* **confirm** - validate, look the measure up, refuse it if already
  confirmed, then overwrite the value and set ``confirmed``.  The write
  is a compare-and-set so two concurrent confirmations cannot both win.
* **list** - a filtered read; an empty result is a not-found condition.

Committed steps are not rolled back if the client goes away mid-flow.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from starlette.concurrency import run_in_threadpool

from app.core.errors import (
    ConfirmationDuplicateError,
    DoubleReportError,
    InvalidDataError,
    InvalidMeasureTypeError,
    MeasureNotFoundError,
    MeasuresNotFoundError,
)
from app.core.observability import sentry_breadcrumb
from app.models.schemas import (
    ConfirmResponse,
    MeasureListResponse,
    MeasureRead,
    UploadResponse,
)
from app.models.tables import Measure
from app.services.duplicate_detector import DuplicateDetector
from app.services.extraction_service import ReadingExtractor
from app.services.measure_repository import MeasureRepository
from app.services.storage_service import ImageStore
from app.services.validation import validate_confirm, validate_measure_type, validate_upload

logger = logging.getLogger(__name__)


class MeasureService:
    """Orchestrates the upload, confirm and list flows for one request."""

    def __init__(
        self,
        repository: MeasureRepository,
        extractor: ReadingExtractor,
        image_store: ImageStore,
        detector: Optional[DuplicateDetector] = None,
    ) -> None:
        self.repository = repository
        self.extractor = extractor
        self.image_store = image_store
        self.detector = detector or DuplicateDetector(repository)

    async def upload(self, body: Any) -> UploadResponse:
        validation = validate_upload(body)
        if not validation.ok:
            raise InvalidDataError(validation.errors)
        command = validation.value
        sentry_breadcrumb("measures", "upload.validated", data={"type": command.type.value})

        conflict = await self.detector.find_conflict(command.customer_code, command.type, command.reading_datetime)
        if conflict is not None:
            raise DoubleReportError()
        sentry_breadcrumb("measures", "upload.duplicate_checked")

        value = await self.extractor.extract_reading(command.image, command.mime_type.value)
        sentry_breadcrumb("measures", "upload.extracted")

        image_name = await run_in_threadpool(self.image_store.save, command.image, command.mime_type.extension)
        sentry_breadcrumb("measures", "upload.image_persisted", data={"image": image_name})

        measure = await self.repository.create(
            customer_code=command.customer_code,
            measure_type=command.type,
            reading_datetime=command.reading_datetime,
            value=value,
            image_name=image_name,
        )
        logger.info(
            "[measures] recorded measure=%s customer=%s type=%s value=%d",
            measure.id, measure.customer_code, command.type.value, value,
        )
        return UploadResponse(
            measure_id=measure.id,
            value=measure.value,
            image_path=self.image_store.image_path(image_name),
        )

    async def confirm(self, body: Any) -> ConfirmResponse:
        validation = validate_confirm(body)
        if not validation.ok:
            raise InvalidDataError(validation.errors)
        command = validation.value

        measure = await self.repository.get(command.measure_id)
        if measure is None:
            raise MeasureNotFoundError()
        if measure.confirmed:
            raise ConfirmationDuplicateError()
        extracted_value = measure.value

        changed = await self.repository.update(
            command.measure_id,
            confirmed=True,
            value=command.confirmed_value,
            expect_unconfirmed=True,
        )
        if not changed:
            # Another request confirmed it between the read and the write.
            raise ConfirmationDuplicateError()
        sentry_breadcrumb("measures", "confirm.updated")
        logger.info(
            "[measures] confirmed measure=%s value=%d (extracted %d)",
            command.measure_id, command.confirmed_value, extracted_value,
        )
        return ConfirmResponse(success=True)

    async def list_measures(self, customer_code: str, measure_type: Optional[str] = None) -> MeasureListResponse:
        validation = validate_measure_type(measure_type)
        if validation.errors:
            raise InvalidMeasureTypeError()

        measures = await self.repository.list_by_customer(customer_code, validation.value)
        if not measures:
            raise MeasuresNotFoundError()
        return MeasureListResponse(
            customer_code=customer_code,
            measures=[self._to_read(m) for m in measures],
        )

    def _to_read(self, measure: Measure) -> MeasureRead:
        return MeasureRead(
            measure_id=measure.id,
            reading_datetime=measure.client_reading_datetime,
            type=measure.type,
            value=measure.value,
            confirmed=measure.confirmed,
            image_path=self.image_store.image_path(measure.image_name),
        )
