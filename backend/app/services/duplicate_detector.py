"""Monthly duplicate detection for uploads.

A customer may report one reading per meter type per calendar month.
The month runs from its first instant (inclusive) to the first instant
of the next month (exclusive) in the timestamp's own representation;
the offset the client sent is kept as is, never converted to UTC.

This is a read-only fast path.  Two concurrent uploads can both pass
it; the unique constraint on ``measures`` rejects the second insert.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Optional

from app.models.enums import MeasureType
from app.services.measure_repository import MeasureRepository
from app.utils.helpers import billing_month

logger = logging.getLogger(__name__)


class DuplicateDetector:
    def __init__(self, repository: MeasureRepository) -> None:
        self.repository = repository

    async def find_conflict(
        self,
        customer_code: str,
        measure_type: MeasureType,
        reading_datetime: dt.datetime,
    ) -> Optional[str]:
        """Return the id of an existing measure in the same month, if any."""
        month = billing_month(reading_datetime)
        existing = await self.repository.find_in_month(customer_code, measure_type, month)
        if existing is None:
            return None
        logger.info(
            "[duplicates] customer=%s type=%s month=%s conflicts with measure=%s",
            customer_code, measure_type.value, month, existing.id,
        )
        return existing.id
