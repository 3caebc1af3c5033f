"""Persistence boundary for measure records.

All database access for measures goes through ``MeasureRepository``.
SQLAlchemy failures are translated into the API error taxonomy here so
the service layer never sees driver exceptions: a violation of the
one-reading-per-month constraint becomes ``DoubleReportError`` and
anything else becomes ``StorageError``.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import List, Optional

from sqlalchemy import select, update as sql_update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import DoubleReportError, StorageError
from app.models.enums import MeasureType
from app.models.tables import Measure
from app.utils.helpers import billing_month, to_storage_datetime, utc_offset_minutes

logger = logging.getLogger(__name__)


class MeasureRepository:
    """Measure CRUD over one request-scoped ``AsyncSession``."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(
        self,
        *,
        customer_code: str,
        measure_type: MeasureType,
        reading_datetime: dt.datetime,
        value: int,
        image_name: str,
    ) -> Measure:
        """Insert and commit a new, unconfirmed measure.

        ``reading_month`` is derived from the timestamp as the client wrote
        it, before the value is normalised to UTC for storage.
        """
        measure = Measure(
            customer_code=customer_code,
            type=measure_type,
            reading_datetime=to_storage_datetime(reading_datetime),
            reading_utc_offset_minutes=utc_offset_minutes(reading_datetime),
            reading_month=billing_month(reading_datetime),
            value=value,
            image_name=image_name,
            confirmed=False,
        )
        self.db.add(measure)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            logger.info(
                "[measures] unique constraint rejected customer=%s type=%s month=%s",
                customer_code, measure_type.value, measure.reading_month,
            )
            raise DoubleReportError() from exc
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.exception("[measures] create failed customer=%s", customer_code)
            raise StorageError(f"measure insert failed: {exc}") from exc
        await self.db.refresh(measure)
        return measure

    async def get(self, measure_id: str) -> Optional[Measure]:
        """Retrieve a measure by id, reloading any copy already in the session."""
        try:
            return await self.db.get(Measure, measure_id, populate_existing=True)
        except SQLAlchemyError as exc:
            raise StorageError(f"measure lookup failed: {exc}") from exc

    async def list_by_customer(self, customer_code: str, measure_type: Optional[MeasureType] = None) -> List[Measure]:
        """Measures for a customer in insertion order, optionally of one type."""
        stmt = select(Measure).where(Measure.customer_code == customer_code)
        if measure_type is not None:
            stmt = stmt.where(Measure.type == measure_type)
        stmt = stmt.order_by(Measure.created_at, Measure.id)
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageError(f"measure listing failed: {exc}") from exc
        return list(result.scalars().all())

    async def find_in_month(self, customer_code: str, measure_type: MeasureType, reading_month: str) -> Optional[Measure]:
        """Return a measure of this customer and type whose reading falls in ``reading_month``."""
        stmt = (
            select(Measure)
            .where(
                Measure.customer_code == customer_code,
                Measure.type == measure_type,
                Measure.reading_month == reading_month,
            )
            .limit(1)
        )
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageError(f"duplicate lookup failed: {exc}") from exc
        return result.scalar_one_or_none()

    async def update(self, measure_id: str, *, confirmed: bool, value: int, expect_unconfirmed: bool = False) -> bool:
        """Write ``confirmed`` and ``value`` in one statement.

        With ``expect_unconfirmed`` the row is only touched while it is still
        unconfirmed (compare-and-set).  Returns whether a row changed.
        """
        stmt = (
            sql_update(Measure)
            .where(Measure.id == measure_id)
            .values(confirmed=confirmed, value=value, updated_at=dt.datetime.now(dt.timezone.utc))
        )
        if expect_unconfirmed:
            stmt = stmt.where(Measure.confirmed.is_(False))
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.exception("[measures] update failed id=%s", measure_id)
            raise StorageError(f"measure update failed: {exc}") from exc
        return (result.rowcount or 0) > 0
