"""SQLAlchemy ORM models for the meter reading API.

A single table stores the readings.  ``reading_month`` is derived from
the literal ``reading_datetime`` at creation and backs the unique
constraint that allows one reading per customer, meter type and
calendar month.

If you extend or modify these models remember to call the ``init_db``
helper during development to recreate the tables.
"""

from __future__ import annotations

import datetime as dt
import uuid

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Boolean,
    Enum,
    UniqueConstraint,
    Index,
)

from app.core.database import Base
from app.utils.helpers import restore_client_datetime
from .enums import MeasureType


def _new_measure_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Measure(Base):
    """Meter reading extracted from a photograph, optionally confirmed by a human."""

    __tablename__ = "measures"
    __table_args__ = (
        UniqueConstraint("customer_code", "type", "reading_month", name="uq_measures_customer_type_month"),
        Index("ix_measures_customer_created", "customer_code", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=_new_measure_id)
    customer_code = Column(String, nullable=False, index=True)
    type = Column(Enum(MeasureType), nullable=False)
    # Stored as UTC; the offset the client wrote is kept separately.
    reading_datetime = Column(DateTime(timezone=True), nullable=False)
    reading_utc_offset_minutes = Column(Integer, nullable=True)
    reading_month = Column(String(7), nullable=False)  # "YYYY-MM"
    value = Column(Integer, nullable=False)
    image_name = Column(String, nullable=False)
    confirmed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    @property
    def client_reading_datetime(self) -> dt.datetime:
        """``reading_datetime`` with the UTC offset the client sent."""
        return restore_client_datetime(self.reading_datetime, self.reading_utc_offset_minutes)
