from __future__ import annotations

import datetime as dt

import pytest

from app.core.errors import DoubleReportError
from app.models.enums import MeasureType
from app.services.measure_repository import MeasureRepository

UTC = dt.timezone.utc


async def _create(repo, customer="C1", measure_type=MeasureType.WATER, when=None, value=100):
    return await repo.create(
        customer_code=customer,
        measure_type=measure_type,
        reading_datetime=when or dt.datetime(2024, 3, 15, tzinfo=UTC),
        value=value,
        image_name="0" * 32 + ".png",
    )


@pytest.mark.asyncio
async def test_create_sets_defaults(db_session):
    repo = MeasureRepository(db_session)
    measure = await _create(repo)

    assert len(measure.id) == 36
    assert measure.confirmed is False
    assert measure.value == 100
    assert measure.reading_month == "2024-03"

    fetched = await repo.get(measure.id)
    assert fetched is not None and fetched.id == measure.id


@pytest.mark.asyncio
async def test_get_missing_returns_none(db_session):
    assert await MeasureRepository(db_session).get("0f8fad5b-d9cb-469f-a165-70867728950e") is None


@pytest.mark.asyncio
async def test_list_by_customer_filters_and_keeps_insertion_order(db_session):
    repo = MeasureRepository(db_session)
    first = await _create(repo, when=dt.datetime(2024, 5, 1, tzinfo=UTC))
    second = await _create(repo, measure_type=MeasureType.GAS, when=dt.datetime(2024, 1, 1, tzinfo=UTC))
    third = await _create(repo, when=dt.datetime(2024, 2, 1, tzinfo=UTC))
    await _create(repo, customer="OTHER")

    all_ids = [m.id for m in await repo.list_by_customer("C1")]
    assert all_ids == [first.id, second.id, third.id]

    water_ids = [m.id for m in await repo.list_by_customer("C1", MeasureType.WATER)]
    assert water_ids == [first.id, third.id]

    assert await repo.list_by_customer("NOBODY") == []


@pytest.mark.asyncio
async def test_find_in_month(db_session):
    repo = MeasureRepository(db_session)
    measure = await _create(repo)

    found = await repo.find_in_month("C1", MeasureType.WATER, "2024-03")
    assert found is not None and found.id == measure.id
    assert await repo.find_in_month("C1", MeasureType.GAS, "2024-03") is None
    assert await repo.find_in_month("C1", MeasureType.WATER, "2024-04") is None


@pytest.mark.asyncio
async def test_unique_constraint_rejects_second_reading_in_month(db_session):
    repo = MeasureRepository(db_session)
    await _create(repo, when=dt.datetime(2024, 3, 1, tzinfo=UTC))

    with pytest.raises(DoubleReportError):
        await _create(repo, when=dt.datetime(2024, 3, 31, 23, 59, tzinfo=UTC))

    assert len(await repo.list_by_customer("C1")) == 1


@pytest.mark.asyncio
async def test_update_compare_and_set(db_session):
    repo = MeasureRepository(db_session)
    measure = await _create(repo)

    assert await repo.update(measure.id, confirmed=True, value=1234, expect_unconfirmed=True) is True
    # second conditional write finds no unconfirmed row
    assert await repo.update(measure.id, confirmed=True, value=999, expect_unconfirmed=True) is False

    stored = await repo.get(measure.id)
    assert stored.confirmed is True
    assert stored.value == 1234


@pytest.mark.asyncio
async def test_unconditional_update(db_session):
    repo = MeasureRepository(db_session)
    measure = await _create(repo)

    assert await repo.update(measure.id, confirmed=True, value=5) is True
    assert await repo.update("0f8fad5b-d9cb-469f-a165-70867728950e", confirmed=True, value=5) is False


@pytest.mark.asyncio
async def test_reading_datetime_keeps_client_offset(db_session):
    repo = MeasureRepository(db_session)
    sent = dt.datetime(2024, 3, 31, 23, 30, tzinfo=dt.timezone(dt.timedelta(hours=-3)))
    measure = await _create(repo, when=sent)

    assert measure.reading_month == "2024-03"
    assert measure.reading_utc_offset_minutes == -180
    (listed,) = await repo.list_by_customer("C1")
    assert listed.client_reading_datetime == sent
    assert listed.client_reading_datetime.utcoffset() == dt.timedelta(hours=-3)


@pytest.mark.asyncio
async def test_debug_info_masks_password(settings):
    from app.core.database import Database

    database = Database(settings.model_copy(update={"DATABASE_URL": "postgresql://meter:s3cret@db:5432/measures"}))
    info = database.debug_info()
    await database.dispose()

    assert info["drivername"] == "postgresql+psycopg"
    assert info["host"] == "db" and info["database"] == "measures"
    assert "s3cret" not in str(info)
