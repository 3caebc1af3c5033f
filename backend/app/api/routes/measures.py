"""API routes for meter reading upload, confirmation and listing."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query

from app.api.dependencies import get_measure_service
from app.models.schemas import (
    ConfirmResponse,
    ErrorResponse,
    MeasureListResponse,
    UploadResponse,
)
from app.services.measure_service import MeasureService

router = APIRouter(tags=["measures"])


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def upload_measure(
    body: Any = Body(...),
    service: MeasureService = Depends(get_measure_service),
) -> UploadResponse:
    """Upload a meter photograph and record the extracted reading.

    Body: ``image`` (base64 data URI), ``customer_code``,
    ``reading_datetime`` (ISO-8601) and ``type`` (``WATER`` or ``GAS``).
    """
    return await service.upload(body)


@router.patch(
    "/confirm",
    response_model=ConfirmResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def confirm_measure(
    body: Any = Body(...),
    service: MeasureService = Depends(get_measure_service),
) -> ConfirmResponse:
    """Confirm (and possibly correct) the value of an unconfirmed measure."""
    return await service.confirm(body)


@router.get(
    "/{customer_code}/list",
    response_model=MeasureListResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def list_measures(
    customer_code: str,
    measure_type: Optional[str] = Query(None),
    service: MeasureService = Depends(get_measure_service),
) -> MeasureListResponse:
    """List a customer's measures, optionally only ``WATER`` or ``GAS`` (any case)."""
    return await service.list_measures(customer_code, measure_type)
