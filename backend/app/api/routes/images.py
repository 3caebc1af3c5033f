"""Retrieval of stored meter photographs."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from app.api.dependencies import get_image_store
from app.models.schemas import ErrorResponse
from app.services.storage_service import ImageStore, content_type_for

router = APIRouter(prefix="/images", tags=["images"])


@router.get("/{name}", response_class=Response, responses={404: {"model": ErrorResponse}})
async def get_image(name: str, image_store: ImageStore = Depends(get_image_store)) -> Response:
    """Return the stored bytes of an image exactly as uploaded."""
    data = await run_in_threadpool(image_store.load, name)
    return Response(
        content=data,
        media_type=content_type_for(name),
        headers={"Cache-Control": "public, max-age=31536000, immutable"},
    )
