"""API route for one-shot receipt scanning.

The upload is validated, handed to the pipeline in a worker thread and
discarded; nothing is persisted.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from starlette.status import HTTP_422_UNPROCESSABLE_ENTITY

from receiptscan.api.dependencies import get_receipt_processor, get_recognition_config
from receiptscan.core.config import settings
from receiptscan.core.observability import sentry_breadcrumb
from receiptscan.models.schemas import RecognitionConfig, RecognitionRequest, ReceiptUploadResponse
from receiptscan.services.receipt_processor import ReceiptProcessor


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/receipts", tags=["receipts"])


def _rejected(message: str) -> JSONResponse:
    body = ReceiptUploadResponse(success=False, error=message)
    return JSONResponse(
        status_code=HTTP_422_UNPROCESSABLE_ENTITY,
        content=body.model_dump(exclude={"extracted_data"}),
    )


@router.post("/upload")
async def upload_receipt(
    image: Optional[UploadFile] = File(None),
    config: RecognitionConfig = Depends(get_recognition_config),
    processor: ReceiptProcessor = Depends(get_receipt_processor),
):
    """Scan an uploaded receipt image and return the fields found on it."""
    if image is None or not image.filename:
        return _rejected("No image provided")

    content_type = (image.content_type or "").lower()
    if content_type not in settings.ALLOWED_CONTENT_TYPES:
        return _rejected("Unsupported file type")

    contents = await image.read()
    if not contents:
        return _rejected("Uploaded image is empty")
    if len(contents) > settings.MAX_UPLOAD_SIZE:
        return _rejected("File too large")

    sentry_breadcrumb(
        category="upload",
        message="receipts.upload",
        data={
            "bytes": len(contents),
            "content_type": content_type,
            "preferred": config.preferred_backend.value if config.preferred_backend else None,
        },
    )
    request = RecognitionRequest(content=contents, content_type=content_type, filename=image.filename)
    outcome = await run_in_threadpool(processor.process, request, config)
    engine = outcome.ocr_engine.value if outcome.ocr_engine else None
    logger.info("[upload] bytes=%d engine=%s", len(contents), engine)
    body = ReceiptUploadResponse(success=True, extracted_data=outcome.as_extracted_data())
    return body.model_dump(mode="json", exclude={"error"})
