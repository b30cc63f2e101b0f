"""Common dependencies for FastAPI routes.

Routes receive the shared ``ReceiptProcessor`` and the per-request
``RecognitionConfig`` through ``Depends`` so tests can substitute them
with ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Form

from receiptscan.models.enums import RecognitionBackendId
from receiptscan.models.schemas import RecognitionConfig
from receiptscan.services.receipt_processor import ReceiptProcessor
from receiptscan.services.recognition_service import parse_backend_id


@lru_cache(maxsize=1)
def get_receipt_processor() -> ReceiptProcessor:
    """Return the process-wide pipeline instance."""
    return ReceiptProcessor()


def get_recognition_config(
    ocr_engine: Optional[str] = Form(None),
    google_vision_api_key: Optional[str] = Form(None),
    aws_textract_api_key: Optional[str] = Form(None),
    gemini_api_key: Optional[str] = Form(None),
) -> RecognitionConfig:
    """Build the backend preference and credentials from the upload form.

    Blank values are dropped; an unknown ``ocr_engine`` means no preference.
    Credential values stay opaque strings until a backend is attempted.
    """
    supplied = {
        RecognitionBackendId.GOOGLE_VISION: google_vision_api_key,
        RecognitionBackendId.AWS_TEXTRACT: aws_textract_api_key,
        RecognitionBackendId.GEMINI: gemini_api_key,
    }
    return RecognitionConfig(
        preferred_backend=parse_backend_id(ocr_engine),
        credentials={backend: raw for backend, raw in supplied.items() if raw and raw.strip()},
    )
