"""Health check endpoints for monitoring."""
import shutil
from typing import Any, Dict

from fastapi import APIRouter

from receiptscan.core.config import settings

router = APIRouter()


@router.api_route("/health", methods=["GET", "HEAD"])
async def health_check() -> Dict[str, Any]:
    """Liveness plus whether the local OCR engine can run."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": "1.0.0",
        "local_ocr": shutil.which(settings.TESSERACT_CMD) is not None,
    }
