"""Local OCR through the Tesseract binary.

The only backend that works without credentials or network access. It
is unavailable when the configured ``tesseract`` executable cannot be
found on ``PATH``.
"""

from __future__ import annotations

import logging
import shutil
from typing import Optional

import pytesseract

from receiptscan.core.config import settings
from receiptscan.models.enums import RecognitionBackendId
from receiptscan.models.schemas import RecognitionRequest
from receiptscan.services.ocr_base import RecognitionBackend
from receiptscan.utils.image_processing import prepare_for_ocr


logger = logging.getLogger(__name__)

# Process-wide binary, fixed at import; requests never change it
pytesseract.pytesseract.tesseract_cmd = settings.TESSERACT_CMD


class TesseractOcrService(RecognitionBackend):
    backend_id = RecognitionBackendId.TESSERACT

    def __init__(self, credential=None, timeout: Optional[float] = None) -> None:
        super().__init__(credential=None, timeout=timeout)
        self.command = settings.TESSERACT_CMD
        self.language = settings.TESSERACT_LANG

    def is_available(self) -> bool:
        return shutil.which(self.command) is not None

    def _recognize(self, request: RecognitionRequest) -> str:
        if not self.is_available():
            raise self._unavailable(f"executable {self.command!r} not found")
        try:
            image = prepare_for_ocr(request.content, max_size=settings.TESSERACT_MAX_IMAGE_EDGE)
        except ValueError as exc:
            raise self._call_failed(str(exc)) from exc

        try:
            # pytesseract raises RuntimeError when the timeout kills the process
            text = pytesseract.image_to_string(image, lang=self.language, timeout=self.timeout)
        except pytesseract.TesseractNotFoundError as exc:
            raise self._unavailable("tesseract is not installed or not on PATH") from exc
        except (pytesseract.TesseractError, RuntimeError, OSError) as exc:
            raise self._call_failed(f"tesseract failed: {exc}") from exc
        logger.debug("[tesseract] recognised %d characters", len(text or ""))
        return text
