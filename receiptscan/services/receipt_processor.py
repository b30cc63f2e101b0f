"""End-to-end receipt processing: image in, reviewable fields out."""

from __future__ import annotations

import logging
from typing import Optional

from receiptscan.models.schemas import ProcessingOutcome, RecognitionConfig, RecognitionRequest
from receiptscan.services.field_extractor import FieldExtractor
from receiptscan.services.recognition_service import RecognitionOrchestrator


logger = logging.getLogger(__name__)


class ReceiptProcessor:
    """Recognise the image, then extract fields from whatever text came back.

    Stateless between calls; one instance can serve concurrent requests.
    """

    def __init__(
        self,
        recognizer: Optional[RecognitionOrchestrator] = None,
        extractor: Optional[FieldExtractor] = None,
    ) -> None:
        self.recognizer = recognizer or RecognitionOrchestrator()
        self.extractor = extractor or FieldExtractor()

    def process(self, request: RecognitionRequest, config: Optional[RecognitionConfig] = None) -> ProcessingOutcome:
        result = self.recognizer.recognize(request, config)
        if not result.has_text:
            logger.info("[processor] no text recognised; returning empty record")
            return ProcessingOutcome()
        extracted = self.extractor.extract(result.text)
        logger.info(
            "[processor] engine=%s chars=%d fields=%d",
            result.backend.value if result.backend else None,
            len(result.text),
            len(extracted.present_fields()),
        )
        return ProcessingOutcome(extracted=extracted, ocr_engine=result.backend)
