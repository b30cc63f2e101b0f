"""Backend selection and fallback for text recognition.

Which backends are tried, and in which order, is decided by a single
lookup in ``ATTEMPT_PLAN`` keyed on the effective preference:

=====================  ==========================================
preference             attempts (stop at the first non-empty text)
=====================  ==========================================
none                   google_vision, tesseract, aws_textract
tesseract              tesseract
google_vision          google_vision, tesseract
aws_textract           aws_textract, tesseract
gemini                 gemini, tesseract
=====================  ==========================================

Gemini is reachable only through an explicit preference. A failed
preferred backend falls back to the local engine and nothing else.

Every failure is logged and recorded on the returned
``RecognitionResult``; the orchestrator itself never raises for a
backend failure. When every attempt fails the result carries empty text
and no backend.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Mapping, Optional, Tuple

from receiptscan.core.config import settings
from receiptscan.core.observability import sentry_breadcrumb
from receiptscan.models.enums import FailureReason, RecognitionBackendId
from receiptscan.models.schemas import (
    BackendCredential,
    RecognitionAttempt,
    RecognitionConfig,
    RecognitionRequest,
    RecognitionResult,
)
from receiptscan.services.gemini_ocr import GeminiOcrService
from receiptscan.services.google_vision_ocr import GoogleVisionOcrService
from receiptscan.services.ocr_base import (
    RecognitionBackend,
    RecognitionError,
    environment_credential,
    parse_credential,
)
from receiptscan.services.tesseract_ocr import TesseractOcrService
from receiptscan.services.textract_ocr import TextractOcrService


logger = logging.getLogger(__name__)

BackendFactory = Callable[[Optional[BackendCredential]], RecognitionBackend]

_LOCAL = RecognitionBackendId.TESSERACT

ATTEMPT_PLAN: Mapping[Optional[RecognitionBackendId], Tuple[RecognitionBackendId, ...]] = {
    None: (RecognitionBackendId.GOOGLE_VISION, _LOCAL, RecognitionBackendId.AWS_TEXTRACT),
    _LOCAL: (_LOCAL,),
    RecognitionBackendId.GOOGLE_VISION: (RecognitionBackendId.GOOGLE_VISION, _LOCAL),
    RecognitionBackendId.AWS_TEXTRACT: (RecognitionBackendId.AWS_TEXTRACT, _LOCAL),
    RecognitionBackendId.GEMINI: (RecognitionBackendId.GEMINI, _LOCAL),
}

DEFAULT_FACTORIES: Dict[RecognitionBackendId, BackendFactory] = {
    RecognitionBackendId.TESSERACT: lambda credential: TesseractOcrService(),
    RecognitionBackendId.GOOGLE_VISION: lambda credential: GoogleVisionOcrService(credential=credential),
    RecognitionBackendId.AWS_TEXTRACT: lambda credential: TextractOcrService(credential=credential),
    RecognitionBackendId.GEMINI: lambda credential: GeminiOcrService(credential=credential),
}


def parse_backend_id(value: Optional[str]) -> Optional[RecognitionBackendId]:
    """Map a user- or operator-supplied identifier to a backend, or ``None``."""
    if value is None:
        return None
    cleaned = value.strip().lower()
    if not cleaned:
        return None
    try:
        return RecognitionBackendId(cleaned)
    except ValueError:
        logger.warning("[recognition] unknown backend id=%r ignored", cleaned)
        return None


def attempt_plan(preference: Optional[RecognitionBackendId]) -> Tuple[RecognitionBackendId, ...]:
    return ATTEMPT_PLAN[preference]


class RecognitionOrchestrator:
    """Run the attempt plan for one request.

    ``factories`` maps each backend id to a callable building the backend
    from its resolved credential; tests replace these with fakes.
    """

    def __init__(self, factories: Optional[Mapping[RecognitionBackendId, BackendFactory]] = None) -> None:
        self.factories: Dict[RecognitionBackendId, BackendFactory] = dict(DEFAULT_FACTORIES)
        if factories:
            self.factories.update(factories)

    def effective_preference(self, config: RecognitionConfig) -> Optional[RecognitionBackendId]:
        if config.preferred_backend is not None:
            return config.preferred_backend
        return parse_backend_id(settings.OCR_ENGINE)

    def _resolve_credential(self, backend: RecognitionBackendId, config: RecognitionConfig) -> Optional[BackendCredential]:
        # Request material wins; a malformed value raises rather than
        # falling through to the operator credential.
        supplied = parse_credential(backend, config.credentials.get(backend))
        if supplied is not None:
            return supplied
        return environment_credential(backend)

    def _attempt(self, backend: RecognitionBackendId, request: RecognitionRequest, config: RecognitionConfig) -> str:
        credential = self._resolve_credential(backend, config)
        return self.factories[backend](credential).extract_text(request)

    def recognize(self, request: RecognitionRequest, config: Optional[RecognitionConfig] = None) -> RecognitionResult:
        config = config or RecognitionConfig()
        preference = self.effective_preference(config)
        plan = attempt_plan(preference)
        attempts = []
        for backend in plan:
            try:
                text = self._attempt(backend, request, config)
            except RecognitionError as exc:
                failure = exc.reason
                detail = str(exc)
            except Exception as exc:  # any library error is a failed call
                failure = FailureReason.BACKEND_CALL_FAILED
                detail = f"{backend.value}: {type(exc).__name__}"
            else:
                attempts.append(RecognitionAttempt(backend=backend, text_length=len(text)))
                if settings.EXTRACTION_DEBUG:
                    logger.info("[recognition] backend=%s chars=%d", backend.value, len(text))
                return RecognitionResult(text=text, backend=backend, attempts=attempts)

            attempts.append(RecognitionAttempt(backend=backend, failure=failure))
            logger.warning(
                "[recognition] backend=%s failed reason=%s detail=%s",
                backend.value,
                failure.value,
                detail,
            )
            sentry_breadcrumb(
                "recognition",
                f"{backend.value} failed",
                level="warning",
                data={"backend": backend.value, "reason": failure.value},
            )

        logger.warning(
            "[recognition] no text recognised preference=%s tried=%s",
            preference.value if preference else None,
            [backend.value for backend in plan],
        )
        return RecognitionResult(attempts=attempts)


def recognize_text(request: RecognitionRequest, config: Optional[RecognitionConfig] = None) -> RecognitionResult:
    return RecognitionOrchestrator().recognize(request, config)
