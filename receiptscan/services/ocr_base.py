"""Common contract for text recognition backends.

A backend turns a ``RecognitionRequest`` into raw text or raises one of
the ``RecognitionError`` subclasses below. Backends never swallow their
own failures; the orchestrator decides what a failure means for the
request (see ``recognition_service``).

Credentials arrive as opaque strings from the caller and are parsed
into the typed ``BackendCredential`` union by :func:`parse_credential`.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import ClassVar, Optional

from pydantic import SecretStr, ValidationError

from receiptscan.core.config import secret_value, settings
from receiptscan.models.enums import FailureReason, RecognitionBackendId
from receiptscan.models.schemas import (
    BackendCredential,
    GeminiCredential,
    GoogleVisionCredential,
    RecognitionRequest,
    TextractCredential,
)


class RecognitionError(Exception):
    """Base class for failures of a single backend call."""

    reason: ClassVar[FailureReason] = FailureReason.BACKEND_CALL_FAILED

    def __init__(self, backend: RecognitionBackendId, message: str) -> None:
        super().__init__(f"{backend.value}: {message}")
        self.backend = backend


class BackendUnavailable(RecognitionError):
    """Credential or local dependency missing."""

    reason = FailureReason.BACKEND_UNAVAILABLE


class BackendCallFailed(RecognitionError):
    """Network, transport, timeout or response parsing failure."""

    reason = FailureReason.BACKEND_CALL_FAILED


class NoTextRecognized(RecognitionError):
    """The backend ran but returned no content."""

    reason = FailureReason.NO_TEXT_RECOGNIZED


class MalformedCredential(RecognitionError):
    """Supplied credential material does not have the expected shape."""

    reason = FailureReason.MALFORMED_CREDENTIAL


def _parse_textract_blob(raw: str) -> TextractCredential:
    backend = RecognitionBackendId.AWS_TEXTRACT
    try:
        blob = json.loads(raw)
    except ValueError as exc:
        raise MalformedCredential(backend, "credential is not valid JSON") from exc
    if not isinstance(blob, dict):
        raise MalformedCredential(backend, "credential JSON must be an object")
    try:
        return TextractCredential(
            access_key_id=blob.get("accessKeyId"),
            secret_access_key=blob.get("secretAccessKey"),
            region=blob.get("region") or "us-east-1",
        )
    except ValidationError as exc:
        raise MalformedCredential(backend, "credential is missing accessKeyId/secretAccessKey") from exc


def parse_credential(backend: RecognitionBackendId, raw: Optional[str]) -> Optional[BackendCredential]:
    """Parse caller-supplied material for ``backend`` into its typed shape.

    Returns ``None`` when nothing was supplied (or the backend takes no
    credential) and raises ``MalformedCredential`` when the material
    cannot be used.
    """
    if raw is None or not raw.strip():
        return None
    raw = raw.strip()
    if backend is RecognitionBackendId.GOOGLE_VISION:
        return GoogleVisionCredential(api_key=SecretStr(raw))
    if backend is RecognitionBackendId.GEMINI:
        return GeminiCredential(api_key=SecretStr(raw))
    if backend is RecognitionBackendId.AWS_TEXTRACT:
        return _parse_textract_blob(raw)
    return None


def environment_credential(backend: RecognitionBackendId) -> Optional[BackendCredential]:
    """Operator-level credential for ``backend`` from settings, if configured."""
    if backend is RecognitionBackendId.GOOGLE_VISION:
        key = secret_value(settings.GOOGLE_VISION_API_KEY)
        return GoogleVisionCredential(api_key=SecretStr(key)) if key else None
    if backend is RecognitionBackendId.GEMINI:
        key = secret_value(settings.GEMINI_API_KEY)
        return GeminiCredential(api_key=SecretStr(key)) if key else None
    if backend is RecognitionBackendId.AWS_TEXTRACT:
        if settings.AWS_ACCESS_KEY_ID and secret_value(settings.AWS_SECRET_ACCESS_KEY):
            return TextractCredential(
                access_key_id=settings.AWS_ACCESS_KEY_ID,
                secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                region=settings.AWS_REGION or "us-east-1",
            )
    return None


class RecognitionBackend(ABC):
    """One text recognition service.

    Subclasses set ``backend_id`` and implement :meth:`_recognize`. The
    public :meth:`extract_text` turns an empty result into
    ``NoTextRecognized`` so callers only ever see text or an error.
    """

    backend_id: ClassVar[RecognitionBackendId]

    def __init__(self, credential: Optional[BackendCredential] = None, timeout: Optional[float] = None) -> None:
        self.credential = credential
        self.timeout = float(timeout if timeout is not None else settings.OCR_TIMEOUT_SECONDS)

    def extract_text(self, request: RecognitionRequest) -> str:
        text = (self._recognize(request) or "").strip()
        if not text:
            raise NoTextRecognized(self.backend_id, "empty recognition result")
        return text

    @abstractmethod
    def _recognize(self, request: RecognitionRequest) -> str:
        """Return raw text for ``request``; raise ``RecognitionError`` on failure."""

    def _unavailable(self, message: str) -> BackendUnavailable:
        return BackendUnavailable(self.backend_id, message)

    def _call_failed(self, message: str) -> BackendCallFailed:
        return BackendCallFailed(self.backend_id, message)
