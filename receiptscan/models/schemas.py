"""Pydantic schemas for the recognition and extraction pipeline.

Pydantic models are used for validating and serialising data that
crosses a boundary: the image handed to a recognition backend, the
per-request backend configuration supplied by the caller, the
orchestrator's result and the structured record returned to the
presentation layer.

Every field of ``ExtractedFields`` except ``currency`` is optional and
absence means "not confidently found"; no sentinel values are used.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from .enums import Category, FailureReason, RecognitionBackendId


BASE_CURRENCY = "USD"


# ---------------------------------------------------------------------------
# Recognition inputs


class RecognitionRequest(BaseModel):
    """Image payload for a single recognition call."""

    model_config = ConfigDict(frozen=True)

    content: bytes
    content_type: str = "image/jpeg"
    filename: Optional[str] = None


class GoogleVisionCredential(BaseModel):
    backend: Literal[RecognitionBackendId.GOOGLE_VISION] = RecognitionBackendId.GOOGLE_VISION
    api_key: SecretStr


class TextractCredential(BaseModel):
    """AWS credential pair; supplied by callers as a JSON blob."""

    backend: Literal[RecognitionBackendId.AWS_TEXTRACT] = RecognitionBackendId.AWS_TEXTRACT
    access_key_id: str = Field(min_length=1)
    secret_access_key: SecretStr
    region: str = "us-east-1"


class GeminiCredential(BaseModel):
    backend: Literal[RecognitionBackendId.GEMINI] = RecognitionBackendId.GEMINI
    api_key: SecretStr


BackendCredential = Annotated[
    Union[GoogleVisionCredential, TextractCredential, GeminiCredential],
    Field(discriminator="backend"),
]


class RecognitionConfig(BaseModel):
    """Per-request backend preference and opaque credential material.

    ``credentials`` maps a backend to the raw string the caller supplied
    (plain API key or JSON blob). It is parsed into a typed
    ``BackendCredential`` only when that backend is attempted, so a
    malformed value only disables the backend it belongs to.
    """

    model_config = ConfigDict(frozen=True)

    preferred_backend: Optional[RecognitionBackendId] = None
    credentials: Dict[RecognitionBackendId, str] = Field(default_factory=dict)

    def __repr__(self) -> str:  # never echo credential material
        return f"RecognitionConfig(preferred_backend={self.preferred_backend!r}, credentials=<{len(self.credentials)} redacted>)"

    __str__ = __repr__


# ---------------------------------------------------------------------------
# Recognition outputs


class RecognitionAttempt(BaseModel):
    """One backend call made by the orchestrator."""

    backend: RecognitionBackendId
    failure: Optional[FailureReason] = None
    text_length: int = 0


class RecognitionResult(BaseModel):
    """Text returned by the orchestrator plus the backend that produced it.

    ``backend`` is ``None`` when every attempted backend came back empty;
    ``text`` is then the empty string.
    """

    text: str = ""
    backend: Optional[RecognitionBackendId] = None
    attempts: List[RecognitionAttempt] = Field(default_factory=list)

    @property
    def has_text(self) -> bool:
        return bool(self.text.strip())


# ---------------------------------------------------------------------------
# Extraction outputs


class LineItem(BaseModel):
    """Individual line item found on a receipt or invoice."""

    description: str
    quantity: Optional[str] = None
    price: str


class NotesSections(BaseModel):
    """Optional substructures serialised into ``ExtractedFields.notes``."""

    vendor_info: Dict[str, str] = Field(default_factory=dict)
    customer_info: Dict[str, str] = Field(default_factory=dict)
    line_items: List[LineItem] = Field(default_factory=list)
    totals: Dict[str, str] = Field(default_factory=dict)
    payment_info: Dict[str, str] = Field(default_factory=dict)
    receipt_details: Dict[str, str] = Field(default_factory=dict)


class ExtractedFields(BaseModel):
    """Best-effort transaction fields for a human to review."""

    amount: Optional[Decimal] = Field(default=None, gt=0)
    merchant: Optional[str] = None
    date: Optional[dt.date] = None
    category: Optional[Category] = None
    description: Optional[str] = None
    currency: str = Field(default=BASE_CURRENCY, min_length=3, max_length=3)
    notes: Optional[str] = None

    def present_fields(self) -> Dict[str, Any]:
        """JSON-ready mapping of the fields that were found."""
        return self.model_dump(mode="json", exclude_none=True)


class ProcessingOutcome(BaseModel):
    """Pipeline result: extracted fields plus the backend that read the image."""

    extracted: ExtractedFields = Field(default_factory=ExtractedFields)
    ocr_engine: Optional[RecognitionBackendId] = None

    def as_extracted_data(self) -> Dict[str, Any]:
        data = self.extracted.present_fields()
        data["ocr_engine"] = self.ocr_engine.value if self.ocr_engine else None
        return data


class ReceiptUploadResponse(BaseModel):
    success: bool
    extracted_data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
