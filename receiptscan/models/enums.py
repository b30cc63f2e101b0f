"""Enumeration types used throughout the receipt scanning pipeline.

Enumerations make it easier to constrain the values that can be passed
through the API and between services. They also improve readability
when dealing with domain concepts like recognition backends, failure
reasons or transaction categories.

The ``Category`` labels are a contract with the presentation layer:
both sides must agree on the exact strings, and the member order is the
tie-break order used by category scoring.
"""

from enum import Enum


class RecognitionBackendId(str, Enum):
    """Text recognition services the orchestrator can call."""

    TESSERACT = "tesseract"
    GOOGLE_VISION = "google_vision"
    AWS_TEXTRACT = "aws_textract"
    GEMINI = "gemini"


class FailureReason(str, Enum):
    """Why a single backend attempt produced no text."""

    BACKEND_UNAVAILABLE = "backend_unavailable"
    BACKEND_CALL_FAILED = "backend_call_failed"
    NO_TEXT_RECOGNIZED = "no_text_recognized"
    MALFORMED_CREDENTIAL = "malformed_credential"


class Category(str, Enum):
    """Closed set of transaction categories, in tie-break order."""

    FOOD = "Food"
    GAS = "Gas"
    SHOPPING = "Shopping"
    PHARMACY = "Pharmacy"
    ENTERTAINMENT = "Entertainment"
    TRAVEL = "Travel"
    UTILITIES = "Utilities"
    HEALTHCARE = "Healthcare"
    PROFESSIONAL_SERVICES = "Professional Services"
    OFFICE_SUPPLIES = "Office Supplies"
