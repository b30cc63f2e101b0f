"""Structured field extraction from recognised receipt text.

Each field is produced by a pure rule ``ReceiptText -> Optional[value]``.
Rules that have several ways of finding a value are written as an
ordered tuple of strategies and evaluated with :func:`first_result`,
so every strategy can be unit tested on its own.

Recognised text is unreliable, so nothing in this module raises on
malformed input: a rule that cannot find a confident value returns
``None`` and the field is simply left absent. ``currency`` is the one
exception and falls back to ``BASE_CURRENCY``.

The only input besides the text is the reference date used to bound
extracted dates; pass ``today`` explicitly for reproducible results.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from decimal import Decimal
from typing import List, Optional, Tuple

from receiptscan.models.enums import Category
from receiptscan.models.schemas import BASE_CURRENCY, ExtractedFields
from receiptscan.services.notes_builder import build_notes
from receiptscan.services.receipt_text import ReceiptText, Strategy, first_result
from receiptscan.utils.helpers import clean_merchant_name, parse_amount, parse_receipt_date
from receiptscan.utils.vocabulary import CATEGORY_KEYWORDS, CURRENCY_CODES, MERCHANT_KEYWORDS


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Amount

# Most specific first. Every match of every pattern is a candidate.
AMOUNT_PATTERNS = (
    re.compile(r"(?:totals?|grand\s*total|final\s*total)\s*:?\s*\$?(\d{1,4}[,.]?\d{2})", re.I),
    re.compile(r"(?:total|amount|subtotal|sum)\s*:?\s*\$?(\d{1,4}[,.]?\d{2})", re.I),
    re.compile(r"\$(\d{1,4}[,.]?\d{2})\s*$", re.M),
    re.compile(r"(\d{1,4}[,.]?\d{2})\s*USD", re.I),
)

ACCOUNT_NUMBER_SHAPE = re.compile(r"\d{4}\s+\d{4}\s+\d{4}")
PHONE_NUMBER_SHAPE = re.compile(r"\d{3}-\d{3}-\d{4}")

MAX_REASONABLE_AMOUNT = Decimal("50000")
PLAUSIBLE_AMOUNT_MIN = Decimal("0.01")
PLAUSIBLE_AMOUNT_MAX = Decimal("10000")


def _identifier_spans(text: str) -> List[Tuple[int, int]]:
    """Spans of account-number and phone-number shaped digit runs."""
    return [
        found.span()
        for shape in (ACCOUNT_NUMBER_SHAPE, PHONE_NUMBER_SHAPE)
        for found in shape.finditer(text)
    ]


def _overlaps(span: Tuple[int, int], others: List[Tuple[int, int]]) -> bool:
    start, end = span
    return any(start < other_end and other_start < end for other_start, other_end in others)


def amount_candidates(receipt: ReceiptText) -> List[Decimal]:
    """All plausible monetary values found by ``AMOUNT_PATTERNS``."""
    candidates: List[Decimal] = []
    identifiers = _identifier_spans(receipt.text)
    for pattern in AMOUNT_PATTERNS:
        for match in pattern.finditer(receipt.text):
            # digits that belong to a card or phone number are not a price
            if _overlaps(match.span(1), identifiers):
                continue
            amount = parse_amount(match.group(1))
            if amount is None or amount <= 0 or amount > MAX_REASONABLE_AMOUNT:
                continue
            if PLAUSIBLE_AMOUNT_MIN < amount < PLAUSIBLE_AMOUNT_MAX:
                candidates.append(amount)
    return candidates


def extract_amount(receipt: ReceiptText) -> Optional[Decimal]:
    """The largest plausible labelled or implied amount, taken as the grand total."""
    candidates = amount_candidates(receipt)
    return max(candidates) if candidates else None


# ---------------------------------------------------------------------------
# Date

_MONTH = r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)"

DATE_PATTERNS = (
    re.compile(r"(?<!\d)(\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4})(?!\d)"),
    re.compile(r"(?<!\d)(\d{4}[/\-.]\d{1,2}[/\-.]\d{1,2})(?!\d)"),
    re.compile(rf"({_MONTH}\w*\s+\d{{1,2}},?\s+\d{{2,4}})", re.I),
    re.compile(rf"(\d{{1,2}}\s+{_MONTH}\w*\s+\d{{2,4}})", re.I),
)


def extract_date(receipt: ReceiptText, today: dt.date) -> Optional[dt.date]:
    """First date-shaped match that parses to a day within the last five years."""
    for pattern in DATE_PATTERNS:
        for match in pattern.finditer(receipt.text):
            parsed = parse_receipt_date(match.group(1), today)
            if parsed is not None:
                return parsed
    return None


# ---------------------------------------------------------------------------
# Merchant

MERCHANT_SCAN_LINES = 6
MERCHANT_MIN_LENGTH = 4
MERCHANT_MAX_LENGTH = 49
BILL_TO_LOOKAHEAD_LINES = 3

_DATE_LIKE = re.compile(r"\d+[/\-.]\d+[/\-.]\d+")
_PRICE_LIKE = re.compile(r"\d+[.,]\d{2}")
_HEADER_WORD = re.compile(r"(?:invoice|bill|receipt)", re.I)
_DIGITS_ONLY = re.compile(r"\d+")
_HAS_LETTER = re.compile(r"[A-Za-z]")
_BILL_TO = re.compile(r"bill\s+to\s*:?", re.I)
_NAME_LINE = re.compile(r"[A-Za-z\s]+")


def _looks_like_merchant(line: str) -> bool:
    return (
        MERCHANT_MIN_LENGTH <= len(line) <= MERCHANT_MAX_LENGTH
        and _HAS_LETTER.search(line) is not None
        and _DATE_LIKE.search(line) is None
        and _PRICE_LIKE.search(line) is None
        and _HEADER_WORD.match(line) is None
        and _DIGITS_ONLY.fullmatch(line) is None
    )


def merchant_candidates(receipt: ReceiptText) -> List[str]:
    """Business-name-like lines among the first few lines of the receipt."""
    return [line for line in receipt.lines[:MERCHANT_SCAN_LINES] if _looks_like_merchant(line)]


def merchant_from_bill_to(receipt: ReceiptText) -> Optional[str]:
    """Name lines right after a ``Bill To:`` marker (invoices)."""
    for index, line in enumerate(receipt.lines):
        if not _BILL_TO.search(line):
            continue
        following = receipt.lines[index + 1: index + 1 + BILL_TO_LOOKAHEAD_LINES]
        names = [
            candidate for candidate in following
            if _NAME_LINE.fullmatch(candidate) and 2 < len(candidate) < 50
        ]
        if names:
            return clean_merchant_name(" ".join(names))
        return None
    return None


def merchant_from_keyword(receipt: ReceiptText) -> Optional[str]:
    """First candidate line containing a known merchant keyword."""
    for candidate in merchant_candidates(receipt):
        lowered = candidate.lower()
        if any(keyword in lowered for keyword in MERCHANT_KEYWORDS):
            return clean_merchant_name(candidate)
    return None


def merchant_from_first_line(receipt: ReceiptText) -> Optional[str]:
    candidates = merchant_candidates(receipt)
    return clean_merchant_name(candidates[0]) if candidates else None


MERCHANT_STRATEGIES: Tuple[Strategy[str], ...] = (
    merchant_from_bill_to,
    merchant_from_keyword,
    merchant_from_first_line,
)


def extract_merchant(receipt: ReceiptText) -> Optional[str]:
    return first_result(MERCHANT_STRATEGIES, receipt) or None


# ---------------------------------------------------------------------------
# Category


def category_scores(receipt: ReceiptText) -> List[Tuple[Category, int]]:
    """Keyword occurrence count per category, in tie-break order.

    Counts are plain substring counts, so a keyword inside a longer
    word (``bar`` in ``barber``) still scores.
    """
    lowered = receipt.text.lower()
    return [
        (category, sum(lowered.count(keyword) for keyword in keywords))
        for category, keywords in CATEGORY_KEYWORDS.items()
    ]


def extract_category(receipt: ReceiptText) -> Optional[Category]:
    best: Optional[Category] = None
    best_score = 0
    for category, score in category_scores(receipt):
        if score > best_score:
            best, best_score = category, score
    return best


# ---------------------------------------------------------------------------
# Description


def extract_description(receipt: ReceiptText, merchant: Optional[str]) -> Optional[str]:
    if merchant:
        return merchant
    for line in receipt.lines:
        if len(line) > 5 and _HAS_LETTER.search(line):
            return line
    return None


# ---------------------------------------------------------------------------
# Currency


def _code_pattern(*tokens: str) -> re.Pattern:
    """Code or symbol written next to a number, as a whole upper-case token."""
    alternatives = "|".join(tokens)
    return re.compile(
        rf"\d[\d,.]*\s*(?:{alternatives})(?![A-Za-z])|(?<![A-Za-z])(?:{alternatives})\s*\d"
    )


CURRENCY_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"(?<![A-Za-z])\$\s?\d"),
    re.compile(r"€\s?\d"),
    re.compile(r"£\s?\d"),
    re.compile(r"¥\s?\d"),
    re.compile(r"₹\s?\d"),
    _code_pattern("USD", r"US\$"),
    _code_pattern("EUR", "€"),
    _code_pattern("GBP", "£"),
    _code_pattern("JPY", "¥"),
    _code_pattern("CAD", r"C\$"),
    _code_pattern("AUD", r"A\$"),
    _code_pattern("INR", "₹"),
    re.compile(r"(?i:currency|paid\s+in|total\s+in):\s*([A-Z]{3})(?![A-Za-z])"),
)

_CURRENCY_TOKEN = re.compile(r"US\$|C\$|A\$|[$€£¥₹]|[A-Z]{3}")


def _currency_from_match(match: re.Match) -> Optional[str]:
    fragment = match.group(1) if match.re.groups else match.group(0)
    token = _CURRENCY_TOKEN.search(fragment)
    if token is None:
        return None
    return CURRENCY_CODES.get(token.group(0))


def extract_currency(receipt: ReceiptText) -> str:
    """ISO code of the first recognisable currency marker, else ``BASE_CURRENCY``."""
    for pattern in CURRENCY_PATTERNS:
        for match in pattern.finditer(receipt.text):
            code = _currency_from_match(match)
            if code:
                return code
    return BASE_CURRENCY


# ---------------------------------------------------------------------------
# Composition


class FieldExtractor:
    """Convert recognised text into ``ExtractedFields``.

    ``today`` pins the reference date for date bounding; when omitted the
    current local date is read on every call.
    """

    def __init__(self, today: Optional[dt.date] = None) -> None:
        self._today = today

    def extract(self, raw_text: Optional[str]) -> ExtractedFields:
        receipt = ReceiptText.from_raw(raw_text)
        if not receipt.text:
            return ExtractedFields()
        today = self._today or dt.date.today()
        merchant = extract_merchant(receipt)
        fields = ExtractedFields(
            amount=extract_amount(receipt),
            merchant=merchant,
            date=extract_date(receipt, today),
            category=extract_category(receipt),
            description=extract_description(receipt, merchant),
            currency=extract_currency(receipt),
            notes=build_notes(receipt),
        )
        logger.debug(
            "[extractor] lines=%d found=%s",
            len(receipt.lines),
            sorted(fields.present_fields().keys()),
        )
        return fields


def extract_fields(raw_text: Optional[str], today: Optional[dt.date] = None) -> ExtractedFields:
    """Convenience wrapper around :class:`FieldExtractor`."""
    return FieldExtractor(today=today).extract(raw_text)


__all__ = [
    "ReceiptText",
    "FieldExtractor",
    "extract_fields",
    "extract_amount",
    "extract_date",
    "extract_merchant",
    "extract_category",
    "extract_description",
    "extract_currency",
]
