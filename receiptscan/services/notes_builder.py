"""Structured notes assembled from optional receipt substructures.

Six independent lookups (vendor, customer, line items, totals, payment
and receipt details) each produce a small mapping, or a list of line
items. Only the non-empty ones are rendered, each under a bold header,
in a fixed order. Every lookup is a single isolated pattern match, so
they may overlap with each other and with the top-level amount.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence, Tuple

from receiptscan.models.schemas import LineItem, NotesSections
from receiptscan.services.receipt_text import ReceiptText
from receiptscan.utils.helpers import titleize_key
from receiptscan.utils.vocabulary import PAYMENT_METHODS


# Price token: optional dollar sign, starts with a digit
_PRICE = r"\$?\d[\d,]*(?:\.\d+)?"


# ---------------------------------------------------------------------------
# Vendor

MAX_BUSINESS_NAME_LENGTH = 100

_BUSINESS_LINE = re.compile(r"\b(?:company|business|corp(?:oration)?|inc|llc)\b", re.I)
ADDRESS_PATTERNS = (
    # 123 Main St, Springfield 62701
    re.compile(
        r"\d+[ \t]+[A-Za-z][A-Za-z \t.]*?\b(?:street|st|avenue|ave|road|rd|lane|ln|blvd|boulevard)\b\.?"
        r"[ \t]*,?[ \t]*[A-Za-z \t,]*?\d{5}(?:-\d{4})?",
        re.I,
    ),
    # Springfield, IL 62701
    re.compile(r"[A-Za-z][A-Za-z \t.]*,[ \t]*[A-Z]{2}[ \t]+\d{5}(?:-\d{4})?"),
)
_PHONE = re.compile(r"\b(?:phone|tel|call)\b\.?[:\s]*(\(?[\d \-().]{10,})", re.I)
_EMAIL = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_WEBSITE = re.compile(r"\b(www\.[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}|[a-zA-Z0-9.-]+\.com)\b", re.I)


def vendor_info(receipt: ReceiptText) -> Dict[str, str]:
    info: Dict[str, str] = {}
    for line in receipt.lines:
        if _BUSINESS_LINE.search(line) and len(line) < MAX_BUSINESS_NAME_LENGTH:
            info["business_name"] = line
            break
    for pattern in ADDRESS_PATTERNS:
        match = pattern.search(receipt.text)
        if match:
            info["address"] = match.group(0).strip()
            break
    phone = _PHONE.search(receipt.text)
    if phone:
        info["phone"] = phone.group(1).strip()
    email = _EMAIL.search(receipt.text)
    if email:
        info["email"] = email.group(0)
    website = _WEBSITE.search(receipt.text)
    if website:
        info["website"] = website.group(1)
    return info


# ---------------------------------------------------------------------------
# Customer

# Runs until a blank line, a line starting with a capital letter or the end.
_CUSTOMER_BLOCK = re.compile(
    r"\b(?:bill\s+to|customer|client)\b:*\s*(.*?)(?=\n\n|\n(?-i:[A-Z])|\Z)",
    re.I | re.S,
)


def customer_info(receipt: ReceiptText) -> Dict[str, str]:
    match = _CUSTOMER_BLOCK.search(receipt.text)
    if not match:
        return {}
    parts = [part.strip() for part in match.group(1).split("\n") if part.strip()]
    return {"bill_to": ", ".join(parts)} if parts else {}


# ---------------------------------------------------------------------------
# Line items

# Minimum description length (exclusive) per pass. The fallback pass
# scans every line of the document and is stricter than the pass over
# the delimited items section; both values are kept as found in the
# field rules rather than unified.
PRIMARY_MIN_DESCRIPTION_LENGTH = 2
FALLBACK_MIN_DESCRIPTION_LENGTH = 3
FALLBACK_MIN_LINE_LENGTH = 10

_ITEMS_SECTION = re.compile(r"(?:item|description|qty|quantity)[\s\S]*?(?:total|subtotal|tax)", re.I)
_ITEMS_HEADER = re.compile(r"(?:item|description|qty|quantity|price|amount)", re.I)
_SEPARATOR = re.compile(r"[-=\s]+")

LINE_ITEM_SHAPES: Tuple[re.Pattern, ...] = (
    # 2 Coffee 7.00 / 2 x Coffee $7.00
    re.compile(rf"^(?P<qty>\d+(?:\.\d+)?)(?:\s*[xX]\s+|\s+)(?P<desc>.+?)\s+(?P<price>{_PRICE})$"),
    # Coffee 2 7.00 / Coffee 2 x $7.00
    re.compile(rf"^(?P<desc>.+?)\s+(?P<qty>\d+(?:\.\d+)?)(?:\s*[xX]\s*|\s+)(?P<price>{_PRICE})$"),
    # 2 Coffee - 7.00
    re.compile(rf"^(?P<qty>\d+(?:\.\d+)?)\s+(?P<desc>.+?)\s+-\s+(?P<price>{_PRICE})$"),
)
_SECTION_PRICE = re.compile(r"\$?\d[\d,]*\.\d{2}\b")
_SECTION_SUMMARY = re.compile(r"total|tax|subtotal", re.I)
_FALLBACK_PRICE = re.compile(r"\$\d[\d,]*(?:\.\d+)?")
_FALLBACK_SUMMARY = re.compile(r"total|subtotal|tax|amount\s+due|balance", re.I)


def _shaped_item(line: str) -> Optional[LineItem]:
    for shape in LINE_ITEM_SHAPES:
        match = shape.match(line)
        if match is None:
            continue
        quantity = re.sub(r"[^\d.]", "", match.group("qty"))
        return LineItem(
            description=match.group("desc").strip(),
            quantity=quantity if quantity[:1].isdigit() else None,
            price=match.group("price"),
        )
    return None


def _section_items(receipt: ReceiptText) -> List[LineItem]:
    section = _ITEMS_SECTION.search(receipt.text)
    if not section:
        return []
    items: List[LineItem] = []
    for raw_line in section.group(0).split("\n"):
        line = raw_line.strip()
        if not line or _ITEMS_HEADER.match(line) or _SEPARATOR.fullmatch(line):
            continue
        item = _shaped_item(line)
        if item is not None:
            items.append(item)
            continue
        price = _SECTION_PRICE.search(line)
        if price and not _SECTION_SUMMARY.search(line):
            description = line.replace(price.group(0), "").strip()
            if len(description) > PRIMARY_MIN_DESCRIPTION_LENGTH:
                items.append(LineItem(description=description, price=price.group(0)))
    return items


def _fallback_items(receipt: ReceiptText) -> List[LineItem]:
    items: List[LineItem] = []
    for line in receipt.lines:
        if len(line) <= FALLBACK_MIN_LINE_LENGTH or _FALLBACK_SUMMARY.search(line):
            continue
        price = _FALLBACK_PRICE.search(line)
        if not price:
            continue
        description = line.replace(price.group(0), "").strip()
        if len(description) > FALLBACK_MIN_DESCRIPTION_LENGTH:
            items.append(LineItem(description=description, price=price.group(0)))
    return items


def line_items(receipt: ReceiptText) -> List[LineItem]:
    return _section_items(receipt) or _fallback_items(receipt)


# ---------------------------------------------------------------------------
# Totals

_VALUE = rf"({_PRICE})"

TOTALS_PATTERNS: Tuple[Tuple[str, re.Pattern], ...] = (
    ("subtotal", re.compile(rf"sub\s*-?\s*total[\s:]*{_VALUE}", re.I)),
    ("tax", re.compile(rf"\b(?:tax|vat|gst)\b(?:\s*\([^)\n]*\))?[\s:]*{_VALUE}", re.I)),
    ("tip", re.compile(rf"\b(?:tip|gratuity)\b[\s:]*{_VALUE}", re.I)),
    ("discount", re.compile(rf"\b(?:discount|coupon|savings)\b[\s:\-]*{_VALUE}", re.I)),
    ("total", re.compile(rf"(?<!sub)(?<!sub )(?<!sub-)\b(?:grand\s*total|total|amount\s*due)\b[\s:]*{_VALUE}", re.I)),
)


def totals_breakdown(receipt: ReceiptText) -> Dict[str, str]:
    totals: Dict[str, str] = {}
    for key, pattern in TOTALS_PATTERNS:
        match = pattern.search(receipt.text)
        if match:
            totals[key] = match.group(1)
    return totals


# ---------------------------------------------------------------------------
# Payment

_METHOD_PATTERNS = tuple(
    (method, re.compile(rf"\b{method}\b", re.I)) for method in PAYMENT_METHODS
)
# No leading word boundary: also matches inside MASTERCARD or DEBITCARD
_CARD_REFERENCE = re.compile(r"(?:card|account)([^\n]*)", re.I)
_DIGIT_RUN = re.compile(r"\d+")
_TRANSACTION_ID = re.compile(
    r"\b(?:transaction|trans|reference|ref)\b\.?(?:[ \t]*(?:id|no|number)\b\.?)?[ \t#:]*([A-Za-z0-9]*\d[A-Za-z0-9]*)",
    re.I,
)


def _card_last_four(text: str) -> Optional[str]:
    for match in _CARD_REFERENCE.finditer(text):
        runs = [run for run in _DIGIT_RUN.findall(match.group(1)) if len(run) >= 4]
        if runs:
            return runs[-1][-4:]
    return None


def payment_info(receipt: ReceiptText) -> Dict[str, str]:
    info: Dict[str, str] = {}
    for method, pattern in _METHOD_PATTERNS:
        if pattern.search(receipt.text):
            info["method"] = method.capitalize()
            break
    last_four = _card_last_four(receipt.text)
    if last_four:
        info["card_last_four"] = last_four
    transaction = _TRANSACTION_ID.search(receipt.text)
    if transaction:
        info["transaction_id"] = transaction.group(1)
    return info


# ---------------------------------------------------------------------------
# Receipt details

_RECEIPT_NUMBER = re.compile(
    r"\b(?:receipt|invoice|order)\b\.?(?:[ \t]*(?:number|num|no)\b\.?)?[ \t#:]*([A-Za-z0-9\-]*\d[A-Za-z0-9\-]*)",
    re.I,
)
_CASHIER = re.compile(r"\b(?:cashier|server|clerk)\b[ \t:#]*([A-Za-z][A-Za-z \t]*)", re.I)
_STORE_NUMBER = re.compile(r"\b(?:store|location)\b[ \t#:]*(?:no\.?|number)?[ \t#:]*(\d+)", re.I)
_CLOCK_TIME = re.compile(r"(?<!\d)(\d{1,2}:\d{2}(?::\d{2})?(?:[ \t]*[AP]M\b)?)", re.I)


def receipt_details(receipt: ReceiptText) -> Dict[str, str]:
    details: Dict[str, str] = {}
    lookups = (
        ("receipt_number", _RECEIPT_NUMBER),
        ("cashier", _CASHIER),
        ("store_number", _STORE_NUMBER),
        ("time", _CLOCK_TIME),
    )
    for key, pattern in lookups:
        match = pattern.search(receipt.text)
        if match and match.group(1).strip():
            details[key] = match.group(1).strip()
    return details


# ---------------------------------------------------------------------------
# Rendering

SECTION_HEADERS: Sequence[Tuple[str, str]] = (
    ("vendor_info", "**VENDOR INFORMATION**"),
    ("customer_info", "**CUSTOMER INFORMATION**"),
    ("line_items", "**ITEMS/SERVICES**"),
    ("totals", "**TOTALS BREAKDOWN**"),
    ("payment_info", "**PAYMENT INFORMATION**"),
    ("receipt_details", "**RECEIPT DETAILS**"),
)


def collect_sections(receipt: ReceiptText) -> NotesSections:
    return NotesSections(
        vendor_info=vendor_info(receipt),
        customer_info=customer_info(receipt),
        line_items=line_items(receipt),
        totals=totals_breakdown(receipt),
        payment_info=payment_info(receipt),
        receipt_details=receipt_details(receipt),
    )


def _render_items(items: Sequence[LineItem]) -> List[str]:
    rendered = []
    for index, item in enumerate(items, start=1):
        line = f"{index}. {item.description}"
        if item.quantity:
            line += f" (Qty: {item.quantity})"
        rendered.append(f"{line} - {item.price}")
    return rendered


def format_notes(sections: NotesSections) -> Optional[str]:
    """Render non-empty sections as ``header`` + ``Key: value`` lines."""
    blocks: List[str] = []
    for name, header in SECTION_HEADERS:
        content = getattr(sections, name)
        if not content:
            continue
        if name == "line_items":
            body = _render_items(content)
        else:
            body = [f"{titleize_key(key)}: {value}" for key, value in content.items()]
        blocks.append("\n".join([header, *body]))
    return "\n\n".join(blocks) or None


def build_notes(receipt: ReceiptText) -> Optional[str]:
    return format_notes(collect_sections(receipt))
