"""Miscellaneous parsing helpers shared by the extraction rules."""

from __future__ import annotations

import datetime as dt
import re
from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence


DATE_FORMATS: Sequence[str] = (
    "%m/%d/%Y", "%m-%d-%Y", "%m.%d.%Y",
    "%d/%m/%Y", "%d-%m-%Y", "%d.%m.%Y",
    "%m/%d/%y", "%m-%d-%y", "%m.%d.%y",
    "%d/%m/%y", "%d-%m-%y", "%d.%m.%y",
    "%Y/%m/%d", "%Y-%m-%d", "%Y.%m.%d",
    "%B %d, %Y", "%b %d, %Y", "%B %d %Y", "%b %d %Y",
    "%d %B %Y", "%d %b %Y", "%d %B %y", "%d %b %y",
)

MAX_DATE_AGE_YEARS = 5

_DECIMAL_COMMA = re.compile(r",\d{2}$")
_WHITESPACE = re.compile(r"\s+")
_MERCHANT_ARTIFACTS = re.compile(r"[#*]+")


def parse_amount(value: str | None) -> Optional[Decimal]:
    """Parse a monetary string such as ``$1,234.56`` or ``12,50``.

    A single comma followed by exactly two trailing digits (and no dot)
    is a decimal comma; any other comma is a thousands separator.
    Returns ``None`` when the value cannot be parsed.
    """
    if not value:
        return None
    cleaned = value.replace("$", "").replace(" ", "").strip()
    if "." not in cleaned and cleaned.count(",") == 1 and _DECIMAL_COMMA.search(cleaned):
        cleaned = cleaned.replace(",", ".")
    else:
        cleaned = cleaned.replace(",", "")
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount


def years_before(day: dt.date, years: int) -> dt.date:
    """Return ``day`` shifted back by whole years (Feb 29 -> Feb 28)."""
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


def parse_receipt_date(value: str | None, today: dt.date) -> Optional[dt.date]:
    """Parse ``value`` with the first matching format in ``DATE_FORMATS``.

    Only dates within ``[today - 5 years, today]`` are accepted; a date
    that parses but falls outside the window makes the next format be
    tried, and ``None`` is returned when nothing acceptable is found.
    """
    if not value:
        return None
    earliest = years_before(today, MAX_DATE_AGE_YEARS)
    for fmt in DATE_FORMATS:
        try:
            parsed = dt.datetime.strptime(value, fmt).date()
        except ValueError:
            continue
        if earliest <= parsed <= today:
            return parsed
    return None


def clean_merchant_name(name: str) -> str:
    """Strip receipt artifacts (``#``, ``*``), collapse spaces and title-case."""
    cleaned = _MERCHANT_ARTIFACTS.sub("", name).strip()
    cleaned = _WHITESPACE.sub(" ", cleaned)
    return " ".join(word.capitalize() for word in cleaned.split())


def titleize_key(key: str) -> str:
    """``card_last_four`` -> ``Card Last Four``."""
    return " ".join(part.capitalize() for part in key.split("_") if part)
