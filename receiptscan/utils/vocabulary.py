"""Static keyword tables used by the field extractor.

These are configuration data rather than logic: extend the lists here
to teach the extractor new merchants or category hints without touching
the extraction rules. Keywords are matched as lowercase substrings.
"""

from __future__ import annotations

from typing import Dict, Tuple

from receiptscan.models.enums import Category


MERCHANT_KEYWORDS: Tuple[str, ...] = (
    "store", "shop", "market", "restaurant", "cafe", "coffee", "bar", "grill", "pub",
    "walmart", "target", "amazon", "costco", "kroger", "safeway", "cvs", "walgreens",
    "mcdonalds", "subway", "starbucks", "chipotle", "panera", "kfc", "taco",
    "gas", "station", "shell", "exxon", "bp", "chevron", "mobil",
    "hotel", "motel", "inn", "resort", "spa",
    "pharmacy", "drugstore",
)

# Insertion order is the tie-break order; it must follow ``Category``.
CATEGORY_KEYWORDS: Dict[Category, Tuple[str, ...]] = {
    Category.FOOD: ("restaurant", "cafe", "coffee", "food", "grocery", "market", "deli", "bakery", "pizza", "burger"),
    Category.GAS: ("gas", "station", "fuel", "gasoline", "diesel"),
    Category.SHOPPING: ("walmart", "target", "costco", "store", "shop", "retail", "clothing"),
    Category.PHARMACY: ("pharmacy", "drugstore", "cvs", "walgreens", "medicine"),
    Category.ENTERTAINMENT: ("movie", "theater", "cinema", "bar", "pub", "entertainment"),
    Category.TRAVEL: ("hotel", "motel", "inn", "resort", "airline", "taxi", "uber", "lyft"),
    Category.UTILITIES: ("electric", "power", "water", "gas", "utility", "bill"),
    Category.HEALTHCARE: ("doctor", "hospital", "medical", "clinic", "dental"),
    Category.PROFESSIONAL_SERVICES: (
        "design", "architecture", "consulting", "legal", "accounting", "invoice", "professional", "service",
    ),
    Category.OFFICE_SUPPLIES: ("furniture", "office", "supplies", "equipment", "software"),
}

# Symbol or code -> ISO 4217 code
CURRENCY_CODES: Dict[str, str] = {
    "$": "USD",
    "US$": "USD",
    "USD": "USD",
    "€": "EUR",
    "EUR": "EUR",
    "£": "GBP",
    "GBP": "GBP",
    "¥": "JPY",
    "JPY": "JPY",
    "C$": "CAD",
    "CAD": "CAD",
    "A$": "AUD",
    "AUD": "AUD",
    "₹": "INR",
    "INR": "INR",
}

PAYMENT_METHODS: Tuple[str, ...] = (
    "cash", "credit", "debit", "visa", "mastercard", "amex", "discover", "check", "paypal",
)
