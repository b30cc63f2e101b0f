from receiptscan.services.notes_builder import (
    build_notes,
    customer_info,
    line_items,
    payment_info,
    receipt_details,
    totals_breakdown,
    vendor_info,
)
from receiptscan.services.receipt_text import ReceiptText


def _receipt(raw: str) -> ReceiptText:
    return ReceiptText.from_raw(raw)


def test_totals_do_not_confuse_subtotal_with_total():
    totals = totals_breakdown(_receipt("Subtotal: $10.00\nTax: $0.80\nTotal: $10.80"))
    assert totals == {"subtotal": "$10.00", "tax": "$0.80", "total": "$10.80"}


def test_line_items_from_items_section():
    receipt = _receipt("Item Qty Price\n2 Coffee 7.00\nMuffin 1 3.50\nTotal 10.50")
    items = line_items(receipt)
    assert [(i.description, i.quantity, i.price) for i in items] == [
        ("Coffee", "2", "7.00"),
        ("Muffin", "1", "3.50"),
    ]


def test_line_items_fallback_needs_dollar_price():
    receipt = _receipt("Groceries Inc\nOrganic Apples $4.99\nWhole Milk $3.49\nTotal $8.48")
    items = line_items(receipt)
    assert [(i.description, i.quantity, i.price) for i in items] == [
        ("Organic Apples", None, "$4.99"),
        ("Whole Milk", None, "$3.49"),
    ]


def test_vendor_business_name_and_contacts():
    receipt = _receipt(
        "Groceries Inc\nSpringfield, IL 62701\nPhone: (555) 123-4567\nhello@groceries.example.com"
    )
    info = vendor_info(receipt)
    assert info["business_name"] == "Groceries Inc"
    assert info["address"] == "Springfield, IL 62701"
    assert info["phone"] == "(555) 123-4567"
    assert info["email"] == "hello@groceries.example.com"


def test_customer_block_joins_lines():
    info = customer_info(_receipt("Customer: Jane Doe\nanytown road\n\nThanks"))
    assert info == {"bill_to": "Jane Doe, anytown road"}


def test_payment_info():
    info = payment_info(_receipt("Paid with VISA\nCard: **** **** **** 4242\nTransaction ID: TX98765"))
    assert info == {"method": "Visa", "card_last_four": "4242", "transaction_id": "TX98765"}


def test_card_last_four_inside_card_brand_word():
    info = payment_info(_receipt("MASTERCARD ****5678\nTotal $13.00"))
    assert info == {"method": "Mastercard", "card_last_four": "5678"}


def test_receipt_details():
    details = receipt_details(_receipt("Receipt #: 10045\nCashier: Maria\nStore #123\n02:45 PM"))
    assert details == {
        "receipt_number": "10045",
        "cashier": "Maria",
        "store_number": "123",
        "time": "02:45 PM",
    }


def test_receipt_number_requires_a_digit():
    assert "receipt_number" not in receipt_details(_receipt("Thank you for your order today"))


def test_build_notes_renders_sections_in_order():
    notes = build_notes(_receipt("Subtotal: $10.00\nTotal: $10.80\nPaid by cash"))
    assert notes == (
        "**TOTALS BREAKDOWN**\n"
        "Subtotal: $10.00\n"
        "Total: $10.80\n"
        "\n"
        "**PAYMENT INFORMATION**\n"
        "Method: Cash"
    )


def test_build_notes_renders_quantities():
    notes = build_notes(_receipt("Item Qty Price\n2 Coffee 7.00\nTotal 7.00"))
    assert "**ITEMS/SERVICES**\n1. Coffee (Qty: 2) - 7.00" in notes


def test_build_notes_none_when_nothing_found():
    assert build_notes(_receipt("hello world")) is None
