from decimal import Decimal

from app.services.money import compute_tax, format_money, format_rate, minor_units, round_money


def test_minor_units_by_currency():
    assert minor_units("OMR") == 3
    assert minor_units("usd") == 2
    assert minor_units("JPY") == 0
    assert minor_units("") == 2


def test_round_money_is_half_up():
    assert round_money(Decimal("1.0005"), "OMR") == Decimal("1.001")
    assert round_money("2.345", "USD") == Decimal("2.35")
    assert round_money("10.5", "JPY") == Decimal("11")


def test_format_money():
    assert format_money(Decimal("1234.5"), "OMR") == "OMR 1,234.500"
    assert format_money(0, "usd") == "USD 0.00"


def test_format_rate_strips_trailing_zeros():
    assert format_rate(Decimal("5.000")) == "5"
    assert format_rate(Decimal("10")) == "10"
    assert format_rate(Decimal("7.50")) == "7.5"


def test_compute_tax():
    tax = compute_tax(Decimal("100"), Decimal("5"), "OMR")
    assert tax.label == "Tax (5%)"
    assert tax.amount == Decimal("5.000")
    assert tax.total == Decimal("105.000")


def test_compute_tax_for_exempt_customer():
    tax = compute_tax(Decimal("100"), 0, "OMR")
    assert tax.label == "Tax (0%)"
    assert tax.amount == Decimal("0.000")
    assert tax.total == Decimal("100.000")
