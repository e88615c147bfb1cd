"""Currency-aware rounding and formatting.

Amounts are always :class:`~decimal.Decimal`; rounding is half-up to the
currency's minor unit so that stored totals match what is shown on invoices.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

THREE_DECIMAL_CURRENCIES = {"OMR", "BHD", "KWD", "JOD", "IQD", "LYD", "TND"}
ZERO_DECIMAL_CURRENCIES = {"JPY", "KRW", "VND", "CLP", "ISK"}


@dataclass(frozen=True)
class TaxLine:
    label: str
    rate: Decimal
    amount: Decimal
    total: Decimal


def minor_units(currency: str) -> int:
    code = (currency or "").upper()
    if code in THREE_DECIMAL_CURRENCIES:
        return 3
    if code in ZERO_DECIMAL_CURRENCIES:
        return 0
    return 2


def _quantum(currency: str) -> Decimal:
    return Decimal(1).scaleb(-minor_units(currency))


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(amount, currency: str) -> Decimal:
    return to_decimal(amount).quantize(_quantum(currency), rounding=ROUND_HALF_UP)


def format_money(amount, currency: str) -> str:
    return f"{currency.upper()} {round_money(amount, currency):,f}"


def format_rate(rate) -> str:
    value = to_decimal(rate).normalize()
    # normalize() turns 10 into 1E+1
    if value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    return format(value, "f")


def compute_tax(subtotal, rate_percent, currency: str) -> TaxLine:
    """Tax line for ``subtotal`` at ``rate_percent``.

    >>> compute_tax(Decimal("100"), Decimal("5"), "OMR").label
    'Tax (5%)'
    """
    rate = to_decimal(rate_percent)
    base = round_money(subtotal, currency)
    amount = round_money(base * rate / Decimal("100"), currency)
    return TaxLine(
        label=f"Tax ({format_rate(rate)}%)",
        rate=rate,
        amount=amount,
        total=round_money(base + amount, currency),
    )
