from __future__ import annotations

from decimal import Decimal

from app.core.errors import ValidationFailed

LENGTH_TO_CM: dict[str, Decimal] = {
    "cm": Decimal("1"),
    "m": Decimal("100"),
    "in": Decimal("2.54"),
}

WEIGHT_TO_KG: dict[str, Decimal] = {
    "kg": Decimal("1"),
    "lb": Decimal("0.453592"),
}


def _unit_key(unit) -> str:
    return str(getattr(unit, "value", unit)).lower()


def convert_to_cm(value: Decimal | int | float | str, unit) -> Decimal:
    factor = LENGTH_TO_CM.get(_unit_key(unit))
    if factor is None:
        raise ValidationFailed(f"Unknown dimension unit: {unit}")
    return Decimal(str(value)) * factor


def convert_to_kg(value: Decimal | int | float | str, unit) -> Decimal:
    factor = WEIGHT_TO_KG.get(_unit_key(unit))
    if factor is None:
        raise ValidationFailed(f"Unknown weight unit: {unit}")
    return Decimal(str(value)) * factor
