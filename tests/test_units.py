from decimal import Decimal

import pytest

from app.core.errors import ValidationFailed
from app.models.enums import DimensionUnit, WeightUnit
from app.services.units import convert_to_cm, convert_to_kg


def test_length_conversions():
    assert convert_to_cm(Decimal("2"), "m") == Decimal("200")
    assert convert_to_cm(10, "in") == Decimal("25.40")
    assert convert_to_cm("12.5", DimensionUnit.CM) == Decimal("12.5")


def test_weight_conversions():
    assert convert_to_kg(10, "lb") == Decimal("4.535920")
    assert convert_to_kg(Decimal("3"), WeightUnit.KG) == Decimal("3")


def test_units_are_case_insensitive():
    assert convert_to_cm(1, "M") == Decimal("100")
    assert convert_to_kg(1, "KG") == Decimal("1")


@pytest.mark.parametrize("unit", ["ft", "mm", ""])
def test_unknown_length_unit(unit):
    with pytest.raises(ValidationFailed):
        convert_to_cm(1, unit)


def test_unknown_weight_unit():
    with pytest.raises(ValidationFailed):
        convert_to_kg(1, "oz")
