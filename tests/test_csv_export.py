from datetime import date
from decimal import Decimal

from app.models.enums import OrderStatus
from app.services.csv_export import array_to_csv, csv_response, parse_csv


def test_empty_rows():
    assert array_to_csv([]) == ""
    assert array_to_csv([], ["sku", "quantity"]) == "sku,quantity"


def test_cells_are_quoted_when_needed():
    rows = [{"name": 'Crate "XL", blue', "notes": "line1\nline2", "sku": "C-1"}]
    assert array_to_csv(rows) == 'name,notes,sku\n"Crate ""XL"", blue","line1\nline2",C-1'


def test_value_formatting():
    rows = [
        {
            "status": OrderStatus.IN_PROGRESS,
            "total": Decimal("12.500"),
            "date": date(2026, 4, 2),
            "paid": False,
            "missing": None,
            "meta": {"a": 1},
        }
    ]
    assert array_to_csv(rows).splitlines()[1] == 'in_progress,12.500,2026-04-02,false,,"{""a"": 1}"'


def test_headers_select_and_order_columns():
    rows = [{"a": 1, "b": 2, "c": 3}]
    assert array_to_csv(rows, ["c", "a"]) == "c,a\n3,1"


def test_parse_csv_restores_types():
    text = array_to_csv([{"sku": "A-1", "quantity": 5, "price": 2.5, "tags": ["x"], "note": None}])
    assert parse_csv(text) == [{"sku": "A-1", "quantity": 5, "price": 2.5, "tags": ["x"], "note": None}]


def test_parse_csv_keeps_non_finite_numbers_as_text():
    assert parse_csv("value\nnan\ninf") == [{"value": "nan"}, {"value": "inf"}]
    assert parse_csv("   ") == []


def test_csv_response_headers():
    response = csv_response([{"a": 1}], "orders.csv")
    assert response.media_type == "text/csv"
    assert response.headers["content-disposition"] == 'attachment; filename="orders.csv"'


def test_round_trip_with_comma_and_null():
    rows = [{"name": "Dates, Medjool", "quantity": 12, "location": None}]
    assert parse_csv(array_to_csv(rows)) == rows
