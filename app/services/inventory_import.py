"""Spreadsheet import of WMS inventory.

Rows are validated one by one; a bad row is reported and skipped, it never aborts
the rest of the file. Row numbers in the report are spreadsheet rows, so the first
data row is row 2.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from io import BytesIO
from pathlib import PurePath
from typing import Any

import pandas as pd
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import ValidationFailed
from app.core.logging import get_logger
from app.models.inventory import WmsInventory
from app.repositories.inventory_repo import InventoryRepository

logger = get_logger()

SUPPORTED_EXTENSIONS = {".xlsx", ".xls", ".csv"}
REQUIRED_MESSAGE = "Missing required fields: product_name, sku, quantity, price (or price_per_unit)"


@dataclass
class ImportResult:
    total: int = 0
    success: int = 0
    failed: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def fail(self, row_number: int, error: str, data: dict) -> None:
        self.failed += 1
        self.errors.append({"row": row_number, "error": error, "data": data})

    def as_dict(self) -> dict[str, Any]:
        return {"total": self.total, "success": self.success, "failed": self.failed, "errors": self.errors}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip().lower().replace(" ", "_").replace("-", "_") for c in df.columns]
    return df


def _to_records(df: pd.DataFrame) -> list[dict]:
    return json.loads(df.to_json(orient="records", date_format="iso"))


def read_rows(content: bytes, filename: str) -> list[dict]:
    settings = get_settings()
    if len(content) > settings.import_max_bytes:
        raise ValidationFailed("File size exceeds 5MB limit")
    extension = PurePath(filename or "").suffix.lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise ValidationFailed("Unsupported file type; use .xlsx, .xls or .csv")
    buffer = BytesIO(content)
    try:
        if extension == ".csv":
            df = pd.read_csv(buffer)
        else:
            df = pd.read_excel(buffer)
    except (ValueError, pd.errors.ParserError) as exc:
        raise ValidationFailed("Could not read spreadsheet") from exc
    return _to_records(_normalize_columns(df))


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _number(value: Any, name: str) -> Decimal:
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Invalid {name}: {value}") from exc
    if not number.is_finite():
        raise ValueError(f"Invalid {name}: {value}")
    if number < 0:
        raise ValueError(f"{name} must be >= 0")
    return number


def _whole(value: Any, name: str) -> int:
    number = _number(value, name)
    if number != number.to_integral_value():
        raise ValueError(f"{name} must be a whole number")
    return int(number)


def _optional_int(value: Any, name: str) -> int | None:
    if _blank(value):
        return None
    return _whole(value, name)


def build_item(customer_id: uuid.UUID, row: dict) -> WmsInventory:
    price = row.get("price")
    if _blank(price):
        price = row.get("price_per_unit")
    if any(_blank(row.get(name)) for name in ("product_name", "sku", "quantity")) or _blank(price):
        raise ValueError(REQUIRED_MESSAGE)

    return WmsInventory(
        customer_id=customer_id,
        product_name=str(row["product_name"]).strip(),
        sku=str(row["sku"]).strip(),
        quantity=_whole(row["quantity"], "quantity"),
        consumed_quantity=0,
        price_per_unit=_number(price, "price"),
        description=None if _blank(row.get("description")) else str(row["description"]),
        location=None if _blank(row.get("location")) else str(row["location"]),
        unit=str(row["unit"]) if not _blank(row.get("unit")) else "pcs",
        minimum_quantity=_optional_int(row.get("minimum_quantity"), "minimum_quantity") or 0,
        max_stock_level=_optional_int(row.get("max_stock_level"), "max_stock_level"),
    )


def plan_import(
    customer_id: uuid.UUID, rows: list[dict], existing_skus: set[str]
) -> tuple[list[WmsInventory], ImportResult]:
    result = ImportResult(total=len(rows))
    seen = set(existing_skus)
    items: list[WmsInventory] = []
    for index, row in enumerate(rows):
        row_number = index + 2
        try:
            item = build_item(customer_id, row)
            if item.sku in seen:
                raise ValueError(f"Duplicate SKU: {item.sku} already exists")
        except ValueError as exc:
            result.fail(row_number, str(exc), row)
            continue
        seen.add(item.sku)
        items.append(item)
        result.success += 1
    return items, result


class InventoryImporter:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.inventory_repo = InventoryRepository(session)

    async def import_file(self, customer_id: uuid.UUID, content: bytes, filename: str) -> ImportResult:
        rows = read_rows(content, filename)
        existing = await self.inventory_repo.existing_skus(customer_id)
        items, result = plan_import(customer_id, rows, existing)
        if items:
            self.session.add_all(items)
            await self.session.commit()
        logger.info(
            "inventory_import_completed",
            customer_id=str(customer_id),
            total=result.total,
            success=result.success,
            failed=result.failed,
        )
        return result
