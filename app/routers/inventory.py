from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.deps import get_db_session, get_session_context
from app.core.session_context import SessionContext
from app.repositories.inventory_repo import InventoryRepository
from app.schemas.inventory import InventoryList, InventoryRead
from app.services.csv_export import csv_response
from app.services.inventory import available_quantity, inventory_value, is_low_stock, reorder_quantity

router = APIRouter(prefix="/inventory", tags=["inventory"])

EXPORT_HEADERS = [
    "sku",
    "product_name",
    "quantity",
    "consumed_quantity",
    "available",
    "minimum_quantity",
    "max_stock_level",
    "reorder_quantity",
    "price_per_unit",
    "unit",
    "location",
]


def _read(item) -> InventoryRead:
    data = InventoryRead.model_validate(item)
    data.available = available_quantity(item)
    data.low_stock = is_low_stock(item)
    return data


@router.get("", response_model=InventoryList)
async def list_inventory(context: SessionContext = Depends(get_session_context), session=Depends(get_db_session)):
    items = await InventoryRepository(session).list(customer_id=context.customer_scope())
    return InventoryList(items=[_read(item) for item in items], total_value=inventory_value(items))


@router.get("/low-stock", response_model=InventoryList)
async def low_stock(context: SessionContext = Depends(get_session_context), session=Depends(get_db_session)):
    items = [
        item
        for item in await InventoryRepository(session).list(customer_id=context.customer_scope())
        if is_low_stock(item)
    ]
    return InventoryList(items=[_read(item) for item in items], total_value=inventory_value(items))


@router.get("/export")
async def export_inventory(context: SessionContext = Depends(get_session_context), session=Depends(get_db_session)):
    items = await InventoryRepository(session).list(customer_id=context.customer_scope())
    rows = []
    for item in items:
        available = available_quantity(item)
        rows.append(
            {
                "sku": item.sku,
                "product_name": item.product_name,
                "quantity": item.quantity,
                "consumed_quantity": item.consumed_quantity,
                "available": available,
                "minimum_quantity": item.minimum_quantity,
                "max_stock_level": item.max_stock_level,
                "reorder_quantity": reorder_quantity(available, item.max_stock_level),
                "price_per_unit": item.price_per_unit,
                "unit": item.unit,
                "location": item.location,
            }
        )
    return csv_response(rows, "inventory.csv", EXPORT_HEADERS)
