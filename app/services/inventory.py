from __future__ import annotations

import uuid
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable

from app.core.errors import InsufficientStock, ValidationFailed
from app.models.enums import OrderStatus, OrderType
from app.models.order import WmsOrder, WmsOrderItem
from app.services.money import to_decimal
from app.services.workflow import ORDER_WORKFLOW


@dataclass(frozen=True)
class Shortage:
    inventory_id: uuid.UUID
    product_name: str
    requested: int
    available: int

    def as_dict(self) -> dict:
        return {
            "inventory_id": str(self.inventory_id),
            "product_name": self.product_name,
            "requested": self.requested,
            "available": self.available,
        }


def available_quantity(item) -> int:
    return int(item.quantity or 0) - int(item.consumed_quantity or 0)


def is_low_stock(item) -> bool:
    return available_quantity(item) <= int(item.minimum_quantity or 0)


def needs_reorder(item) -> bool:
    return available_quantity(item) < int(item.minimum_quantity or 0)


def reorder_quantity(current: int, maximum: int | None) -> int:
    if maximum is None:
        return 0
    return max(int(maximum) - int(current), 0)


def inventory_value(items: Iterable) -> Decimal:
    return sum((to_decimal(item.price_per_unit) * int(item.quantity or 0) for item in items), Decimal("0"))


def check_stock(order_items: Iterable, inventory: dict) -> list[Shortage]:
    """Shortages for ``order_items`` against ``inventory`` (keyed by inventory id).

    Lines for the same inventory item are summed before comparing.
    """
    requested: dict[uuid.UUID, int] = defaultdict(int)
    names: dict[uuid.UUID, str] = {}
    for line in order_items:
        requested[line.inventory_id] += int(line.quantity)
        names[line.inventory_id] = line.product_name

    shortages = []
    for inventory_id, quantity in requested.items():
        item = inventory.get(inventory_id)
        stock = available_quantity(item) if item is not None else 0
        if quantity > stock:
            shortages.append(
                Shortage(
                    inventory_id=inventory_id,
                    product_name=item.product_name if item is not None else names[inventory_id],
                    requested=quantity,
                    available=stock,
                )
            )
    return shortages


def approve_order(order, inventory: dict, approved_by: uuid.UUID | None = None, now: datetime | None = None) -> None:
    """Approve ``order`` in place, moving stock.

    A standard order consumes stock and is blocked by any shortage; a reorder adds
    its quantities to stock.
    """
    ORDER_WORKFLOW.assert_transition(order.status, OrderStatus.APPROVED)

    if OrderType(order.order_type) == OrderType.STANDARD:
        shortages = check_stock(order.items, inventory)
        if shortages:
            raise InsufficientStock(
                "Insufficient stock to approve order",
                details={"shortages": [shortage.as_dict() for shortage in shortages]},
            )
        for line in order.items:
            item = inventory[line.inventory_id]
            item.consumed_quantity = int(item.consumed_quantity or 0) + int(line.quantity)
    else:
        for line in order.items:
            item = inventory.get(line.inventory_id)
            if item is None:
                raise ValidationFailed(f"Unknown inventory item {line.inventory_id}")
            item.quantity = int(item.quantity or 0) + int(line.quantity)

    order.status = OrderStatus.APPROVED
    order.approved_at = now or datetime.now(timezone.utc)
    order.approved_by = approved_by


def build_order_line(item, quantity: int) -> WmsOrderItem:
    if quantity < 1:
        raise ValidationFailed("quantity must be >= 1")
    price = to_decimal(item.price_per_unit)
    return WmsOrderItem(
        inventory_id=item.id,
        product_name=item.product_name,
        quantity=quantity,
        price_per_unit=price,
        total_price=price * quantity,
    )


def create_reorder(item, quantity: int, order_number: str, created_by: uuid.UUID | None = None) -> WmsOrder:
    line = build_order_line(item, quantity)
    return WmsOrder(
        order_number=order_number,
        customer_id=item.customer_id,
        order_type=OrderType.REORDER,
        status=OrderStatus.PENDING_APPROVAL,
        total_amount=line.total_price,
        created_by=created_by,
        items=[line],
    )
