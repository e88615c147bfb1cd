import uuid
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.core.errors import InsufficientStock, InvalidTransition, ValidationFailed
from app.models.enums import OrderStatus, OrderType
from app.services.inventory import (
    approve_order,
    available_quantity,
    build_order_line,
    check_stock,
    create_reorder,
    inventory_value,
    is_low_stock,
    needs_reorder,
    reorder_quantity,
)


def stock_item(quantity=100, consumed=0, minimum=10, price="2.500", maximum=None):
    return SimpleNamespace(
        id=uuid.uuid4(),
        customer_id=uuid.uuid4(),
        product_name="Bottled Water 500ml",
        quantity=quantity,
        consumed_quantity=consumed,
        minimum_quantity=minimum,
        max_stock_level=maximum,
        price_per_unit=Decimal(price),
    )


def order_for(item, *quantities, order_type=OrderType.STANDARD):
    return SimpleNamespace(
        status=OrderStatus.PENDING_APPROVAL,
        order_type=order_type,
        approved_at=None,
        approved_by=None,
        items=[
            SimpleNamespace(inventory_id=item.id, product_name=item.product_name, quantity=quantity)
            for quantity in quantities
        ],
    )


def test_available_quantity_subtracts_consumed():
    assert available_quantity(stock_item(100, 15)) == 85
    assert available_quantity(SimpleNamespace(quantity=None, consumed_quantity=None)) == 0


def test_low_stock_thresholds():
    at_minimum = stock_item(quantity=30, consumed=20, minimum=10)
    assert is_low_stock(at_minimum)
    assert not needs_reorder(at_minimum)

    below = stock_item(quantity=30, consumed=21, minimum=10)
    assert needs_reorder(below)
    assert not is_low_stock(stock_item())


def test_reorder_quantity():
    assert reorder_quantity(30, 100) == 70
    assert reorder_quantity(120, 100) == 0
    assert reorder_quantity(5, None) == 0


def test_inventory_value():
    items = [stock_item(quantity=4, price="2.5"), stock_item(quantity=10, price="1.25")]
    assert inventory_value(items) == Decimal("22.5")
    assert inventory_value([]) == Decimal("0")


def test_approving_standard_order_consumes_stock():
    item = stock_item()
    order = order_for(item, 15)
    approver = uuid.uuid4()
    now = datetime(2026, 3, 1, tzinfo=timezone.utc)

    approve_order(order, {item.id: item}, approved_by=approver, now=now)

    assert item.consumed_quantity == 15
    assert available_quantity(item) == 85
    assert item.quantity == 100
    assert order.status == OrderStatus.APPROVED
    assert order.approved_by == approver
    assert order.approved_at == now


def test_shortage_blocks_approval_and_leaves_stock_untouched():
    item = stock_item(quantity=10)
    order = order_for(item, 15)

    with pytest.raises(InsufficientStock) as excinfo:
        approve_order(order, {item.id: item})

    shortage = excinfo.value.details["shortages"][0]
    assert shortage["requested"] == 15
    assert shortage["available"] == 10
    assert item.consumed_quantity == 0
    assert order.status == OrderStatus.PENDING_APPROVAL


def test_lines_for_same_item_are_summed():
    item = stock_item(quantity=10)
    shortages = check_stock(order_for(item, 6, 6).items, {item.id: item})
    assert [(s.requested, s.available) for s in shortages] == [(12, 10)]


def test_missing_inventory_is_a_shortage():
    item = stock_item()
    shortages = check_stock(order_for(item, 1).items, {})
    assert shortages[0].available == 0
    assert shortages[0].product_name == item.product_name


def test_approving_reorder_adds_stock():
    item = stock_item(quantity=100, consumed=40)
    order = order_for(item, 20, order_type=OrderType.REORDER)

    approve_order(order, {item.id: item})

    assert item.quantity == 120
    assert item.consumed_quantity == 40
    assert order.status == OrderStatus.APPROVED


def test_order_cannot_be_approved_twice():
    item = stock_item()
    order = order_for(item, 1)
    approve_order(order, {item.id: item})
    with pytest.raises(InvalidTransition):
        approve_order(order, {item.id: item})
    assert item.consumed_quantity == 1


def test_build_order_line():
    item = stock_item(price="2.5")
    line = build_order_line(item, 4)
    assert line.inventory_id == item.id
    assert line.total_price == Decimal("10.0")
    with pytest.raises(ValidationFailed):
        build_order_line(item, 0)


def test_create_reorder():
    item = stock_item(price="1.5")
    creator = uuid.uuid4()
    order = create_reorder(item, 30, "ACME-ORD-00002", creator)

    assert order.order_type == OrderType.REORDER
    assert order.status == OrderStatus.PENDING_APPROVAL
    assert order.customer_id == item.customer_id
    assert order.total_amount == Decimal("45.0")
    assert order.created_by == creator
    assert [line.quantity for line in order.items] == [30]
