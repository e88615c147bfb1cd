import uuid
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.core.errors import InvalidTransition, NotFound, ValidationFailed
from app.models.enums import OrderStatus, OrderType
from app.services.orders import OrderService


class FakeSession:
    pass


class FakeOrderRepo:
    def __init__(self, count=0):
        self.count = count
        self.saved = []

    async def count_for_customer(self, customer_id):
        return self.count

    async def save(self, order):
        if order.id is None:
            order.id = uuid.uuid4()
        self.saved.append(order)
        return order


class FakeInventoryRepo:
    def __init__(self, *items):
        self.items = {item.id: item for item in items}

    async def get(self, item_id, customer_id=None):
        return self.items.get(item_id)

    async def get_many(self, item_ids):
        return {item_id: self.items[item_id] for item_id in item_ids if item_id in self.items}


class FakeProfileRepo:
    def __init__(self, customer):
        self.customer = customer

    async def get_customer(self, customer_id):
        return self.customer


def make_service(*items, count=0, customer=None):
    service = OrderService(FakeSession())
    service.order_repo = FakeOrderRepo(count)
    service.inventory_repo = FakeInventoryRepo(*items)
    service.profile_repo = FakeProfileRepo(customer)
    return service


CUSTOMER = SimpleNamespace(id=uuid.uuid4(), customer_code="ACME")


def stock_item(customer_id=CUSTOMER.id, quantity=100, price="2.5"):
    return SimpleNamespace(
        id=uuid.uuid4(),
        customer_id=customer_id,
        product_name="Rice 5kg",
        quantity=quantity,
        consumed_quantity=0,
        price_per_unit=Decimal(price),
    )


@pytest.mark.asyncio
async def test_create_order_numbers_and_prices_lines():
    item = stock_item()
    service = make_service(item, count=4, customer=CUSTOMER)

    order = await service.create_order(CUSTOMER.id, [(item.id, 3)], created_by=uuid.uuid4(), notes="Gate 2")

    assert order.order_number == "ACME-ORD-00005"
    assert order.status == OrderStatus.PENDING_APPROVAL
    assert order.order_type == OrderType.STANDARD
    assert order.total_amount == Decimal("7.5")
    assert order.notes == "Gate 2"
    assert service.order_repo.saved == [order]


@pytest.mark.asyncio
async def test_create_order_rejects_other_customers_stock():
    item = stock_item(customer_id=uuid.uuid4())
    service = make_service(item, customer=CUSTOMER)

    with pytest.raises(NotFound):
        await service.create_order(CUSTOMER.id, [(item.id, 1)])


@pytest.mark.asyncio
async def test_create_order_needs_lines():
    service = make_service(customer=CUSTOMER)
    with pytest.raises(ValidationFailed):
        await service.create_order(CUSTOMER.id, [])


@pytest.mark.asyncio
async def test_order_number_needs_customer():
    service = make_service(customer=None)
    with pytest.raises(NotFound):
        await service.next_order_number(uuid.uuid4())


@pytest.mark.asyncio
async def test_approve_then_walk_to_completion():
    item = stock_item()
    service = make_service(item, customer=CUSTOMER)
    order = await service.create_order(CUSTOMER.id, [(item.id, 15)])

    order = await service.transition(order, OrderStatus.APPROVED)
    assert item.consumed_quantity == 15
    assert order.approved_at is not None

    order = await service.transition(order, OrderStatus.IN_PROGRESS)
    order = await service.transition(order, OrderStatus.DELIVERED)
    assert order.delivered_at is not None
    order = await service.transition(order, OrderStatus.COMPLETED)
    assert order.status == OrderStatus.COMPLETED

    with pytest.raises(InvalidTransition):
        await service.transition(order, OrderStatus.CANCELLED)


@pytest.mark.asyncio
async def test_reorder_creates_pending_reorder():
    item = stock_item(price="4")
    service = make_service(item, count=1, customer=CUSTOMER)

    order = await service.reorder(item.id, 25)

    assert order.order_type == OrderType.REORDER
    assert order.order_number == "ACME-ORD-00002"
    assert order.total_amount == Decimal("100")

    await service.approve(order)
    assert item.quantity == 125


@pytest.mark.asyncio
async def test_reorder_of_unknown_item():
    service = make_service(customer=CUSTOMER)
    with pytest.raises(NotFound):
        await service.reorder(uuid.uuid4(), 5)
