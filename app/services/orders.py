from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFound, ValidationFailed
from app.core.logging import get_logger
from app.models.enums import OrderStatus, OrderType
from app.models.order import WmsOrder
from app.repositories.inventory_repo import InventoryRepository
from app.repositories.order_repo import OrderRepository
from app.repositories.profile_repo import ProfileRepository
from app.services.inventory import approve_order, build_order_line, create_reorder
from app.services.workflow import ORDER_WORKFLOW

logger = get_logger()


class OrderService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.order_repo = OrderRepository(session)
        self.inventory_repo = InventoryRepository(session)
        self.profile_repo = ProfileRepository(session)

    async def next_order_number(self, customer_id: uuid.UUID) -> str:
        customer = await self.profile_repo.get_customer(customer_id)
        if customer is None:
            raise NotFound("Customer not found")
        count = await self.order_repo.count_for_customer(customer_id)
        return f"{customer.customer_code}-ORD-{count + 1:05d}"

    async def create_order(
        self,
        customer_id: uuid.UUID,
        lines: list[tuple[uuid.UUID, int]],
        created_by: uuid.UUID | None = None,
        delivery_address: str | None = None,
        notes: str | None = None,
    ) -> WmsOrder:
        if not lines:
            raise ValidationFailed("Order needs at least one item")
        inventory = await self.inventory_repo.get_many([inventory_id for inventory_id, _ in lines])
        items = []
        for inventory_id, quantity in lines:
            item = inventory.get(inventory_id)
            if item is None or item.customer_id != customer_id:
                raise NotFound("Inventory item not found")
            items.append(build_order_line(item, quantity))

        order = WmsOrder(
            order_number=await self.next_order_number(customer_id),
            customer_id=customer_id,
            order_type=OrderType.STANDARD,
            status=OrderStatus.PENDING_APPROVAL,
            total_amount=sum(line.total_price for line in items),
            delivery_address=delivery_address,
            notes=notes,
            created_by=created_by,
            items=items,
        )
        order = await self.order_repo.save(order)
        logger.info("order_created", order_id=str(order.id), lines=len(items))
        return order

    async def approve(self, order: WmsOrder, approved_by: uuid.UUID | None = None) -> WmsOrder:
        inventory = await self.inventory_repo.get_many([line.inventory_id for line in order.items])
        approve_order(order, inventory, approved_by=approved_by)
        order = await self.order_repo.save(order)
        logger.info("order_approved", order_id=str(order.id), order_type=OrderType(order.order_type).value)
        return order

    async def transition(self, order: WmsOrder, target: OrderStatus) -> WmsOrder:
        if target == OrderStatus.APPROVED:
            return await self.approve(order)
        ORDER_WORKFLOW.assert_transition(order.status, target)
        order.status = target
        if target == OrderStatus.DELIVERED:
            order.delivered_at = datetime.now(timezone.utc)
        return await self.order_repo.save(order)

    async def reorder(self, inventory_id: uuid.UUID, quantity: int, created_by: uuid.UUID | None = None) -> WmsOrder:
        item = await self.inventory_repo.get(inventory_id)
        if item is None:
            raise NotFound("Inventory item not found")
        order = create_reorder(item, quantity, await self.next_order_number(item.customer_id), created_by)
        order = await self.order_repo.save(order)
        logger.info("reorder_created", order_id=str(order.id), inventory_id=str(inventory_id), quantity=quantity)
        return order
