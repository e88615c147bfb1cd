from __future__ import annotations

import uuid
from fastapi import APIRouter, Depends, HTTPException, status

from app.core.deps import get_db_session, get_session_context, require_capability
from app.core.errors import NotPermitted, ValidationFailed
from app.core.session_context import SessionContext
from app.models.enums import OrderStatus
from app.models.order import WmsOrder
from app.repositories.inventory_repo import InventoryRepository
from app.repositories.order_repo import OrderRepository
from app.schemas.order import OrderCreate, OrderList, OrderRead, OrderTransition, ReorderCreate
from app.schemas.workflow import ActionList
from app.services.csv_export import csv_response
from app.services.inventory import available_quantity, reorder_quantity
from app.services.orders import OrderService
from app.services.workflow import ORDER_WORKFLOW

router = APIRouter(prefix="/orders", tags=["orders"])

EXPORT_HEADERS = ["order_number", "order_type", "status", "total_amount", "items", "delivery_address", "created_at"]


async def _load(session, order_id: uuid.UUID, context: SessionContext) -> WmsOrder:
    order = await OrderRepository(session).get(order_id, customer_id=context.customer_scope())
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


@router.post("", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    context.require("can_create_orders")
    scope = context.customer_scope()
    if scope is None:
        if payload.customer_id is None:
            raise ValidationFailed("customer_id is required")
        customer_id = payload.customer_id
    elif payload.customer_id not in (None, scope):
        raise NotPermitted("Customer mismatch")
    else:
        customer_id = scope

    return await OrderService(session).create_order(
        customer_id,
        [(line.inventory_id, line.quantity) for line in payload.items],
        created_by=context.user_id,
        delivery_address=payload.delivery_address,
        notes=payload.notes,
    )


@router.get("", response_model=OrderList)
async def list_orders(context: SessionContext = Depends(get_session_context), session=Depends(get_db_session)):
    orders = await OrderRepository(session).list(customer_id=context.customer_scope())
    return OrderList(orders=orders)


@router.get("/export")
async def export_orders(context: SessionContext = Depends(get_session_context), session=Depends(get_db_session)):
    orders = await OrderRepository(session).list(customer_id=context.customer_scope())
    rows = [
        {
            "order_number": order.order_number,
            "order_type": order.order_type,
            "status": order.status,
            "total_amount": order.total_amount,
            "items": [{"product_name": line.product_name, "quantity": line.quantity} for line in order.items],
            "delivery_address": order.delivery_address,
            "created_at": order.created_at,
        }
        for order in orders
    ]
    return csv_response(rows, "orders.csv", EXPORT_HEADERS)


@router.post("/reorder", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
async def create_reorder(
    payload: ReorderCreate,
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    context.require("can_create_orders")
    item = await InventoryRepository(session).get(payload.inventory_id, customer_id=context.customer_scope())
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Inventory item not found")
    quantity = payload.quantity or reorder_quantity(available_quantity(item), item.max_stock_level)
    if quantity < 1:
        raise ValidationFailed("Stock is already at its maximum level")
    return await OrderService(session).reorder(item.id, quantity, created_by=context.user_id)


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: uuid.UUID,
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    return await _load(session, order_id, context)


@router.get("/{order_id}/actions", response_model=ActionList)
async def order_actions(
    order_id: uuid.UUID,
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    order = await _load(session, order_id, context)
    actions = ActionList.for_status(ORDER_WORKFLOW, order.status)
    if not context.is_admin:
        allowed = []
        for action in actions.actions:
            needed = "can_approve_orders" if action.name == "approve" else "can_manage_workflow"
            if getattr(context.capabilities, needed):
                allowed.append(action)
        actions.actions = allowed
    return actions


@router.post("/{order_id}/approve", response_model=OrderRead)
async def approve_order(
    order_id: uuid.UUID,
    context: SessionContext = Depends(require_capability("can_approve_orders")),
    session=Depends(get_db_session),
):
    order = await _load(session, order_id, context)
    return await OrderService(session).approve(order, approved_by=context.user_id)


@router.post("/{order_id}/transition", response_model=OrderRead)
async def transition_order(
    order_id: uuid.UUID,
    payload: OrderTransition,
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    if payload.status == OrderStatus.APPROVED:
        context.require("can_approve_orders")
    else:
        context.require("can_manage_workflow")
    order = await _load(session, order_id, context)
    service = OrderService(session)
    if payload.status == OrderStatus.APPROVED:
        return await service.approve(order, approved_by=context.user_id)
    return await service.transition(order, payload.status)
