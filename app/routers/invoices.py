from __future__ import annotations

import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import HTMLResponse

from app.core.deps import get_db_session, get_session_context, require_admin
from app.core.session_context import SessionContext
from app.models.invoice import WmsInvoice
from app.repositories.invoice_repo import InvoiceRepository
from app.repositories.order_repo import OrderRepository
from app.repositories.profile_repo import ProfileRepository
from app.schemas.invoice import InvoiceGenerate, InvoiceList, InvoiceRead, InvoiceTransition, OverdueResult
from app.schemas.workflow import ActionList
from app.services.csv_export import csv_response
from app.services.invoicing import InvoiceService, render_invoice_html
from app.services.workflow import INVOICE_WORKFLOW

router = APIRouter(prefix="/invoices", tags=["invoices"])

EXPORT_HEADERS = [
    "invoice_number",
    "status",
    "invoice_date",
    "due_date",
    "subtotal",
    "tax_rate",
    "tax_amount",
    "total_amount",
    "currency",
    "paid_at",
]


async def _load(session, invoice_id: uuid.UUID, context: SessionContext) -> WmsInvoice:
    context.require("can_view_invoices")
    invoice = await InvoiceRepository(session).get(invoice_id, customer_id=context.customer_scope())
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return invoice


@router.post("", response_model=InvoiceRead, status_code=status.HTTP_201_CREATED)
async def generate_invoice(
    payload: InvoiceGenerate,
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    context.require("can_manage_invoices")
    order = await OrderRepository(session).get(payload.order_id, customer_id=context.customer_scope())
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return await InvoiceService(session).create_from_order(order, invoice_date=payload.invoice_date)


@router.get("", response_model=InvoiceList)
async def list_invoices(context: SessionContext = Depends(get_session_context), session=Depends(get_db_session)):
    context.require("can_view_invoices")
    invoices = await InvoiceRepository(session).list(customer_id=context.customer_scope())
    return InvoiceList(invoices=invoices)


@router.get("/export")
async def export_invoices(context: SessionContext = Depends(get_session_context), session=Depends(get_db_session)):
    context.require("can_view_invoices")
    invoices = await InvoiceRepository(session).list(customer_id=context.customer_scope())
    rows = [{header: getattr(invoice, header) for header in EXPORT_HEADERS} for invoice in invoices]
    return csv_response(rows, "invoices.csv", EXPORT_HEADERS)


@router.post("/mark-overdue", response_model=OverdueResult)
async def mark_overdue(context: SessionContext = Depends(require_admin), session=Depends(get_db_session)):
    invoices = await InvoiceService(session).mark_overdue()
    return OverdueResult(updated=len(invoices), invoice_ids=[invoice.id for invoice in invoices])


@router.get("/{invoice_id}", response_model=InvoiceRead)
async def get_invoice(
    invoice_id: uuid.UUID,
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    return await _load(session, invoice_id, context)


@router.get("/{invoice_id}/html", response_class=HTMLResponse)
async def invoice_html(
    invoice_id: uuid.UUID,
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    invoice = await _load(session, invoice_id, context)
    customer = await ProfileRepository(session).get_customer(invoice.customer_id)
    if not customer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return HTMLResponse(render_invoice_html(invoice, customer))


@router.get("/{invoice_id}/actions", response_model=ActionList)
async def invoice_actions(
    invoice_id: uuid.UUID,
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    invoice = await _load(session, invoice_id, context)
    actions = ActionList.for_status(INVOICE_WORKFLOW, invoice.status)
    if not context.is_admin and not context.capabilities.can_manage_invoices:
        actions.actions = []
    return actions


@router.post("/{invoice_id}/transition", response_model=InvoiceRead)
async def transition_invoice(
    invoice_id: uuid.UUID,
    payload: InvoiceTransition,
    context: SessionContext = Depends(get_session_context),
    session=Depends(get_db_session),
):
    context.require("can_manage_invoices")
    invoice = await _load(session, invoice_id, context)
    return await InvoiceService(session).transition(invoice, payload.status)
