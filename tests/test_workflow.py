import pytest

from app.core.errors import InvalidTransition
from app.models.enums import InvoiceStatus, OrderStatus, ShipmentStatus
from app.schemas.workflow import ActionList, TimelineRead
from app.services.workflow import INVOICE_WORKFLOW, ORDER_WORKFLOW, SHIPMENT_WORKFLOW


def names(actions):
    return [action.name for action in actions]


def test_shipment_timeline_marks_progress():
    timeline = SHIPMENT_WORKFLOW.timeline(ShipmentStatus.IN_TRANSIT)
    states = {step.status: step.state for step in timeline.steps}

    assert timeline.branch is None
    assert len(timeline.steps) == 9
    assert states["received_from_supplier"] == "completed"
    assert states["pending_partner_acceptance"] == "completed"
    assert states["in_transit"] == "current"
    assert states["customs"] == "pending"
    assert states["completed"] == "pending"


def test_rejected_shipment_is_a_branch():
    timeline = SHIPMENT_WORKFLOW.timeline("rejected")
    assert timeline.branch == "rejected"
    assert timeline.steps == []
    assert SHIPMENT_WORKFLOW.available_actions("rejected") == []


def test_shipment_moves_forward_only():
    assert SHIPMENT_WORKFLOW.can_transition("processing", "in_transit")
    assert SHIPMENT_WORKFLOW.can_transition("customs", "rejected")
    assert not SHIPMENT_WORKFLOW.can_transition("in_transit", "processing")
    with pytest.raises(InvalidTransition):
        SHIPMENT_WORKFLOW.assert_transition(ShipmentStatus.COMPLETED, ShipmentStatus.PROCESSING)


def test_shipment_actions():
    assert names(SHIPMENT_WORKFLOW.available_actions("processing")) == ["advance", "reject"]
    assert SHIPMENT_WORKFLOW.action("processing", "advance").target == "pending_partner_acceptance"
    assert SHIPMENT_WORKFLOW.available_actions("completed") == []
    with pytest.raises(InvalidTransition):
        SHIPMENT_WORKFLOW.action("completed", "advance")


def test_order_cancel_only_before_work_starts():
    assert ORDER_WORKFLOW.can_transition(OrderStatus.PENDING_APPROVAL, OrderStatus.CANCELLED)
    assert ORDER_WORKFLOW.can_transition(OrderStatus.APPROVED, OrderStatus.CANCELLED)
    assert not ORDER_WORKFLOW.can_transition(OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED)
    assert ORDER_WORKFLOW.is_terminal("cancelled")
    assert ORDER_WORKFLOW.timeline("cancelled").branch == "cancelled"


def test_draft_invoice_cannot_be_paid():
    assert names(INVOICE_WORKFLOW.available_actions(InvoiceStatus.DRAFT)) == ["mark_as_sent"]
    assert not INVOICE_WORKFLOW.is_action_allowed("draft", "mark_as_paid")
    assert not INVOICE_WORKFLOW.can_transition("draft", "paid")


def test_overdue_is_reserved_for_the_system():
    assert names(INVOICE_WORKFLOW.available_actions("sent")) == ["mark_as_viewed", "mark_as_paid"]
    assert not INVOICE_WORKFLOW.can_transition("sent", "overdue")
    assert INVOICE_WORKFLOW.can_transition("sent", "overdue", system=True)
    assert names(INVOICE_WORKFLOW.available_actions("overdue")) == ["mark_as_paid"]


def test_paid_invoice_is_terminal():
    assert INVOICE_WORKFLOW.is_terminal(InvoiceStatus.PAID)
    assert INVOICE_WORKFLOW.available_actions("paid") == []


def test_unknown_status_has_no_actions_or_steps():
    assert ORDER_WORKFLOW.available_actions("shipped") == []
    timeline = ORDER_WORKFLOW.timeline("shipped")
    assert timeline.steps == []
    assert timeline.branch is None


def test_workflow_schemas():
    actions = ActionList.for_status(INVOICE_WORKFLOW, "viewed")
    assert actions.status == "viewed"
    assert [action.name for action in actions.actions] == ["mark_as_paid"]

    timeline = TimelineRead.for_status(ORDER_WORKFLOW, "approved")
    assert [step.state for step in timeline.steps] == ["completed", "current", "pending", "pending", "pending"]
