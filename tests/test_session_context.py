import uuid

import pytest

from app.core.errors import NotPermitted
from app.core.session_context import SessionContext
from app.models.enums import AppRole, WmsRole


def build(role=None, customer_id=None, wms_role=None):
    return SessionContext.build(uuid.uuid4(), "user@example.com", role, customer_id, wms_role)


def test_admin_bypasses_capabilities():
    context = build("admin")
    assert context.is_admin
    assert context.is_staff
    context.require("can_manage_invoices")
    context.require_admin()
    assert context.customer_scope() is None


def test_employee_is_staff_but_not_admin():
    context = build(AppRole.EMPLOYEE)
    assert context.is_staff
    context.require_staff()
    with pytest.raises(NotPermitted):
        context.require_admin()


def test_customer_is_scoped_to_wms_customer():
    customer_id = uuid.uuid4()
    context = build("customer", customer_id, "employee")
    assert context.customer_scope() == customer_id
    context.require("can_create_orders")
    with pytest.raises(NotPermitted):
        context.require("can_approve_orders")
    with pytest.raises(NotPermitted):
        context.require_staff()


def test_customer_without_membership_has_no_scope():
    context = build("customer")
    with pytest.raises(NotPermitted):
        context.customer_scope()


def test_unknown_roles_are_dropped():
    context = build("superuser", None, "boss")
    assert context.role is None
    assert context.wms_role is None
    assert not any(context.capabilities.as_dict().values())


def test_close_runs_callbacks_once_in_reverse():
    context = build()
    calls = []
    context.subscribe(lambda: calls.append("first"))
    context.subscribe(lambda: calls.append("second"))
    unsubscribe = context.subscribe(lambda: calls.append("never"))
    unsubscribe()

    context.close()
    context.close()

    assert calls == ["second", "first"]
    assert context.closed


def test_as_dict():
    customer_id = uuid.uuid4()
    data = build("customer", customer_id, WmsRole.OWNER).as_dict()
    assert data["role"] == "customer"
    assert data["wms_role"] == "owner"
    assert data["wms_customer_id"] == str(customer_id)
    assert data["capabilities"]["can_approve_orders"] is True
