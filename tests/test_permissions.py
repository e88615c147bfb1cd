import pytest

from app.core.errors import NotPermitted
from app.models.enums import WmsRole
from app.services.permissions import NO_CAPABILITIES, capabilities_for, require


def test_owner_and_admin_have_every_capability():
    for role in ("owner", WmsRole.ADMIN):
        assert all(capabilities_for(role).as_dict().values())


def test_employee_can_only_create_orders():
    capabilities = capabilities_for("employee")
    assert capabilities.can_create_orders
    assert not capabilities.can_approve_orders
    assert not capabilities.can_view_invoices


def test_accountant_manages_invoices():
    capabilities = capabilities_for(WmsRole.ACCOUNTANT)
    assert capabilities.can_view_invoices
    assert capabilities.can_manage_invoices
    assert not capabilities.can_create_orders


@pytest.mark.parametrize("role", [None, "viewer", "Admin", " admin", "superuser", 3])
def test_unknown_or_missing_role_has_nothing(role):
    assert capabilities_for(role) == NO_CAPABILITIES


def test_require_raises_for_missing_capability():
    require(capabilities_for("employee"), "can_create_orders")
    with pytest.raises(NotPermitted):
        require(capabilities_for("employee"), "can_approve_orders")
    with pytest.raises(NotPermitted):
        require(NO_CAPABILITIES, "no_such_capability")
