from __future__ import annotations

from dataclasses import dataclass, fields

from app.core.errors import NotPermitted
from app.core.logging import get_logger

logger = get_logger()


@dataclass(frozen=True)
class Capabilities:
    can_create_orders: bool = False
    can_approve_orders: bool = False
    can_manage_users: bool = False
    can_manage_workflow: bool = False
    can_view_invoices: bool = False
    can_manage_invoices: bool = False
    can_view_all_orders: bool = False

    def as_dict(self) -> dict[str, bool]:
        return {field.name: getattr(self, field.name) for field in fields(self)}


NO_CAPABILITIES = Capabilities()

ROLE_CAPABILITIES: dict[str, Capabilities] = {
    "owner": Capabilities(
        can_create_orders=True,
        can_approve_orders=True,
        can_manage_users=True,
        can_manage_workflow=True,
        can_view_invoices=True,
        can_manage_invoices=True,
        can_view_all_orders=True,
    ),
    "admin": Capabilities(
        can_create_orders=True,
        can_approve_orders=True,
        can_manage_users=True,
        can_manage_workflow=True,
        can_view_invoices=True,
        can_manage_invoices=True,
        can_view_all_orders=True,
    ),
    "employee": Capabilities(can_create_orders=True),
    "accountant": Capabilities(can_view_invoices=True, can_manage_invoices=True),
    "viewer": NO_CAPABILITIES,
}


def capabilities_for(role: str | None) -> Capabilities:
    # Exact match only: "Admin" or " admin" get nothing.
    role = getattr(role, "value", role)
    if not isinstance(role, str):
        return NO_CAPABILITIES
    return ROLE_CAPABILITIES.get(role, NO_CAPABILITIES)


def require(capabilities: Capabilities, name: str) -> None:
    if not getattr(capabilities, name, False):
        logger.info("permission_denied", capability=name)
        raise NotPermitted(f"Missing capability {name}")
