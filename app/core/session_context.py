"""Per-request session context.

The context is created once per request from the verified token and handed down
to every handler and service that needs the caller's identity. Cleanup callbacks
registered with :meth:`SessionContext.subscribe` run when the request ends.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Callable

from app.core.errors import NotPermitted
from app.core.logging import get_logger
from app.models.enums import AppRole, WmsRole
from app.services.permissions import NO_CAPABILITIES, Capabilities, capabilities_for, require

logger = get_logger()


@dataclass
class SessionContext:
    user_id: uuid.UUID
    email: str | None
    role: AppRole | None = None
    wms_customer_id: uuid.UUID | None = None
    wms_role: WmsRole | None = None
    capabilities: Capabilities = NO_CAPABILITIES
    _callbacks: list[Callable[[], None]] = field(default_factory=list, repr=False)
    closed: bool = False

    @classmethod
    def build(
        cls,
        user_id: uuid.UUID,
        email: str | None,
        role: AppRole | str | None = None,
        wms_customer_id: uuid.UUID | None = None,
        wms_role: WmsRole | str | None = None,
    ) -> "SessionContext":
        app_role = _coerce(AppRole, role)
        member_role = _coerce(WmsRole, wms_role)
        return cls(
            user_id=user_id,
            email=email,
            role=app_role,
            wms_customer_id=wms_customer_id,
            wms_role=member_role,
            capabilities=capabilities_for(member_role),
        )

    @property
    def is_admin(self) -> bool:
        return self.role == AppRole.ADMIN

    @property
    def is_staff(self) -> bool:
        return self.role in (AppRole.ADMIN, AppRole.EMPLOYEE)

    def require(self, capability: str) -> None:
        if self.is_admin:
            return
        require(self.capabilities, capability)

    def require_admin(self) -> None:
        if not self.is_admin:
            raise NotPermitted("Admin role required")

    def require_staff(self) -> None:
        if not self.is_staff:
            raise NotPermitted("Staff role required")

    def customer_scope(self) -> uuid.UUID | None:
        """WMS customer the caller is limited to, or None for unrestricted staff."""
        if self.is_staff:
            return None
        if self.wms_customer_id is None:
            raise NotPermitted("No WMS customer linked")
        return self.wms_customer_id

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        callbacks, self._callbacks = self._callbacks, []
        for callback in reversed(callbacks):
            callback()

    def as_dict(self) -> dict:
        return {
            "user_id": str(self.user_id),
            "email": self.email,
            "role": self.role.value if self.role else None,
            "wms_customer_id": str(self.wms_customer_id) if self.wms_customer_id else None,
            "wms_role": self.wms_role.value if self.wms_role else None,
            "capabilities": self.capabilities.as_dict(),
        }


def _coerce(enum_type, value):
    if value is None or isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        logger.warning("unknown_role", role=str(value), kind=enum_type.__name__)
        return None
