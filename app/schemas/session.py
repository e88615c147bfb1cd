from __future__ import annotations

from pydantic import BaseModel


class SessionRead(BaseModel):
    user_id: str
    email: str | None
    role: str | None
    wms_customer_id: str | None
    wms_role: str | None
    capabilities: dict[str, bool]
