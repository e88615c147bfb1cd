from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _upper(value):
    return value.strip().upper() if isinstance(value, str) else value


# ISO 4217 code, accepted in any case and stored upper-case.
CurrencyCode = Annotated[str, BeforeValidator(_upper), Field(min_length=3, max_length=3)]


class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)
