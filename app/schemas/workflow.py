from __future__ import annotations

from dataclasses import asdict
from enum import Enum

from pydantic import BaseModel

from app.services.workflow import Workflow


class ActionRead(BaseModel):
    name: str
    label: str
    target: str


class ActionList(BaseModel):
    status: str
    actions: list[ActionRead]

    @classmethod
    def for_status(cls, workflow: Workflow, status) -> "ActionList":
        value = status.value if isinstance(status, Enum) else str(status)
        return cls(status=value, actions=[asdict(action) for action in workflow.available_actions(value)])


class TimelineStepRead(BaseModel):
    status: str
    state: str


class TimelineRead(BaseModel):
    status: str
    branch: str | None
    steps: list[TimelineStepRead]

    @classmethod
    def for_status(cls, workflow: Workflow, status) -> "TimelineRead":
        return cls.model_validate(asdict(workflow.timeline(status)))
