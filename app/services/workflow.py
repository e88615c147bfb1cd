"""Status workflows for shipment requests, WMS orders and invoices.

Each workflow is a table: an ordered list of forward stages, a transition map, and
the user actions offered per status. The stored status string is the only state;
timelines are derived from it by comparing stage indices.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from app.core.errors import InvalidTransition
from app.models.enums import InvoiceStatus, OrderStatus, ShipmentStatus


@dataclass(frozen=True)
class Action:
    name: str
    label: str
    target: str


@dataclass(frozen=True)
class TimelineStep:
    status: str
    state: str  # completed | current | pending


@dataclass(frozen=True)
class Timeline:
    status: str
    branch: str | None
    steps: list[TimelineStep]


@dataclass(frozen=True)
class Workflow:
    name: str
    stages: tuple[str, ...]
    terminal: frozenset[str]
    branches: frozenset[str]
    transitions: dict[str, frozenset[str]]
    actions: dict[str, tuple[Action, ...]] = field(default_factory=dict)
    system_only: frozenset[tuple[str, str]] = frozenset()

    def index_of(self, status) -> int:
        value = _value(status)
        return self.stages.index(value) if value in self.stages else -1

    def is_terminal(self, status) -> bool:
        return _value(status) in self.terminal

    def can_transition(self, current, target, *, system: bool = False) -> bool:
        current, target = _value(current), _value(target)
        if target not in self.transitions.get(current, frozenset()):
            return False
        if (current, target) in self.system_only and not system:
            return False
        return True

    def assert_transition(self, current, target, *, system: bool = False) -> None:
        if not self.can_transition(current, target, system=system):
            raise InvalidTransition(
                f"{self.name} cannot move from {_value(current)} to {_value(target)}",
            )

    def available_actions(self, status) -> list[Action]:
        current = _value(status)
        return [
            action
            for action in self.actions.get(current, ())
            if self.can_transition(current, action.target)
        ]

    def is_action_allowed(self, status, action_name: str) -> bool:
        return any(action.name == action_name for action in self.available_actions(status))

    def action(self, status, action_name: str) -> Action:
        for action in self.available_actions(status):
            if action.name == action_name:
                return action
        raise InvalidTransition(f"Action {action_name} is not available in {_value(status)}")

    def timeline(self, status) -> Timeline:
        current = _value(status)
        if current in self.branches:
            return Timeline(status=current, branch=current, steps=[])
        position = self.index_of(current)
        if position < 0:
            return Timeline(status=current, branch=None, steps=[])
        steps = []
        for index, stage in enumerate(self.stages):
            if index < position:
                state = "completed"
            elif index == position:
                state = "current"
            else:
                state = "pending"
            steps.append(TimelineStep(status=stage, state=state))
        return Timeline(status=current, branch=None, steps=steps)


def _value(status) -> str:
    if isinstance(status, Enum):
        return status.value
    return str(status)


def _forward_transitions(stages: tuple[str, ...], branch: str) -> dict[str, frozenset[str]]:
    table: dict[str, frozenset[str]] = {}
    for index, stage in enumerate(stages[:-1]):
        table[stage] = frozenset(stages[index + 1 :]) | {branch}
    return table


_SHIPMENT_STAGES = tuple(s.value for s in ShipmentStatus if s is not ShipmentStatus.REJECTED)

SHIPMENT_WORKFLOW = Workflow(
    name="shipment",
    stages=_SHIPMENT_STAGES,
    terminal=frozenset({ShipmentStatus.COMPLETED.value, ShipmentStatus.REJECTED.value}),
    branches=frozenset({ShipmentStatus.REJECTED.value}),
    transitions=_forward_transitions(_SHIPMENT_STAGES, ShipmentStatus.REJECTED.value),
    actions={
        stage: (
            Action("advance", f"Mark as {_SHIPMENT_STAGES[index + 1].replace('_', ' ')}", _SHIPMENT_STAGES[index + 1]),
            Action("reject", "Reject", ShipmentStatus.REJECTED.value),
        )
        for index, stage in enumerate(_SHIPMENT_STAGES[:-1])
    },
)

ORDER_WORKFLOW = Workflow(
    name="order",
    stages=(
        OrderStatus.PENDING_APPROVAL.value,
        OrderStatus.APPROVED.value,
        OrderStatus.IN_PROGRESS.value,
        OrderStatus.DELIVERED.value,
        OrderStatus.COMPLETED.value,
    ),
    terminal=frozenset({OrderStatus.COMPLETED.value, OrderStatus.CANCELLED.value}),
    branches=frozenset({OrderStatus.CANCELLED.value}),
    transitions={
        OrderStatus.PENDING_APPROVAL.value: frozenset({OrderStatus.APPROVED.value, OrderStatus.CANCELLED.value}),
        OrderStatus.APPROVED.value: frozenset({OrderStatus.IN_PROGRESS.value, OrderStatus.CANCELLED.value}),
        OrderStatus.IN_PROGRESS.value: frozenset({OrderStatus.DELIVERED.value}),
        OrderStatus.DELIVERED.value: frozenset({OrderStatus.COMPLETED.value}),
    },
    actions={
        OrderStatus.PENDING_APPROVAL.value: (
            Action("approve", "Approve", OrderStatus.APPROVED.value),
            Action("cancel", "Cancel", OrderStatus.CANCELLED.value),
        ),
        OrderStatus.APPROVED.value: (
            Action("start", "Start processing", OrderStatus.IN_PROGRESS.value),
            Action("cancel", "Cancel", OrderStatus.CANCELLED.value),
        ),
        OrderStatus.IN_PROGRESS.value: (Action("deliver", "Mark as delivered", OrderStatus.DELIVERED.value),),
        OrderStatus.DELIVERED.value: (Action("complete", "Complete", OrderStatus.COMPLETED.value),),
    },
)

INVOICE_WORKFLOW = Workflow(
    name="invoice",
    stages=(
        InvoiceStatus.DRAFT.value,
        InvoiceStatus.SENT.value,
        InvoiceStatus.VIEWED.value,
        InvoiceStatus.PAID.value,
    ),
    terminal=frozenset({InvoiceStatus.PAID.value}),
    branches=frozenset({InvoiceStatus.OVERDUE.value}),
    transitions={
        InvoiceStatus.DRAFT.value: frozenset({InvoiceStatus.SENT.value}),
        InvoiceStatus.SENT.value: frozenset(
            {InvoiceStatus.VIEWED.value, InvoiceStatus.PAID.value, InvoiceStatus.OVERDUE.value}
        ),
        InvoiceStatus.VIEWED.value: frozenset({InvoiceStatus.PAID.value, InvoiceStatus.OVERDUE.value}),
        InvoiceStatus.OVERDUE.value: frozenset({InvoiceStatus.PAID.value}),
    },
    actions={
        InvoiceStatus.DRAFT.value: (Action("mark_as_sent", "Mark as sent", InvoiceStatus.SENT.value),),
        InvoiceStatus.SENT.value: (
            Action("mark_as_viewed", "Mark as viewed", InvoiceStatus.VIEWED.value),
            Action("mark_as_paid", "Mark as paid", InvoiceStatus.PAID.value),
        ),
        InvoiceStatus.VIEWED.value: (Action("mark_as_paid", "Mark as paid", InvoiceStatus.PAID.value),),
        InvoiceStatus.OVERDUE.value: (Action("mark_as_paid", "Mark as paid", InvoiceStatus.PAID.value),),
    },
    system_only=frozenset(
        {
            (InvoiceStatus.SENT.value, InvoiceStatus.OVERDUE.value),
            (InvoiceStatus.VIEWED.value, InvoiceStatus.OVERDUE.value),
        }
    ),
)
