# backend/workshop/domain/scopes.py
"""
Ownership of a purchased part: either an appointment work item or an order
work item, never both.
"""
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class AppointmentScoped:
    work_item_id: int


@dataclass(frozen=True)
class OrderScoped:
    work_item_id: int


WorkItemScope = Union[AppointmentScoped, OrderScoped]


def scope_for(work_item_id: int, order: bool) -> WorkItemScope:
    return OrderScoped(work_item_id) if order else AppointmentScoped(work_item_id)
