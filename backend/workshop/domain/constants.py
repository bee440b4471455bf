# backend/workshop/domain/constants.py

"""
Single source of truth for order types, status codes and their labels.
"""

from decimal import Decimal
from typing import Dict, Final, Tuple

# ---- Order types ----
ORDER_TYPE_SERVICE: Final[int] = 1
ORDER_TYPE_DIAGNOSTIC: Final[int] = 2
ORDER_TYPE_REPAIR: Final[int] = 3
ORDER_TYPE_WARRANTY: Final[int] = 4
ORDER_TYPE_RETURN: Final[int] = 5

ORDER_NUMBER_PREFIXES: Final[Dict[int, str]] = {
    ORDER_TYPE_SERVICE: "SRV",
    ORDER_TYPE_DIAGNOSTIC: "DIA",
    ORDER_TYPE_REPAIR: "REP",
    ORDER_TYPE_WARRANTY: "GAR",
    ORDER_TYPE_RETURN: "RTO",
}
DEFAULT_ORDER_PREFIX: Final[str] = "ORD"
ORDER_NUMBER_DIGITS: Final[int] = 6

# ---- Order status ----
ORDER_PENDING: Final[int] = 1
ORDER_ASSIGNED: Final[int] = 2
ORDER_IN_PROGRESS: Final[int] = 3
ORDER_DELIVERED: Final[int] = 4
ORDER_CANCELLED: Final[int] = 5

ORDER_STATUS_NAMES: Final[Dict[int, str]] = {
    ORDER_PENDING: "Pending",
    ORDER_ASSIGNED: "Assigned",
    ORDER_IN_PROGRESS: "In progress",
    ORDER_DELIVERED: "Delivered",
    ORDER_CANCELLED: "Cancelled",
}
OPEN_ORDER_STATUSES: Final[Tuple[int, ...]] = (ORDER_PENDING, ORDER_ASSIGNED, ORDER_IN_PROGRESS)

# ---- Work item status ----
WORK_PENDING: Final[int] = 1
WORK_ASSIGNED: Final[int] = 2
WORK_IN_PROGRESS: Final[int] = 3
WORK_COMPLETED: Final[int] = 4
WORK_PAUSED: Final[int] = 5
WORK_CANCELLED: Final[int] = 6

# (name, color)
WORK_STATUS_LABELS: Final[Dict[int, Tuple[str, str]]] = {
    WORK_PENDING: ("Pending", "#9E9E9E"),
    WORK_ASSIGNED: ("Assigned", "#2196F3"),
    WORK_IN_PROGRESS: ("In progress", "#FF9800"),
    WORK_COMPLETED: ("Completed", "#4CAF50"),
    WORK_PAUSED: ("Paused", "#FFC107"),
    WORK_CANCELLED: ("Cancelled", "#F44336"),
}
TECHNICIAN_BOARD_STATUSES: Final[Tuple[int, ...]] = (WORK_ASSIGNED, WORK_IN_PROGRESS, WORK_PAUSED)

# ---- Appointments ----
APPOINTMENT_SLOT_MINUTES: Final[int] = 30

# ---- Costs ----
TAX_RATE: Final[Decimal] = Decimal("0.16")
MONEY_PLACES: Final[Decimal] = Decimal("0.01")

# ---- Next service ----
NEXT_SERVICE_LABELS: Final[Dict[int, str]] = {
    1: "Second Service",
    2: "Third Service",
}
EXTERNAL_SERVICE_LABEL: Final[str] = "External Service"

REMINDER_STAGE_NAMES: Final[Dict[int, str]] = {
    1: "First Reminder",
    2: "Second Reminder",
    3: "Third Reminder",
}

NOT_SPECIFIED: Final[str] = "Not specified"
UNASSIGNED: Final[str] = "Unassigned"


def order_prefix(order_type_id: int) -> str:
    return ORDER_NUMBER_PREFIXES.get(order_type_id, DEFAULT_ORDER_PREFIX)


def next_service_label(service_type_id: int) -> str:
    return NEXT_SERVICE_LABELS.get(service_type_id, EXTERNAL_SERVICE_LABEL)


def work_status_name(code: int) -> str:
    return WORK_STATUS_LABELS.get(code, ("Unknown", None))[0]


def work_status_color(code: int):
    return WORK_STATUS_LABELS.get(code, ("Unknown", None))[1]
