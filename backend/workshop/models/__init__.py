from .user import AppUser
from .customer import Customer
from .vehicle import Vehicle
from .catalog import OrderType, ServiceType
from .appointment import Appointment, AppointmentWorkItem
from .purchased_part import PurchasedPart
from .work_order import WorkOrder, OrderWorkItem
from .reminder import NextServiceReminder
from .checklist import ServiceChecklist
__all__ = [
    "AppUser", "Customer", "Vehicle", "OrderType", "ServiceType",
    "Appointment", "AppointmentWorkItem", "PurchasedPart", "WorkOrder", "OrderWorkItem",
    "NextServiceReminder", "ServiceChecklist",
]
