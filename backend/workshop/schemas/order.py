# workshop/schemas/order.py
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, create_model, field_validator

from ..domain.money import to_money
from ..models.checklist import RATING_FIELDS, CHECK_FIELDS
from .appointment import WorkItemIn, to_local_naive


class OrderCreate(BaseModel):
    OrderTypeID: int = Field(ge=1)
    CustomerID: int = Field(ge=1)
    VehicleID: int = Field(ge=1)
    ServiceTypeID: Optional[int] = Field(default=None, ge=1)
    Odometer: int = Field(ge=0)
    PromisedDeliveryAt: datetime
    AdvisorNotes: Optional[str] = Field(default=None, max_length=1000)
    WorkItems: List[WorkItemIn] = Field(min_length=1)

    @field_validator("PromisedDeliveryAt")
    @classmethod
    def _local_promised(cls, v: datetime) -> datetime:
        return to_local_naive(v)


class OrderFromAppointment(BaseModel):
    Odometer: int = Field(ge=0)
    PromisedDeliveryAt: datetime
    AdvisorNotes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("PromisedDeliveryAt")
    @classmethod
    def _local_promised(cls, v: datetime) -> datetime:
        return to_local_naive(v)


class LaborCostIn(BaseModel):
    WorkItemID: int = Field(ge=1)
    LaborCost: Decimal

    @field_validator("LaborCost")
    @classmethod
    def _labor_decimal(cls, v: Decimal) -> Decimal:
        d = to_money(v)
        if d < 0:
            raise ValueError("LaborCost must be >= 0")
        return d


class CostsIn(BaseModel):
    Items: List[LaborCostIn] = Field(min_length=1)


class AssignIn(BaseModel):
    TechnicianID: int = Field(ge=1)
    Comments: Optional[str] = Field(default=None, max_length=1000)


class CommentsIn(BaseModel):
    Comments: Optional[str] = Field(default=None, max_length=1000)


# Every checklist column is optional on input
ChecklistIn = create_model(
    "ChecklistIn",
    **{name: (str, "") for name in RATING_FIELDS},
    **{name: (bool, False) for name in CHECK_FIELDS},
)
