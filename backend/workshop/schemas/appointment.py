# workshop/schemas/appointment.py
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


def to_local_naive(v: datetime) -> datetime:
    """Offset-bearing input -> server local time without tzinfo, as stored."""
    if v.tzinfo is not None:
        return v.astimezone().replace(tzinfo=None)
    return v


class WorkItemIn(BaseModel):
    Description: str = Field(min_length=1, max_length=500)
    Instructions: Optional[str] = Field(default=None, max_length=1000)


class AppointmentCreate(BaseModel):
    OrderTypeID: int = Field(ge=1)
    CustomerID: int = Field(ge=1)
    VehicleID: int = Field(ge=1)
    ServiceTypeID: Optional[int] = Field(default=None, ge=1)
    ScheduledAt: datetime
    WorkItems: List[WorkItemIn] = Field(min_length=1)

    @field_validator("ScheduledAt")
    @classmethod
    def _local_scheduled_at(cls, v: datetime) -> datetime:
        return to_local_naive(v)


class RescheduleIn(BaseModel):
    NewScheduledAt: datetime

    @field_validator("NewScheduledAt")
    @classmethod
    def _local_new_scheduled_at(cls, v: datetime) -> datetime:
        return to_local_naive(v)
