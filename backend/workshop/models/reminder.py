from sqlalchemy import (
    Column, Integer, String, Boolean, Date, DateTime, ForeignKey, CheckConstraint, func, text
)
from sqlalchemy.orm import relationship
from ..core.db import Base

class NextServiceReminder(Base):
    __tablename__ = "NextServiceReminder"

    ReminderID          = Column(Integer, primary_key=True, autoincrement=True)
    CustomerID          = Column(Integer, ForeignKey("Customer.CustomerID"), nullable=False)
    # one row per vehicle (upsert key)
    VehicleID           = Column(Integer, ForeignKey("Vehicle.VehicleID"), nullable=False, unique=True)
    LastServiceName     = Column(String(100), nullable=False)
    NextServiceLabel    = Column(String(100), nullable=False)
    LastOdometer        = Column(Integer, nullable=False, server_default=text("0"))
    LastServiceDate     = Column(Date, nullable=False)
    NextServiceDate     = Column(Date)
    NextServiceOdometer = Column(Integer)
    FirstReminderSent   = Column(Boolean, nullable=False, server_default=text("0"))
    SecondReminderSent  = Column(Boolean, nullable=False, server_default=text("0"))
    ThirdReminderSent   = Column(Boolean, nullable=False, server_default=text("0"))
    IsActive            = Column(Boolean, nullable=False, server_default=text("1"))
    ModifiedAt          = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "(SecondReminderSent = 0 OR FirstReminderSent = 1) AND "
            "(ThirdReminderSent = 0 OR SecondReminderSent = 1)",
            name="CK_Reminder_Monotonic",
        ),
    )

    customer = relationship("Customer")
    vehicle  = relationship("Vehicle")
