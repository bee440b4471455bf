from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, func, text
from sqlalchemy.orm import relationship
from ..core.db import Base

class Appointment(Base):
    __tablename__ = "Appointment"

    AppointmentID = Column(Integer, primary_key=True, autoincrement=True)
    OrderTypeID   = Column(Integer, ForeignKey("OrderType.OrderTypeID"), nullable=False)
    CustomerID    = Column(Integer, ForeignKey("Customer.CustomerID"), nullable=False)
    VehicleID     = Column(Integer, ForeignKey("Vehicle.VehicleID"), nullable=False)
    ServiceTypeID = Column(Integer, ForeignKey("ServiceType.ServiceTypeID"))
    SchedulerID   = Column(Integer, ForeignKey("AppUser.UserID"), nullable=False)
    ScheduledAt   = Column(DateTime, nullable=False, index=True)
    CreatedAt     = Column(DateTime, nullable=False, server_default=func.now())
    IsActive      = Column(Boolean,  nullable=False, server_default=text("1"))

    order_type   = relationship("OrderType")
    customer     = relationship("Customer")
    vehicle      = relationship("Vehicle")
    service_type = relationship("ServiceType")
    scheduler    = relationship("AppUser")

    # never deleted physically, only deactivated
    work_items = relationship(
        "AppointmentWorkItem",
        back_populates="appointment",
        order_by="AppointmentWorkItem.AppointmentWorkItemID",
    )


class AppointmentWorkItem(Base):
    __tablename__ = "AppointmentWorkItem"

    AppointmentWorkItemID = Column(Integer, primary_key=True, autoincrement=True)
    AppointmentID = Column(Integer, ForeignKey("Appointment.AppointmentID"), nullable=False, index=True)
    Description   = Column(String(500), nullable=False)
    Instructions  = Column(String(1000))
    PartsReady    = Column(Boolean, nullable=False, server_default=text("0"))
    IsActive      = Column(Boolean, nullable=False, server_default=text("1"))

    appointment = relationship("Appointment", back_populates="work_items")
    parts       = relationship(
        "PurchasedPart",
        back_populates="appointment_work_item",
        order_by="PurchasedPart.PurchasedPartID",
    )
