from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, DECIMAL, ForeignKey, CheckConstraint,
    select, func, text
)
from sqlalchemy.orm import relationship, column_property
from ..core.db import Base
from .purchased_part import PurchasedPart

class WorkOrder(Base):
    __tablename__ = "WorkOrder"

    WorkOrderID        = Column(Integer, primary_key=True, autoincrement=True)
    OrderNumber        = Column(String(20), nullable=False, unique=True)
    OrderTypeID        = Column(Integer, ForeignKey("OrderType.OrderTypeID"), nullable=False)
    CustomerID         = Column(Integer, ForeignKey("Customer.CustomerID"), nullable=False)
    VehicleID          = Column(Integer, ForeignKey("Vehicle.VehicleID"), nullable=False, index=True)
    ServiceTypeID      = Column(Integer, ForeignKey("ServiceType.ServiceTypeID"))
    AdvisorID          = Column(Integer, ForeignKey("AppUser.UserID"), nullable=False)
    Odometer           = Column(Integer, nullable=False, server_default=text("0"))
    StatusID           = Column(Integer, nullable=False, server_default=text("1"))
    PromisedDeliveryAt = Column(DateTime, nullable=False)
    DeliveredAt        = Column(DateTime)
    AdvisorNotes       = Column(String(1000))
    ShopManagerNotes   = Column(String(1000))
    CostTotal          = Column(DECIMAL(12,2), nullable=False, server_default=text("0"))
    CostTotalWithTax   = Column(DECIMAL(12,2), nullable=False, server_default=text("0"))
    TotalWorkItems     = Column(Integer, nullable=False, server_default=text("0"))
    CompletedWorkItems = Column(Integer, nullable=False, server_default=text("0"))
    Progress           = Column(DECIMAL(5,2), nullable=False, server_default=text("0"))
    HasEvidence        = Column(Boolean, nullable=False, server_default=text("0"))
    CreatedAt          = Column(DateTime, nullable=False, server_default=func.now())
    IsActive           = Column(Boolean, nullable=False, server_default=text("1"))

    __table_args__ = (
        CheckConstraint("StatusID between 1 and 5", name="CK_WO_Status"),
        CheckConstraint("CompletedWorkItems <= TotalWorkItems", name="CK_WO_Completed_LE_Total"),
    )

    order_type   = relationship("OrderType")
    customer     = relationship("Customer")
    vehicle      = relationship("Vehicle")
    service_type = relationship("ServiceType")
    advisor      = relationship("AppUser")
    checklist    = relationship("ServiceChecklist", back_populates="order", uselist=False)
    work_items   = relationship(
        "OrderWorkItem",
        back_populates="order",
        order_by="OrderWorkItem.OrderWorkItemID",
    )

    @property
    def active_work_items(self):
        return [w for w in self.work_items if w.IsActive]


class OrderWorkItem(Base):
    __tablename__ = "OrderWorkItem"

    OrderWorkItemID  = Column(Integer, primary_key=True, autoincrement=True)
    WorkOrderID      = Column(Integer, ForeignKey("WorkOrder.WorkOrderID"), nullable=False, index=True)
    Description      = Column(String(500), nullable=False)
    Instructions     = Column(String(1000))
    TechnicianID     = Column(Integer, ForeignKey("AppUser.UserID"))
    AssignedAt       = Column(DateTime)
    StartedAt        = Column(DateTime)
    EndedAt          = Column(DateTime)
    TechnicianComments  = Column(String(1000))
    ShopManagerComments = Column(String(1000))
    PartsReady       = Column(Boolean, nullable=False, server_default=text("0"))
    LaborCost        = Column(DECIMAL(10,2), nullable=False, server_default=text("0"))
    StatusID         = Column(Integer, nullable=False, server_default=text("1"))
    IsActive         = Column(Boolean, nullable=False, server_default=text("1"))
    CreatedAt        = Column(DateTime, nullable=False, server_default=func.now())

    # Computed by the database on read; call db.refresh(item) after inserting parts
    PartsTotal = column_property(
        select(
            func.coalesce(
                func.sum(
                    PurchasedPart.Quantity
                    * func.coalesce(PurchasedPart.UnitSalePrice, PurchasedPart.UnitCost)
                ),
                0,
            )
        )
        .where(PurchasedPart.OrderWorkItemID == OrderWorkItemID)
        .correlate_except(PurchasedPart)
        .scalar_subquery()
    )

    __table_args__ = (
        CheckConstraint("StatusID between 1 and 6", name="CK_OWI_Status"),
    )

    order      = relationship("WorkOrder", back_populates="work_items")
    technician = relationship("AppUser")
    parts      = relationship(
        "PurchasedPart",
        back_populates="order_work_item",
        order_by="PurchasedPart.PurchasedPartID",
    )
