from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, DECIMAL, ForeignKey, CheckConstraint, func, text
)
from sqlalchemy.orm import relationship
from ..core.db import Base

class PurchasedPart(Base):
    __tablename__ = "PurchasedPart"

    PurchasedPartID       = Column(Integer, primary_key=True, autoincrement=True)
    AppointmentWorkItemID = Column(Integer, ForeignKey("AppointmentWorkItem.AppointmentWorkItemID"), index=True)
    OrderWorkItemID       = Column(Integer, ForeignKey("OrderWorkItem.OrderWorkItemID"), index=True)
    Description   = Column(String(255), nullable=False)
    Quantity      = Column(Integer,       nullable=False)
    UnitCost      = Column(DECIMAL(10,2), nullable=False)
    UnitSalePrice = Column(DECIMAL(10,2))
    PurchasedAt   = Column(DateTime, nullable=False, server_default=func.now())
    # true once the part belongs to an order work item; row is frozen afterwards
    Transferred   = Column(Boolean,  nullable=False, server_default=text("0"))

    __table_args__ = (
        CheckConstraint("Quantity > 0", name="CK_PurchasedPart_Quantity_Positive"),
        CheckConstraint("UnitCost > 0", name="CK_PurchasedPart_UnitCost_Positive"),
        CheckConstraint(
            "(AppointmentWorkItemID IS NOT NULL AND OrderWorkItemID IS NULL) OR "
            "(AppointmentWorkItemID IS NULL AND OrderWorkItemID IS NOT NULL)",
            name="CK_PurchasedPart_SingleOwner",
        ),
    )

    appointment_work_item = relationship("AppointmentWorkItem", back_populates="parts")
    order_work_item       = relationship("OrderWorkItem",       back_populates="parts")

    @property
    def total_cost(self):
        return (self.Quantity or 0) * (self.UnitCost or 0)

    @property
    def total_sale_value(self):
        if self.UnitSalePrice is None:
            return None
        return (self.Quantity or 0) * self.UnitSalePrice
