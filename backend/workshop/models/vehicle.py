from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, text
from sqlalchemy.orm import relationship
from ..core.db import Base

class Vehicle(Base):
    __tablename__ = "Vehicle"

    VehicleID  = Column(Integer, primary_key=True, autoincrement=True)
    CustomerID = Column(Integer, ForeignKey("Customer.CustomerID"), nullable=False)
    Make       = Column(String(60),  nullable=False)
    Model      = Column(String(60),  nullable=False)
    Year       = Column(Integer)
    Version    = Column(String(60))
    Color      = Column(String(40))
    VIN        = Column(String(17))
    Plates     = Column(String(15))
    IsActive   = Column(Boolean, nullable=False, server_default=text("1"))

    customer = relationship("Customer", back_populates="vehicles")

    @property
    def description(self) -> str:
        return f"{self.Make} {self.Model} {self.Year or ''}".strip()

    @property
    def long_description(self) -> str:
        # "Make Model Color / Year" as shown on order boards
        return f"{self.Make} {self.Model} {self.Color or ''} / {self.Year or ''}"
