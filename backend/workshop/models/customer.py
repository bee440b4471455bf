from sqlalchemy import Column, Integer, String, Boolean, text
from sqlalchemy.orm import relationship
from ..core.db import Base

class Customer(Base):
    __tablename__ = "Customer"

    CustomerID     = Column(Integer, primary_key=True, autoincrement=True)
    FullName       = Column(String(200), nullable=False)
    TaxID          = Column(String(20))      # RFC
    MobilePhone    = Column(String(30))
    HomePhone      = Column(String(30))
    Email          = Column(String(200))
    Street         = Column(String(200))
    ExteriorNumber = Column(String(20))
    Neighborhood   = Column(String(120))
    Municipality   = Column(String(120))
    State          = Column(String(120))
    IsActive       = Column(Boolean, nullable=False, server_default=text("1"))

    vehicles = relationship("Vehicle", back_populates="customer")

    @property
    def full_address(self) -> str:
        return f"{self.Street or ''} {self.ExteriorNumber or ''}, {self.Neighborhood or ''}, " \
               f"{self.Municipality or ''}, {self.State or ''}"
