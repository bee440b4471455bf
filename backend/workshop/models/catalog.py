from sqlalchemy import Column, Integer, String
from ..core.db import Base

class OrderType(Base):
    __tablename__ = "OrderType"

    # Ids are fixed (1=service ... 5=return), see domain.constants
    OrderTypeID = Column(Integer, primary_key=True, autoincrement=False)
    Name        = Column(String(60), nullable=False)


class ServiceType(Base):
    __tablename__ = "ServiceType"

    ServiceTypeID = Column(Integer, primary_key=True, autoincrement=False)
    Name          = Column(String(100), nullable=False)
