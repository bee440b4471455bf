from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, CheckConstraint, func, text
)
from ..core.db import Base

ALLOWED_ROLES = ("viewer", "scheduler", "advisor", "shop_manager", "technician", "admin")

class AppUser(Base):
    """Shop staff: schedulers, advisors, shop managers and technicians."""
    __tablename__ = "AppUser"

    UserID         = Column(Integer, primary_key=True, autoincrement=True)
    Username       = Column(String(50),  nullable=False, unique=True)
    FullName       = Column(String(100))
    Email          = Column(String(200))
    HashedPassword = Column(String(255), nullable=False)
    Role           = Column(String(20),  nullable=False, server_default=text("'viewer'"))
    IsActive       = Column(Boolean,     nullable=False, server_default=text("1"))
    CreatedAt      = Column(DateTime,    nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "Role in ('viewer','scheduler','advisor','shop_manager','technician','admin')",
            name="CK_AppUser_Role"
        ),
    )
