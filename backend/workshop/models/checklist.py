from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, text
from sqlalchemy.orm import relationship
from ..core.db import Base

# Rating columns hold short free text ("OK", "Replace soon", ...)
RATING_FIELDS = (
    # steering
    "TieRods", "TieRodEnds", "SteeringBox", "SteeringWheel",
    # suspension
    "FrontShocks", "RearShocks", "StabilizerBar", "ControlArms",
    # tires
    "FrontTires", "RearTires", "Balancing", "Alignment",
    # lights
    "HighBeams", "LowBeams", "FogLights", "ReverseLights", "TurnSignals", "HazardLights",
    # brakes
    "FrontDiscsDrums", "RearDiscsDrums", "FrontPads", "RearPads",
)

CHECK_FIELDS = (
    # replaced parts
    "ReplacedEngineOil", "ReplacedOilFilter", "ReplacedEngineAirFilter", "ReplacedCabinFilter",
    # tasks performed
    "BrakeDeglazing", "BrakeAdjustment", "TirePressureCalibration", "WheelTorque", "TireRotation",
)


class ServiceChecklist(Base):
    __tablename__ = "ServiceChecklist"

    ChecklistID = Column(Integer, primary_key=True, autoincrement=True)
    WorkOrderID = Column(Integer, ForeignKey("WorkOrder.WorkOrderID"), nullable=False, unique=True)

    order = relationship("WorkOrder", back_populates="checklist")


for _name in RATING_FIELDS:
    setattr(ServiceChecklist, _name, Column(String(50), nullable=False, server_default=text("''")))
for _name in CHECK_FIELDS:
    setattr(ServiceChecklist, _name, Column(Boolean, nullable=False, server_default=text("0")))
