"""initial workshop schema

Revision ID: 5c1e2a7d9b40
Revises:
Create Date: 2025-10-06 09:12:41.502113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5c1e2a7d9b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# ServiceChecklist columns, frozen at this revision
CHECKLIST_RATINGS = (
    "TieRods", "TieRodEnds", "SteeringBox", "SteeringWheel",
    "FrontShocks", "RearShocks", "StabilizerBar", "ControlArms",
    "FrontTires", "RearTires", "Balancing", "Alignment",
    "HighBeams", "LowBeams", "FogLights", "ReverseLights", "TurnSignals", "HazardLights",
    "FrontDiscsDrums", "RearDiscsDrums", "FrontPads", "RearPads",
)
CHECKLIST_CHECKS = (
    "ReplacedEngineOil", "ReplacedOilFilter", "ReplacedEngineAirFilter", "ReplacedCabinFilter",
    "BrakeDeglazing", "BrakeAdjustment", "TirePressureCalibration", "WheelTorque", "TireRotation",
)

ONE = sa.text("1")
ZERO = sa.text("0")


def upgrade():
    op.create_table(
        "AppUser",
        sa.Column("UserID", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("Username", sa.String(50), nullable=False, unique=True),
        sa.Column("FullName", sa.String(100)),
        sa.Column("Email", sa.String(200)),
        sa.Column("HashedPassword", sa.String(255), nullable=False),
        sa.Column("Role", sa.String(20), nullable=False, server_default=sa.text("'viewer'")),
        sa.Column("IsActive", sa.Boolean, nullable=False, server_default=ONE),
        sa.Column("CreatedAt", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "Role in ('viewer','scheduler','advisor','shop_manager','technician','admin')",
            name="CK_AppUser_Role",
        ),
    )
    op.create_table(
        "Customer",
        sa.Column("CustomerID", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("FullName", sa.String(200), nullable=False),
        sa.Column("TaxID", sa.String(20)),
        sa.Column("MobilePhone", sa.String(30)),
        sa.Column("HomePhone", sa.String(30)),
        sa.Column("Email", sa.String(200)),
        sa.Column("Street", sa.String(200)),
        sa.Column("ExteriorNumber", sa.String(20)),
        sa.Column("Neighborhood", sa.String(120)),
        sa.Column("Municipality", sa.String(120)),
        sa.Column("State", sa.String(120)),
        sa.Column("IsActive", sa.Boolean, nullable=False, server_default=ONE),
    )
    op.create_table(
        "Vehicle",
        sa.Column("VehicleID", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("CustomerID", sa.Integer, sa.ForeignKey("Customer.CustomerID"), nullable=False),
        sa.Column("Make", sa.String(60), nullable=False),
        sa.Column("Model", sa.String(60), nullable=False),
        sa.Column("Year", sa.Integer),
        sa.Column("Version", sa.String(60)),
        sa.Column("Color", sa.String(40)),
        sa.Column("VIN", sa.String(17)),
        sa.Column("Plates", sa.String(15)),
        sa.Column("IsActive", sa.Boolean, nullable=False, server_default=ONE),
    )
    op.create_table(
        "OrderType",
        sa.Column("OrderTypeID", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("Name", sa.String(60), nullable=False),
    )
    op.create_table(
        "ServiceType",
        sa.Column("ServiceTypeID", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("Name", sa.String(100), nullable=False),
    )

    op.create_table(
        "Appointment",
        sa.Column("AppointmentID", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("OrderTypeID", sa.Integer, sa.ForeignKey("OrderType.OrderTypeID"), nullable=False),
        sa.Column("CustomerID", sa.Integer, sa.ForeignKey("Customer.CustomerID"), nullable=False),
        sa.Column("VehicleID", sa.Integer, sa.ForeignKey("Vehicle.VehicleID"), nullable=False),
        sa.Column("ServiceTypeID", sa.Integer, sa.ForeignKey("ServiceType.ServiceTypeID")),
        sa.Column("SchedulerID", sa.Integer, sa.ForeignKey("AppUser.UserID"), nullable=False),
        sa.Column("ScheduledAt", sa.DateTime, nullable=False),
        sa.Column("CreatedAt", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("IsActive", sa.Boolean, nullable=False, server_default=ONE),
    )
    op.create_index("ix_Appointment_ScheduledAt", "Appointment", ["ScheduledAt"])

    op.create_table(
        "AppointmentWorkItem",
        sa.Column("AppointmentWorkItemID", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("AppointmentID", sa.Integer, sa.ForeignKey("Appointment.AppointmentID"), nullable=False),
        sa.Column("Description", sa.String(500), nullable=False),
        sa.Column("Instructions", sa.String(1000)),
        sa.Column("PartsReady", sa.Boolean, nullable=False, server_default=ZERO),
        sa.Column("IsActive", sa.Boolean, nullable=False, server_default=ONE),
    )
    op.create_index("ix_AppointmentWorkItem_AppointmentID", "AppointmentWorkItem", ["AppointmentID"])

    op.create_table(
        "WorkOrder",
        sa.Column("WorkOrderID", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("OrderNumber", sa.String(20), nullable=False, unique=True),
        sa.Column("OrderTypeID", sa.Integer, sa.ForeignKey("OrderType.OrderTypeID"), nullable=False),
        sa.Column("CustomerID", sa.Integer, sa.ForeignKey("Customer.CustomerID"), nullable=False),
        sa.Column("VehicleID", sa.Integer, sa.ForeignKey("Vehicle.VehicleID"), nullable=False),
        sa.Column("ServiceTypeID", sa.Integer, sa.ForeignKey("ServiceType.ServiceTypeID")),
        sa.Column("AdvisorID", sa.Integer, sa.ForeignKey("AppUser.UserID"), nullable=False),
        sa.Column("Odometer", sa.Integer, nullable=False, server_default=ZERO),
        sa.Column("StatusID", sa.Integer, nullable=False, server_default=ONE),
        sa.Column("PromisedDeliveryAt", sa.DateTime, nullable=False),
        sa.Column("DeliveredAt", sa.DateTime),
        sa.Column("AdvisorNotes", sa.String(1000)),
        sa.Column("ShopManagerNotes", sa.String(1000)),
        sa.Column("CostTotal", sa.DECIMAL(12, 2), nullable=False, server_default=ZERO),
        sa.Column("CostTotalWithTax", sa.DECIMAL(12, 2), nullable=False, server_default=ZERO),
        sa.Column("TotalWorkItems", sa.Integer, nullable=False, server_default=ZERO),
        sa.Column("CompletedWorkItems", sa.Integer, nullable=False, server_default=ZERO),
        sa.Column("Progress", sa.DECIMAL(5, 2), nullable=False, server_default=ZERO),
        sa.Column("HasEvidence", sa.Boolean, nullable=False, server_default=ZERO),
        sa.Column("CreatedAt", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("IsActive", sa.Boolean, nullable=False, server_default=ONE),
        sa.CheckConstraint("StatusID between 1 and 5", name="CK_WO_Status"),
        sa.CheckConstraint("CompletedWorkItems <= TotalWorkItems", name="CK_WO_Completed_LE_Total"),
    )
    op.create_index("ix_WorkOrder_VehicleID", "WorkOrder", ["VehicleID"])

    op.create_table(
        "OrderWorkItem",
        sa.Column("OrderWorkItemID", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("WorkOrderID", sa.Integer, sa.ForeignKey("WorkOrder.WorkOrderID"), nullable=False),
        sa.Column("Description", sa.String(500), nullable=False),
        sa.Column("Instructions", sa.String(1000)),
        sa.Column("TechnicianID", sa.Integer, sa.ForeignKey("AppUser.UserID")),
        sa.Column("AssignedAt", sa.DateTime),
        sa.Column("StartedAt", sa.DateTime),
        sa.Column("EndedAt", sa.DateTime),
        sa.Column("TechnicianComments", sa.String(1000)),
        sa.Column("ShopManagerComments", sa.String(1000)),
        sa.Column("PartsReady", sa.Boolean, nullable=False, server_default=ZERO),
        sa.Column("LaborCost", sa.DECIMAL(10, 2), nullable=False, server_default=ZERO),
        sa.Column("StatusID", sa.Integer, nullable=False, server_default=ONE),
        sa.Column("IsActive", sa.Boolean, nullable=False, server_default=ONE),
        sa.Column("CreatedAt", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("StatusID between 1 and 6", name="CK_OWI_Status"),
    )
    op.create_index("ix_OrderWorkItem_WorkOrderID", "OrderWorkItem", ["WorkOrderID"])

    op.create_table(
        "PurchasedPart",
        sa.Column("PurchasedPartID", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("AppointmentWorkItemID", sa.Integer,
                  sa.ForeignKey("AppointmentWorkItem.AppointmentWorkItemID")),
        sa.Column("OrderWorkItemID", sa.Integer, sa.ForeignKey("OrderWorkItem.OrderWorkItemID")),
        sa.Column("Description", sa.String(255), nullable=False),
        sa.Column("Quantity", sa.Integer, nullable=False),
        sa.Column("UnitCost", sa.DECIMAL(10, 2), nullable=False),
        sa.Column("UnitSalePrice", sa.DECIMAL(10, 2)),
        sa.Column("PurchasedAt", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("Transferred", sa.Boolean, nullable=False, server_default=ZERO),
        sa.CheckConstraint("Quantity > 0", name="CK_PurchasedPart_Quantity_Positive"),
        sa.CheckConstraint("UnitCost > 0", name="CK_PurchasedPart_UnitCost_Positive"),
        sa.CheckConstraint(
            "(AppointmentWorkItemID IS NOT NULL AND OrderWorkItemID IS NULL) OR "
            "(AppointmentWorkItemID IS NULL AND OrderWorkItemID IS NOT NULL)",
            name="CK_PurchasedPart_SingleOwner",
        ),
    )
    op.create_index("ix_PurchasedPart_AppointmentWorkItemID", "PurchasedPart", ["AppointmentWorkItemID"])
    op.create_index("ix_PurchasedPart_OrderWorkItemID", "PurchasedPart", ["OrderWorkItemID"])

    op.create_table(
        "NextServiceReminder",
        sa.Column("ReminderID", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("CustomerID", sa.Integer, sa.ForeignKey("Customer.CustomerID"), nullable=False),
        sa.Column("VehicleID", sa.Integer, sa.ForeignKey("Vehicle.VehicleID"), nullable=False, unique=True),
        sa.Column("LastServiceName", sa.String(100), nullable=False),
        sa.Column("NextServiceLabel", sa.String(100), nullable=False),
        sa.Column("LastOdometer", sa.Integer, nullable=False, server_default=ZERO),
        sa.Column("LastServiceDate", sa.Date, nullable=False),
        sa.Column("NextServiceDate", sa.Date),
        sa.Column("NextServiceOdometer", sa.Integer),
        sa.Column("FirstReminderSent", sa.Boolean, nullable=False, server_default=ZERO),
        sa.Column("SecondReminderSent", sa.Boolean, nullable=False, server_default=ZERO),
        sa.Column("ThirdReminderSent", sa.Boolean, nullable=False, server_default=ZERO),
        sa.Column("IsActive", sa.Boolean, nullable=False, server_default=ONE),
        sa.Column("ModifiedAt", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "(SecondReminderSent = 0 OR FirstReminderSent = 1) AND "
            "(ThirdReminderSent = 0 OR SecondReminderSent = 1)",
            name="CK_Reminder_Monotonic",
        ),
    )

    op.create_table(
        "ServiceChecklist",
        sa.Column("ChecklistID", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("WorkOrderID", sa.Integer, sa.ForeignKey("WorkOrder.WorkOrderID"),
                  nullable=False, unique=True),
        *[sa.Column(name, sa.String(50), nullable=False, server_default=sa.text("''"))
          for name in CHECKLIST_RATINGS],
        *[sa.Column(name, sa.Boolean, nullable=False, server_default=ZERO)
          for name in CHECKLIST_CHECKS],
    )


def downgrade():
    op.drop_table("ServiceChecklist")
    op.drop_table("NextServiceReminder")
    op.drop_index("ix_PurchasedPart_OrderWorkItemID", table_name="PurchasedPart")
    op.drop_index("ix_PurchasedPart_AppointmentWorkItemID", table_name="PurchasedPart")
    op.drop_table("PurchasedPart")
    op.drop_index("ix_OrderWorkItem_WorkOrderID", table_name="OrderWorkItem")
    op.drop_table("OrderWorkItem")
    op.drop_index("ix_WorkOrder_VehicleID", table_name="WorkOrder")
    op.drop_table("WorkOrder")
    op.drop_index("ix_AppointmentWorkItem_AppointmentID", table_name="AppointmentWorkItem")
    op.drop_table("AppointmentWorkItem")
    op.drop_index("ix_Appointment_ScheduledAt", table_name="Appointment")
    op.drop_table("Appointment")
    op.drop_table("ServiceType")
    op.drop_table("OrderType")
    op.drop_table("Vehicle")
    op.drop_table("Customer")
    op.drop_table("AppUser")
