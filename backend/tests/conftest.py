# backend/tests/conftest.py
import os

# In-memory SQLite for the whole test session; must be set before workshop imports
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("MSSQL_DSN", None)

from datetime import datetime, timedelta

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from workshop.core.db import Base, SessionLocal, engine, get_db
from workshop.core.security import get_current_user
from workshop.main import app
from workshop.models import AppUser, Customer, OrderType, ServiceType, Vehicle, WorkOrder
from workshop.scripts.seed import ORDER_TYPES, SERVICE_TYPES
from workshop.services import appointment_service, order_service, work_item_service


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(_schema):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _user(db: Session, username: str, role: str) -> AppUser:
    u = AppUser(Username=username, FullName=username.title(), Role=role,
                HashedPassword="not-a-real-hash", IsActive=True)
    db.add(u)
    return u


@pytest.fixture
def shop(db):
    """Catalog rows, staff, one customer with two vehicles."""
    for row in ORDER_TYPES:
        db.add(OrderType(**row))
    for row in SERVICE_TYPES:
        db.add(ServiceType(**row))

    admin = _user(db, "admin", "admin")
    scheduler = _user(db, "sofia", "scheduler")
    advisor = _user(db, "andres", "advisor")
    manager = _user(db, "marta", "shop_manager")
    tech = _user(db, "tomas", "technician")

    customer = Customer(FullName="Laura Gomez", TaxID="GOML800101AB1", MobilePhone="555-0101",
                        Email="laura@example.com", Street="Av. Reforma", ExteriorNumber="12",
                        Neighborhood="Centro", Municipality="Cuauhtemoc", State="CDMX", IsActive=True)
    db.add(customer)
    db.flush()
    car = Vehicle(CustomerID=customer.CustomerID, Make="Nissan", Model="Versa", Year=2021,
                  Color="White", VIN="3N1CN8AP1ML000001", Plates="ABC-123", IsActive=True)
    other = Vehicle(CustomerID=customer.CustomerID, Make="Mazda", Model="CX-5", Year=2019,
                    Color="Red", VIN="JM3KFBCM1K0000002", Plates=None, IsActive=True)
    db.add_all([car, other])
    db.commit()

    class Shop:
        pass

    s = Shop()
    s.admin_id = admin.UserID
    s.scheduler_id = scheduler.UserID
    s.advisor_id = advisor.UserID
    s.manager_id = manager.UserID
    s.tech_id = tech.UserID
    s.customer_id = customer.CustomerID
    s.vehicle_id = car.VehicleID
    s.other_vehicle_id = other.VehicleID
    return s


def _login_as(user_id: int):
    def _current(db: Session = Depends(get_db)) -> AppUser:
        return db.get(AppUser, user_id)
    return _current


@pytest.fixture
def client(shop):
    """TestClient acting as the admin user."""
    app.dependency_overrides[get_current_user] = _login_as(shop.admin_id)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def login_as():
    """Switch the acting user inside a test: login_as(user_id)."""
    def _switch(user_id: int):
        app.dependency_overrides[get_current_user] = _login_as(user_id)
    return _switch


@pytest.fixture
def tomorrow_nine():
    d = datetime.now() + timedelta(days=1)
    return d.replace(hour=9, minute=0, second=0, microsecond=0)


@pytest.fixture
def make_appointment(db, shop, tomorrow_nine):
    def _make(**overrides):
        args = dict(
            order_type_id=1,
            customer_id=shop.customer_id,
            vehicle_id=shop.vehicle_id,
            service_type_id=1,
            scheduler_id=shop.scheduler_id,
            scheduled_at=tomorrow_nine,
            work_items=[{"Description": "Oil change"}],
        )
        args.update(overrides)
        return appointment_service.create_appointment(db, **args)
    return _make


@pytest.fixture
def make_order(db, shop):
    def _make(**overrides):
        args = dict(
            order_type_id=1,
            customer_id=shop.customer_id,
            vehicle_id=shop.vehicle_id,
            service_type_id=1,
            advisor_id=shop.advisor_id,
            odometer=15000,
            promised_delivery_at=datetime.now() + timedelta(days=2),
            work_items=[{"Description": "Oil change"}, {"Description": "Brake inspection"}],
        )
        args.update(overrides)
        return order_service.create_order(db, **args)
    return _make


@pytest.fixture
def finished_order(db, shop, make_order):
    """Service order whose work items are all completed; costs not finalized."""
    created = make_order()
    order = db.get(WorkOrder, created["WorkOrderID"])
    for item_id in [w.OrderWorkItemID for w in order.work_items]:
        work_item_service.assign_technician(db, work_item_id=item_id, technician_id=shop.tech_id)
        work_item_service.start(db, work_item_id=item_id)
        work_item_service.complete(db, work_item_id=item_id)
    return created
