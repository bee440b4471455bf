# backend/workshop/scripts/seed.py
"""
Idempotent reference data: order types, service types and an admin user.

    python -m workshop.scripts.seed [--demo]
"""
import argparse
import logging
import os
from contextlib import contextmanager

from sqlalchemy import select

from workshop.core.db import SessionLocal
from workshop.core.security import hash_password
from workshop.domain.constants import (
    ORDER_TYPE_DIAGNOSTIC, ORDER_TYPE_REPAIR, ORDER_TYPE_RETURN, ORDER_TYPE_SERVICE,
    ORDER_TYPE_WARRANTY,
)
from workshop.models import AppUser, Customer, OrderType, ServiceType, Vehicle

logger = logging.getLogger(__name__)

# ---------- helpers ----------

@contextmanager
def session_scope(factory=SessionLocal):
    """One-off session; rolls back on error."""
    db = factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

def get_one(db, model, **by):
    return db.execute(select(model).filter_by(**by)).scalars().first()

def get_or_create(db, model, unique_by: dict, defaults: dict | None = None):
    """Look up by unique_by, create when missing. Caller commits."""
    inst = get_one(db, model, **unique_by)
    if inst:
        return inst, False
    inst = model(**{**unique_by, **(defaults or {})})
    db.add(inst)
    return inst, True

# ---------- reference data ----------

ORDER_TYPES = [
    {"OrderTypeID": ORDER_TYPE_SERVICE,    "Name": "Service"},
    {"OrderTypeID": ORDER_TYPE_DIAGNOSTIC, "Name": "Diagnostic"},
    {"OrderTypeID": ORDER_TYPE_REPAIR,     "Name": "Repair"},
    {"OrderTypeID": ORDER_TYPE_WARRANTY,   "Name": "Warranty"},
    {"OrderTypeID": ORDER_TYPE_RETURN,     "Name": "Return"},
]

SERVICE_TYPES = [
    {"ServiceTypeID": 1, "Name": "First Service"},
    {"ServiceTypeID": 2, "Name": "Second Service"},
    {"ServiceTypeID": 3, "Name": "Third Service"},
]

DEMO_STAFF = [
    {"Username": "scheduler", "FullName": "Front Desk", "Role": "scheduler"},
    {"Username": "advisor",   "FullName": "Service Advisor", "Role": "advisor"},
    {"Username": "manager",   "FullName": "Shop Manager", "Role": "shop_manager"},
    {"Username": "tech1",     "FullName": "Technician One", "Role": "technician"},
]


def seed_reference(db) -> dict:
    created = {"OrderType": 0, "ServiceType": 0, "AppUser": 0}
    for row in ORDER_TYPES:
        _, new = get_or_create(db, OrderType, {"OrderTypeID": row["OrderTypeID"]}, defaults=row)
        created["OrderType"] += int(new)
    for row in SERVICE_TYPES:
        _, new = get_or_create(db, ServiceType, {"ServiceTypeID": row["ServiceTypeID"]}, defaults=row)
        created["ServiceType"] += int(new)

    _, new = get_or_create(
        db, AppUser, {"Username": os.getenv("SEED_ADMIN_USERNAME", "admin")},
        defaults={
            "FullName": "Administrator",
            "Role": "admin",
            "IsActive": True,
            "HashedPassword": hash_password(os.getenv("SEED_ADMIN_PASSWORD", "admin123")),
        },
    )
    created["AppUser"] += int(new)
    return created


def seed_demo(db) -> None:
    for s in DEMO_STAFF:
        get_or_create(db, AppUser, {"Username": s["Username"]}, defaults={
            **s, "IsActive": True, "HashedPassword": hash_password("demo1234"),
        })
    customer, _ = get_or_create(db, Customer, {"FullName": "Demo Customer"}, defaults={
        "MobilePhone": "555-0100", "Email": "demo@example.com", "IsActive": True,
    })
    db.flush()
    get_or_create(db, Vehicle, {"VIN": "1HGCM82633A004352"}, defaults={
        "CustomerID": customer.CustomerID, "Make": "Honda", "Model": "Accord",
        "Year": 2020, "Color": "Gray", "Plates": "ABC-123", "IsActive": True,
    })


def run(demo: bool = False, factory=SessionLocal) -> dict:
    with session_scope(factory) as db:
        logger.info(">> Seeding: OrderType / ServiceType / admin")
        created = seed_reference(db)
        if demo:
            logger.info(">> Seeding: demo staff, customer and vehicle")
            seed_demo(db)
    logger.info("Seed done: %s", created)
    return created


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(description="Seed reference data")
    parser.add_argument("--demo", action="store_true", help="also add demo staff, customer and vehicle")
    args = parser.parse_args()
    run(demo=args.demo)
