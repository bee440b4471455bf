from datetime import datetime
from decimal import Decimal

import pytest

from workshop.core.errors import ConflictError, NotFound, ValidationError
from workshop.models import OrderWorkItem, WorkOrder
from workshop.services import order_service, work_item_service


@pytest.fixture
def items(db, make_order):
    res = make_order()
    ids = [w.OrderWorkItemID for w in db.get(WorkOrder, res["WorkOrderID"]).work_items]
    return res["WorkOrderID"], ids


def test_full_progression(db, shop, items):
    order_id, (first, second) = items
    t0 = datetime(2025, 2, 3, 8, 0)

    out = work_item_service.assign_technician(db, work_item_id=first, technician_id=shop.tech_id,
                                              manager_comments="Check rear pads too", now=t0)
    assert out["StatusID"] == 2 and out["AssignedAt"] == t0
    order = db.get(WorkOrder, order_id)
    assert order.StatusID == 2
    assert db.get(OrderWorkItem, first).ShopManagerComments == "Check rear pads too"

    work_item_service.start(db, work_item_id=first, now=datetime(2025, 2, 3, 9, 0))
    assert db.get(WorkOrder, order_id).StatusID == 3

    work_item_service.pause(db, work_item_id=first, comments="Waiting for pads")
    item = db.get(OrderWorkItem, first)
    assert item.StatusID == 5 and item.TechnicianComments == "Waiting for pads"

    work_item_service.start(db, work_item_id=first, now=datetime(2025, 2, 3, 11, 0))
    # resuming keeps the first start time
    assert db.get(OrderWorkItem, first).StartedAt == datetime(2025, 2, 3, 9, 0)

    out = work_item_service.complete(db, work_item_id=first, now=datetime(2025, 2, 3, 12, 15))
    assert out["StatusID"] == 4
    assert out["Progress"] == Decimal("50.00")
    order = db.get(WorkOrder, order_id)
    assert order.CompletedWorkItems == 1 and order.TotalWorkItems == 2


def test_reassign_before_start(db, shop, items):
    _, (first, _) = items
    work_item_service.assign_technician(db, work_item_id=first, technician_id=shop.tech_id)
    out = work_item_service.assign_technician(db, work_item_id=first, technician_id=shop.tech_id,
                                              manager_comments="second try")
    assert out["StatusID"] == 2


def test_invalid_transitions_conflict(db, shop, items):
    _, (first, second) = items
    with pytest.raises(ConflictError):
        work_item_service.start(db, work_item_id=first)
    with pytest.raises(ConflictError):
        work_item_service.complete(db, work_item_id=first)
    with pytest.raises(ConflictError):
        work_item_service.pause(db, work_item_id=first)

    work_item_service.assign_technician(db, work_item_id=first, technician_id=shop.tech_id)
    work_item_service.start(db, work_item_id=first)
    work_item_service.complete(db, work_item_id=first)
    with pytest.raises(ConflictError):
        work_item_service.assign_technician(db, work_item_id=first, technician_id=shop.tech_id)
    with pytest.raises(ConflictError):
        work_item_service.start(db, work_item_id=first)


def test_assign_requires_technician_role(db, shop, items):
    _, (first, _) = items
    with pytest.raises(ValidationError):
        work_item_service.assign_technician(db, work_item_id=first, technician_id=shop.advisor_id)
    with pytest.raises(NotFound):
        work_item_service.assign_technician(db, work_item_id=first, technician_id=999)
    assert db.get(OrderWorkItem, first).StatusID == 1


def test_actions_on_closed_order_conflict(db, shop, items):
    order_id, (first, _) = items
    order_service.cancel(db, order_id=order_id)
    with pytest.raises(ConflictError):
        work_item_service.assign_technician(db, work_item_id=first, technician_id=shop.tech_id)


def test_missing_item(db, shop):
    with pytest.raises(NotFound):
        work_item_service.start(db, work_item_id=404)


def test_recount_ignores_inactive_items(db, items):
    order_id, (first, second) = items
    order = db.get(WorkOrder, order_id)
    order.work_items[1].IsActive = False
    order.work_items[0].StatusID = 4
    work_item_service.recount(order)
    assert order.TotalWorkItems == 1
    assert order.CompletedWorkItems == 1
    assert order.Progress == Decimal("100.00")
    db.rollback()


# ---- HTTP ----
def test_api_board_and_roles(client, shop, login_as, items):
    _, (first, _) = items
    login_as(shop.manager_id)
    r = client.put(f"/orders/work-items/{first}/assign", json={"TechnicianID": shop.tech_id})
    assert r.status_code == 200

    login_as(shop.tech_id)
    assert client.put(f"/orders/work-items/{first}/start").status_code == 200
    board = client.get("/orders/work-items").json()
    assert board["meta"]["count"] == 1
    assert board["data"][0]["Status"] == "In progress"

    # technicians cannot assign work
    r = client.put(f"/orders/work-items/{first}/assign", json={"TechnicianID": shop.tech_id})
    assert r.status_code == 403


def test_api_invalid_transition_is_409(client, items):
    _, (first, _) = items
    r = client.put(f"/orders/work-items/{first}/complete", json={})
    assert r.status_code == 409
    assert r.json()["meta"]["kind"] == "conflict"
