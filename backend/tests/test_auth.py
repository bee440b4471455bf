import pytest
from fastapi.testclient import TestClient

from workshop.main import app


@pytest.fixture
def anon(_schema):
    app.dependency_overrides.clear()
    with TestClient(app) as c:
        yield c


def _register(c, username="carla", role="advisor", **extra):
    body = {"username": username, "password": "s3cret-pass", "role": role,
            "full_name": "Carla Ruiz", "email": f"{username}@shop.mx"}
    body.update(extra)
    return c.post("/auth/register", json=body)


def _login(c, username="carla", password="s3cret-pass"):
    return c.post("/auth/login", data={"username": username, "password": password})


def test_register_login_me(anon):
    r = _register(anon)
    assert r.status_code == 201
    assert r.json()["Role"] == "advisor"
    assert "HashedPassword" not in r.json()

    r = _login(anon)
    assert r.status_code == 200
    token = r.json()["access_token"]

    me = anon.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["Username"] == "carla"


def test_lenient_bearer_header(anon):
    _register(anon)
    token = _login(anon).json()["access_token"]
    r = anon.get("/auth/me", headers={"Authorization": f'"Bearer Bearer   {token}"'})
    assert r.status_code == 200


def test_duplicate_username_conflicts(anon):
    _register(anon)
    r = _register(anon, email="other@shop.mx")
    assert r.status_code == 409
    assert r.json()["ok"] is False


def test_unknown_role_is_rejected(anon):
    assert _register(anon, role="janitor").status_code == 422


def test_bad_password_is_401(anon):
    _register(anon)
    r = _login(anon, password="wrong-pass")
    assert r.status_code == 401
    assert r.headers.get("WWW-Authenticate") == "Bearer"


def test_protected_route_without_token(anon):
    assert anon.get("/reminders/summary").status_code == 401
    assert anon.get("/auth/me", headers={"Authorization": "Token abc"}).status_code == 401


def test_role_guard_with_real_token(anon):
    _register(anon, username="tecnico", role="technician")
    token = _login(anon, username="tecnico").json()["access_token"]
    r = anon.get("/orders/shop-manager/1", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 403
