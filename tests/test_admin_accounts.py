"""Account creation, bootstrap and login tests."""

from pathlib import Path

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select

from qrorder.core.config import Settings
from qrorder.main import create_app
from qrorder.models.audit_log import AuditLog


def _build_app(tmp_path: Path, **overrides) -> FastAPI:
    engine = create_engine(f"sqlite:///{tmp_path / 'accounts.db'}", connect_args={"check_same_thread": False})
    values = {"database_url": str(engine.url), "app_env": "dev", "auto_create_schema": True}
    values.update(overrides)
    return create_app(Settings(**values), engine)


def _account(email: str, role: str) -> dict[str, str]:
    return {"email": email, "password": "secret123", "role": role}


def test_first_account_must_be_owner(tmp_path: Path) -> None:
    app = _build_app(tmp_path)
    with TestClient(app) as client:
        staff_first = client.post("/api/admin/users", json=_account("staff@example.com", "staff"))
        owner_first = client.post("/api/admin/users", json=_account("Owner@Example.com", "owner"))
        anonymous_after = client.post("/api/admin/users", json=_account("second@example.com", "owner"))

        db = app.state.session_factory()
        try:
            audit = db.scalars(select(AuditLog).where(AuditLog.action_type == "account.create")).all()
        finally:
            db.close()

    assert staff_first.status_code == 400
    assert staff_first.json() == {"success": False, "error": "First account must be owner"}
    assert owner_first.status_code == 201
    assert owner_first.json()["data"]["role"] == "owner"
    assert owner_first.json()["data"]["email"] == "owner@example.com"
    assert anonymous_after.status_code == 403
    assert len(audit) == 1
    assert audit[0].actor_role == "anonymous"


def test_owner_login_and_account_creation(tmp_path: Path) -> None:
    app = _build_app(tmp_path)
    with TestClient(app) as client:
        client.post("/api/admin/users", json=_account("owner@example.com", "owner"))

        bad_login = client.post("/api/auth/login", json={"email": "owner@example.com", "password": "wrong"})
        login = client.post("/api/auth/login", json={"email": "owner@example.com", "password": "secret123"})
        token = login.json()["data"]["accessToken"]
        bearer = {"Authorization": f"Bearer {token}"}

        staff = client.post("/api/admin/users", json=_account("staff@example.com", "staff"), headers=bearer)
        duplicate = client.post("/api/admin/users", json=_account("staff@example.com", "staff"), headers=bearer)
        second_owner = client.post("/api/admin/users", json=_account("partner@example.com", "owner"), headers=bearer)
        # Drop the session credential so the override headers below apply.
        client.post("/api/auth/logout")
        admin_makes_owner = client.post(
            "/api/admin/users",
            json=_account("other@example.com", "owner"),
            headers={"x-role": "admin"},
        )
        admin_makes_staff = client.post(
            "/api/admin/users",
            json=_account("cook@example.com", "staff"),
            headers={"x-role": "admin"},
        )
        staff_makes_staff = client.post(
            "/api/admin/users",
            json=_account("waiter@example.com", "staff"),
            headers={"x-role": "staff"},
        )
        invalid_role = client.post("/api/admin/users", json=_account("x@example.com", "customer"), headers=bearer)
        missing_password = client.post(
            "/api/admin/users",
            json={"email": "y@example.com", "password": "", "role": "staff"},
            headers=bearer,
        )

    assert bad_login.status_code == 401
    assert bad_login.json() == {"success": False, "error": "Incorrect email or password"}
    assert login.status_code == 200
    assert login.json()["data"]["role"] == "owner"
    assert login.json()["data"]["tokenType"] == "bearer"
    assert staff.status_code == 201
    assert duplicate.status_code == 400
    assert second_owner.status_code == 201
    assert admin_makes_owner.status_code == 403
    assert admin_makes_owner.json()["error"] == "Only owner can create owner"
    assert admin_makes_staff.status_code == 201
    assert staff_makes_staff.status_code == 403
    assert invalid_role.status_code == 400
    assert missing_password.status_code == 400


def test_session_login_resolves_role_until_logout(tmp_path: Path) -> None:
    app = _build_app(tmp_path)
    with TestClient(app) as client:
        client.post("/api/admin/users", json=_account("owner@example.com", "owner"))
        client.post("/api/auth/login", json={"email": "owner@example.com", "password": "secret123"})
        logged_in = client.get("/api/auth/role")
        client.post("/api/auth/logout")
        logged_out = client.get("/api/auth/role")

    assert logged_in.json()["data"]["resolvedRole"] == "owner"
    assert logged_out.json()["data"]["resolvedRole"] == "anonymous"


def test_role_hint_cookie_is_not_trusted(tmp_path: Path) -> None:
    app = _build_app(tmp_path)
    with TestClient(app) as client:
        hint = client.post("/api/auth/role", json={"role": "admin"})
        current = client.get("/api/auth/role")
        invalid = client.post("/api/auth/role", json={"role": "owner"})
        forbidden = client.post("/api/menu-items", json={"name": "Tea", "price": 1})

    assert hint.status_code == 200
    assert hint.cookies.get("role") == "admin"
    assert current.json()["data"] == {"role": "admin", "resolvedRole": "anonymous"}
    assert invalid.status_code == 400
    assert forbidden.status_code == 403


def test_role_hint_endpoint_is_hidden_in_production(tmp_path: Path) -> None:
    app = _build_app(tmp_path, app_env="production")
    with TestClient(app) as client:
        response = client.post("/api/auth/role", json={"role": "admin"})

    assert response.status_code == 404
    assert response.json()["success"] is False
