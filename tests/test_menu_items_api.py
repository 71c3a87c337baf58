"""Menu item endpoint tests."""

from pathlib import Path

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

from qrorder.core.config import Settings
from qrorder.main import create_app

ADMIN = {"x-role": "admin"}


def _build_app(tmp_path: Path) -> FastAPI:
    engine = create_engine(f"sqlite:///{tmp_path / 'menu.db'}", connect_args={"check_same_thread": False})
    settings = Settings(database_url=str(engine.url), app_env="dev", auto_create_schema=True)
    return create_app(settings, engine)


def _create(client: TestClient, **fields) -> dict:
    response = client.post("/api/menu-items", json=fields, headers=ADMIN)
    assert response.status_code == 201
    return response.json()["data"]


def test_create_and_upsert_by_name(tmp_path: Path) -> None:
    app = _build_app(tmp_path)
    with TestClient(app) as client:
        created = client.post("/api/menu-items", json={"name": "Pho Bo", "price": 45000}, headers=ADMIN)
        updated = client.post(
            "/api/menu-items",
            json={"name": "  Pho Bo ", "price": 50000, "category": "Noodles"},
            headers=ADMIN,
        )
        listing = client.get("/api/menu-items")

    assert created.json()["message"] == "Menu item created"
    assert updated.json()["message"] == "Menu item updated"
    assert updated.json()["data"]["id"] == created.json()["data"]["id"]
    assert updated.json()["data"]["price"] == 50000
    assert updated.json()["data"]["category"] == "Noodles"
    assert len(listing.json()["data"]) == 1


def test_customers_only_see_available_items(tmp_path: Path) -> None:
    app = _build_app(tmp_path)
    with TestClient(app) as client:
        _create(client, name="Spring Rolls", price=30000, sortOrder=2)
        _create(client, name="Banh Xeo", price=40000, sortOrder=1)
        _create(client, name="Seasonal Soup", price=35000, available=False)

        public = client.get("/api/menu-items")
        staff = client.get("/api/menu-items", headers={"x-role": "staff"})
        search = client.get("/api/menu-items", params={"q": "roll"})

    assert [item["name"] for item in public.json()["data"]] == ["Banh Xeo", "Spring Rolls"]
    assert len(staff.json()["data"]) == 3
    assert [item["name"] for item in search.json()["data"]] == ["Spring Rolls"]


def test_patch_and_delete_menu_item(tmp_path: Path) -> None:
    app = _build_app(tmp_path)
    with TestClient(app) as client:
        item = _create(client, name="Che", price=15000, description="Sweet soup")
        patched = client.patch(f"/api/menu-items/{item['id']}", json={"available": False, "price": 18000}, headers=ADMIN)
        fetched = client.get(f"/api/menu-items/{item['id']}")
        removed = client.delete(f"/api/menu-items/{item['id']}", headers=ADMIN)
        gone = client.get(f"/api/menu-items/{item['id']}")

    assert patched.status_code == 200
    assert patched.json()["data"]["available"] is False
    assert patched.json()["data"]["price"] == 18000
    assert patched.json()["data"]["description"] == "Sweet soup"
    assert fetched.json()["data"]["name"] == "Che"
    assert removed.status_code == 200
    assert gone.status_code == 404
    assert gone.json() == {"success": False, "error": "Menu item not found"}


def test_menu_validation_and_authorization(tmp_path: Path) -> None:
    app = _build_app(tmp_path)
    with TestClient(app) as client:
        blank = client.post("/api/menu-items", json={"name": "   ", "price": 1}, headers=ADMIN)
        customer = client.post("/api/menu-items", json={"name": "Tea", "price": 1}, headers={"x-role": "customer"})
        anonymous_patch = client.patch("/api/menu-items/anything", json={"price": 2})
        negative = client.post("/api/menu-items", json={"name": "Tea", "price": -1}, headers=ADMIN)

    assert blank.status_code == 400
    assert blank.json()["error"] == "name is required"
    assert customer.status_code == 403
    assert anonymous_patch.status_code == 403
    assert negative.status_code == 400


def test_rename_to_existing_name_is_rejected(tmp_path: Path) -> None:
    app = _build_app(tmp_path)
    with TestClient(app) as client:
        _create(client, name="Iced Coffee", price=20000)
        second = _create(client, name="Hot Coffee", price=18000)
        renamed = client.patch(f"/api/menu-items/{second['id']}", json={"name": "Iced Coffee"}, headers=ADMIN)
        fetched = client.get(f"/api/menu-items/{second['id']}")

    assert renamed.status_code == 400
    assert renamed.json() == {"success": False, "error": "Menu item name already exists"}
    assert fetched.json()["data"]["name"] == "Hot Coffee"
