"""
HTTP layer: routes, status codes and the {success, data, error} envelope.
"""
from __future__ import annotations

import re

import pytest
from fastapi.testclient import TestClient

from storefront.app import create_app
from tests.conftest import make_settings


@pytest.fixture(params=["document", "sql"])
def client(request, tmp_path):
    app = create_app(make_settings(tmp_path, request.param))
    with TestClient(app) as test_client:
        yield test_client


def test_product_crud(client):
    resp = client.post("/api/products", json={"name": "Tea", "price": "9.9", "description": "hot"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    product = body["data"]
    assert product["price"] == 9.9

    listed = client.get("/api/products").json()
    assert listed == {"success": True, "data": [product]}

    assert client.delete(f"/api/products/{product['id']}").json()["success"] is True
    missing = client.delete(f"/api/products/{product['id']}")
    assert missing.status_code == 404
    assert missing.json() == {"success": False, "error": "Product not found"}


def test_invalid_product_is_400(client):
    resp = client.post("/api/products", json={"name": "Tea", "price": "free"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert "number" in resp.json()["error"]


def test_malformed_body_uses_envelope(client):
    resp = client.post("/api/products", content="not json", headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_orders_flow(client):
    created = client.post("/api/orders", json={})
    assert created.status_code == 201
    order = created.json()["data"]
    assert re.fullmatch(r"DD\d{8}", order["orderNumber"])
    assert order["status"] == "pending"

    resp = client.put(f"/api/orders/{order['id']}/status", json={"status": "paid"})
    assert resp.json()["success"] is True
    assert client.get("/api/orders").json()["data"][0]["status"] == "paid"

    missing = client.put("/api/orders/999999/status", json={"status": "paid"})
    assert missing.status_code == 404
    no_status = client.put(f"/api/orders/{order['id']}/status", json={})
    assert no_status.status_code == 400


def test_login_and_register(client):
    admin = client.post("/api/login", json={"username": "admin", "password": "admin123"})
    assert admin.status_code == 200
    assert admin.json()["data"]["isAdmin"] is True
    assert "password" not in admin.json()["data"]

    wrong = client.post("/api/login", json={"username": "admin", "password": "wrong"})
    unknown = client.post("/api/login", json={"username": "nouser", "password": "x"})
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json()

    first = client.post("/api/register", json={"username": "amy", "password": "secret1"})
    assert first.status_code == 201
    assert first.json()["data"]["isAdmin"] is False
    second = client.post("/api/register", json={"username": "amy", "password": "secret1"})
    assert second.status_code == 400
    assert second.json() == {"success": False, "error": "Username already exists"}

    short = client.post("/api/register", json={"username": "bo", "password": "123"})
    assert short.status_code == 400


def test_settings_round_trip(client):
    original = client.get("/api/settings").json()["data"]
    updated = client.put("/api/settings", json={"storeName": "X"}).json()["data"]
    assert updated == {**original, "storeName": "X"}
    assert client.get("/api/settings").json()["data"] == updated


def test_status_and_backup(client):
    client.post("/api/products", json={"name": "A", "price": 1})
    status = client.get("/api/status").json()["data"]
    assert status["status"] == "ok"
    assert status["backend"] in {"sql", "document"}
    assert status["counts"]["products"] == 1

    backup = client.get("/api/backup").json()["data"]
    assert backup["products"][0]["name"] == "A"
    assert all("password" not in user for user in backup["users"])


def test_login_is_rate_limited(tmp_path):
    app = create_app(make_settings(tmp_path, login_rate_limit=2))
    with TestClient(app) as client:
        for _ in range(2):
            assert client.post("/api/login", json={"username": "x", "password": "y"}).status_code == 401
        limited = client.post("/api/login", json={"username": "x", "password": "y"})
    assert limited.status_code == 429
    assert limited.json()["success"] is False


def test_security_headers(client):
    resp = client.get("/api/status")
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
