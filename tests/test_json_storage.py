"""
Document driver tests: file layout, legacy documents and write serialization.
"""
from __future__ import annotations

import asyncio
import json

import pytest

from storefront.repositories.json_storage import JSONStorage


def test_concurrent_creates_are_not_lost(document_store):
    async def burst():
        await asyncio.gather(
            *(document_store.create_product({"name": f"P{i}", "price": i}) for i in range(25))
        )
        return await document_store.list_products()

    products = asyncio.run(burst())
    assert len(products) == 25
    assert len({p["id"] for p in products}) == 25
    on_disk = json.loads(document_store.settings.data_file.read_text(encoding="utf-8"))
    assert len(on_disk["products"]) == 25


def test_concurrent_registrations_keep_usernames_unique(document_store):
    async def burst():
        return await asyncio.gather(*(document_store.register("eve", "secret1") for _ in range(5)))

    results = asyncio.run(burst())
    assert sum(1 for r in results if r is not None) == 1
    assert asyncio.run(document_store.status())["counts"]["users"] == 2


def test_file_layout(document_store):
    asyncio.run(document_store.create_order({}))
    data = json.loads(document_store.settings.data_file.read_text(encoding="utf-8"))
    assert set(data) == {"users", "products", "orders", "settings"}
    admin = data["users"][0]
    assert admin["username"] == "admin"
    assert admin["isAdmin"] is True
    assert admin["password"].startswith("argon2$")
    assert data["orders"][0]["orderNumber"].startswith("DD")
    assert data["settings"]["storeName"]


def test_legacy_snake_case_document(tmp_path):
    path = tmp_path / "legacy.json"
    path.write_text(
        json.dumps(
            {
                "users": [{"id": 1, "username": "old", "password": "argon2$x", "is_admin": True}],
                "products": [{"id": 5, "name": "Old", "price": "2", "image_url": "http://i/old.png"}],
            }
        ),
        encoding="utf-8",
    )
    storage = JSONStorage(path)

    user = asyncio.run(storage.get_user("old"))
    assert user["isAdmin"] is True
    product = asyncio.run(storage.get_product(5))
    assert product["imageUrl"] == "http://i/old.png"
    assert product["price"] == 2.0
    assert asyncio.run(storage.get_settings())["storeName"] is None


def test_status_rewrite_migrates_legacy_keys(tmp_path):
    path = tmp_path / "legacy.json"
    path.write_text(json.dumps({"orders": [{"id": 9, "order_number": "DD00000009", "status": "pending"}]}))
    storage = JSONStorage(path)

    assert asyncio.run(storage.set_order_status(9, "completed", "2024-01-01T00:00:00+00:00")) is True
    stored = json.loads(path.read_text(encoding="utf-8"))["orders"][0]
    assert stored["orderNumber"] == "DD00000009"
    assert stored["status"] == "completed"
    assert "order_number" not in stored


def test_failed_mutation_releases_lock_and_keeps_file(tmp_path):
    storage = JSONStorage(tmp_path / "data.json")
    asyncio.run(storage.create_product({"name": "Keep", "price": 1, "createdAt": "2024-01-01T00:00:00+00:00"}))
    before = storage.path.read_text(encoding="utf-8")

    async def failing():
        async with storage._mutation() as db:
            db["products"].clear()
            raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        asyncio.run(failing())
    assert storage.path.read_text(encoding="utf-8") == before
    assert not storage._lock.locked()
    assert len(asyncio.run(storage.list_products())) == 1


def test_missing_file_reads_as_empty(tmp_path):
    storage = JSONStorage(tmp_path / "nope" / "data.json")
    assert asyncio.run(storage.list_products()) == []
    assert asyncio.run(storage.counts()) == {"users": 0, "products": 0, "orders": 0}
    assert not storage.path.exists()


def test_one_bad_amount_does_not_hide_other_records(document_store):
    asyncio.run(document_store.create_product({"name": "Good", "price": 5}))
    asyncio.run(document_store.create_order({"totalAmount": 7}))
    path = document_store.settings.data_file
    data = json.loads(path.read_text(encoding="utf-8"))
    data["products"].append({"id": 1, "name": "Broken", "price": "1e40"})
    data["orders"].append({"id": 2, "orderNumber": "DD00000002", "totalAmount": "1e40"})
    path.write_text(json.dumps(data), encoding="utf-8")

    products = {p["name"]: p for p in asyncio.run(document_store.list_products())}
    assert set(products) == {"Good", "Broken"}
    assert products["Good"]["price"] == 5.0
    assert products["Broken"]["price"] == 0.0

    orders = asyncio.run(document_store.list_orders())
    assert len(orders) == 2
    assert len(asyncio.run(document_store.backup())["orders"]) == 2
