"""
JSON document driver.

All four collections live in one file:

    {"users": [...], "products": [...], "orders": [...], "settings": {...}}

Every mutation loads the whole document, changes it in memory and rewrites the
whole file while holding a single asyncio lock, so concurrent requests queue
up instead of overwriting each other's writes. Record counts are expected to
stay small; this layout is not meant to grow.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional
import asyncio
import json
import logging
import os

from fastapi.concurrency import run_in_threadpool

from storefront.core.ids import IdGenerator, default_generator, iso_now
from storefront.repositories import normalizer
from storefront.repositories.base import DuplicateRecordError, Repository
from storefront.repositories.normalizer import DOCUMENT

logger = logging.getLogger(__name__)

COLLECTIONS = ("users", "products", "orders")


def db_defaults(db: dict) -> dict:
    for key in COLLECTIONS:
        if not isinstance(db.get(key), list):
            db[key] = []
    if not isinstance(db.get("settings"), dict):
        db["settings"] = {}
    return db


def _sort_key(record: dict) -> tuple:
    rid = record.get("id")
    return (record.get("createdAt") or "", rid if isinstance(rid, int) else 0)


class JSONStorage(Repository):
    name = DOCUMENT

    def __init__(self, path: Path | str, ids: IdGenerator | None = None) -> None:
        self.path = Path(path)
        self.ids = ids or default_generator
        self._lock = asyncio.Lock()

    # -------------------------- file access --------------------------
    def load(self) -> dict:
        if self.path.exists():
            with self.path.open("r", encoding="utf-8") as f:
                return db_defaults(json.load(f))
        return db_defaults({})

    def save(self, db: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(db, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)

    @asynccontextmanager
    async def _mutation(self) -> AsyncIterator[dict]:
        """Load, hand out for mutation, persist. The lock is released on every path."""
        async with self._lock:
            db = await run_in_threadpool(self.load)
            yield db
            await run_in_threadpool(self.save, db)

    async def _snapshot(self) -> dict:
        async with self._lock:
            return await run_in_threadpool(self.load)

    def _records(self, db: dict, kind: str, collection: str, **kw) -> list[dict]:
        return [normalizer.normalize(kind, raw, **kw) for raw in db[collection]]

    @staticmethod
    def _find(records: list[dict], key: str, value) -> int:
        for index, record in enumerate(records):
            if record.get(key) == value:
                return index
        return -1

    # -------------------------- bootstrap --------------------------
    async def bootstrap(self, admin_username: str, admin_password_hash: str, default_settings: dict) -> bool:
        created = False
        async with self._mutation() as db:
            if not db["settings"]:
                db["settings"] = normalizer.denormalize("settings", default_settings, DOCUMENT)
                logger.info("Seeded default settings in %s", self.path)
            users = self._records(db, "user", "users")
            if self._find(users, "username", admin_username) < 0:
                admin = {
                    "id": self.ids.next_id(),
                    "username": admin_username,
                    "password": admin_password_hash,
                    "isAdmin": True,
                    "createdAt": iso_now(),
                    "lastLogin": None,
                }
                db["users"].append(normalizer.denormalize("user", admin, DOCUMENT))
                created = True
                logger.info("Seeded bootstrap admin user %r in %s", admin_username, self.path)
        return created

    # -------------------------- products --------------------------
    async def list_products(self) -> list[dict]:
        db = await self._snapshot()
        return sorted(self._records(db, "product", "products"), key=_sort_key, reverse=True)

    async def get_product(self, product_id: int) -> Optional[dict]:
        db = await self._snapshot()
        products = self._records(db, "product", "products")
        index = self._find(products, "id", product_id)
        return products[index] if index >= 0 else None

    async def create_product(self, record: dict) -> dict:
        async with self._mutation() as db:
            product = normalizer.normalize("product", {**record, "id": self.ids.next_id()})
            db["products"].append(normalizer.denormalize("product", product, DOCUMENT))
        return product

    async def delete_product(self, product_id: int) -> bool:
        async with self._mutation() as db:
            index = self._find(self._records(db, "product", "products"), "id", product_id)
            if index < 0:
                return False
            del db["products"][index]
        return True

    # -------------------------- orders --------------------------
    async def list_orders(self) -> list[dict]:
        db = await self._snapshot()
        return sorted(self._records(db, "order", "orders"), key=_sort_key, reverse=True)

    async def create_order(self, record: dict) -> dict:
        async with self._mutation() as db:
            orders = self._records(db, "order", "orders")
            if self._find(orders, "orderNumber", record.get("orderNumber")) >= 0:
                raise DuplicateRecordError("orderNumber", record.get("orderNumber"))
            order = normalizer.normalize("order", {**record, "id": self.ids.next_id()})
            db["orders"].append(normalizer.denormalize("order", order, DOCUMENT))
        return order

    async def set_order_status(self, order_id: int, status: str, updated_at: str) -> bool:
        async with self._mutation() as db:
            orders = self._records(db, "order", "orders")
            index = self._find(orders, "id", order_id)
            if index < 0:
                return False
            changed = {**orders[index], "status": status, "updatedAt": updated_at}
            db["orders"][index] = normalizer.denormalize("order", changed, DOCUMENT)
        return True

    # -------------------------- users --------------------------
    async def get_user(self, username: str) -> Optional[dict]:
        db = await self._snapshot()
        users = self._records(db, "user", "users", include_password=True)
        index = self._find(users, "username", username)
        return users[index] if index >= 0 else None

    async def create_user(self, record: dict) -> dict:
        async with self._mutation() as db:
            users = self._records(db, "user", "users")
            if self._find(users, "username", record.get("username")) >= 0:
                raise DuplicateRecordError("username", record.get("username"))
            user = normalizer.normalize("user", {**record, "id": self.ids.next_id()}, include_password=True)
            db["users"].append(normalizer.denormalize("user", user, DOCUMENT))
        return user

    async def record_login(self, username: str, when: str) -> None:
        async with self._mutation() as db:
            users = self._records(db, "user", "users", include_password=True)
            index = self._find(users, "username", username)
            if index >= 0:
                changed = {**users[index], "lastLogin": when}
                db["users"][index] = normalizer.denormalize("user", changed, DOCUMENT)

    # -------------------------- settings --------------------------
    async def get_settings(self) -> dict:
        db = await self._snapshot()
        return normalizer.normalize("settings", db["settings"])

    async def update_settings(self, partial: dict) -> dict:
        async with self._mutation() as db:
            current = normalizer.normalize("settings", db["settings"])
            current.update(partial)
            db["settings"] = normalizer.denormalize("settings", current, DOCUMENT)
        return current

    # -------------------------- maintenance --------------------------
    async def counts(self) -> dict[str, int]:
        db = await self._snapshot()
        return {key: len(db[key]) for key in COLLECTIONS}

    async def dump(self) -> dict:
        db = await self._snapshot()
        return {
            "users": self._records(db, "user", "users", include_password=True),
            "products": sorted(self._records(db, "product", "products"), key=_sort_key, reverse=True),
            "orders": sorted(self._records(db, "order", "orders"), key=_sort_key, reverse=True),
            "settings": normalizer.normalize("settings", db["settings"]),
        }
