"""
Store use cases: products, orders, users and settings.

StoreService is the only entry point routers use. It validates input,
synthesizes defaults (timestamps, order numbers), hashes passwords and turns
every storage failure into the error taxonomy in ``storefront.core.errors``.
The active driver is picked once from the Settings passed to the constructor.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any, Optional
import logging

from storefront.core.config import Settings
from storefront.core.errors import BackendError, StoreError, ValidationError
from storefront.core.ids import IdGenerator, default_generator, iso_now
from storefront.core.security import hash_password, verify_dummy, verify_password
from storefront.repositories import DuplicateRecordError, Repository, build_repository
from storefront.repositories.normalizer import (
    MAX_AMOUNT,
    PLACEHOLDER_IMAGE,
    canonical_names,
    parse_money,
    strip_password,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

DEFAULT_SETTINGS = {
    "storeName": "DD Store",
    "kuaishouLink": "https://www.kuaishou.com",
    "contactInfo": "Contact us on Kuaishou",
    "welcomeMessage": "Welcome to our store!",
}


def _parse_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value or "").strip()
    if text.lstrip("-").isdigit():
        return int(text)
    return None


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _amount(value: Any, field: str) -> Decimal:
    if value is None or value == "":
        return Decimal("0.00")
    try:
        amount = parse_money(value)
    except ValueError:
        raise ValidationError(f"{field} must be a number") from None
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field} must not exceed {MAX_AMOUNT}")
    return amount


class StoreService:
    """Backend-independent data access for the API routes."""

    def __init__(
        self,
        settings: Settings,
        repository: Repository | None = None,
        ids: IdGenerator | None = None,
    ) -> None:
        self.settings = settings
        self.ids = ids or default_generator
        self.repository = repository or build_repository(settings, ids=self.ids)
        logger.info("Store using %s backend", self.backend)

    @property
    def backend(self) -> str:
        return self.repository.name

    @asynccontextmanager
    async def _backend_call(self, action: str):
        try:
            yield
        except (StoreError, DuplicateRecordError):
            raise
        except Exception as exc:
            logger.exception("%s failed on %s backend", action, self.backend)
            raise BackendError() from exc

    # -------------------------------------- lifecycle --------------------------------------
    async def bootstrap(self) -> None:
        password_hash = await hash_password(self.settings.admin_password)
        async with self._backend_call("bootstrap"):
            await self.repository.bootstrap(self.settings.admin_username, password_hash, dict(DEFAULT_SETTINGS))

    def close(self) -> None:
        self.repository.close()

    # -------------------------------------- products --------------------------------------
    async def list_products(self) -> list[dict]:
        try:
            async with self._backend_call("list_products"):
                return await self.repository.list_products()
        except BackendError:
            return []

    async def create_product(self, data: dict | None) -> dict:
        data = data or {}
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Product name is required")
        raw_price = data.get("price")
        if raw_price is None or raw_price == "":
            raise ValidationError("Product price is required")
        try:
            price = parse_money(raw_price)
        except ValueError:
            raise ValidationError("Product price must be a number") from None
        if price < 0:
            raise ValidationError("Product price must not be negative")
        if price > MAX_AMOUNT:
            raise ValidationError(f"Product price must not exceed {MAX_AMOUNT}")
        record = {
            "name": name.strip(),
            "price": price,
            "description": _text(data.get("description")),
            "imageUrl": _text(data.get("imageUrl") or data.get("image")) or PLACEHOLDER_IMAGE,
            "createdAt": iso_now(),
        }
        async with self._backend_call("create_product"):
            product = await self.repository.create_product(record)
        logger.info("Created product id=%s name=%r", product.get("id"), product.get("name"))
        return product

    async def delete_product(self, product_id: Any) -> bool:
        pid = _parse_id(product_id)
        if pid is None:
            return False
        async with self._backend_call("delete_product"):
            return await self.repository.delete_product(pid)

    # -------------------------------------- orders --------------------------------------
    async def list_orders(self) -> list[dict]:
        async with self._backend_call("list_orders"):
            return await self.repository.list_orders()

    async def create_order(self, data: dict | None) -> dict:
        data = data or {}
        product_id = _text(data.get("productId"))
        product_name = data.get("productName")
        product_price = data.get("productPrice")
        pid = _parse_id(product_id) if product_id else None
        if pid is not None and (product_name is None or product_price is None):
            # Snapshot the product as it is now; later product changes do not touch the order.
            async with self._backend_call("create_order"):
                product = await self.repository.get_product(pid)
            if product:
                product_name = product["name"] if product_name is None else product_name
                product_price = product["price"] if product_price is None else product_price
        now = iso_now()
        record = {
            "orderNumber": _text(data.get("orderNumber")) or self.ids.next_order_number(),
            "userId": _text(data.get("userId")),
            "productId": product_id,
            "productName": _text(product_name),
            "productPrice": _amount(product_price, "productPrice"),
            "totalAmount": _amount(data.get("totalAmount"), "totalAmount"),
            "paymentMethod": _text(data.get("paymentMethod")) or "tng",
            "status": _text(data.get("status")) or "pending",
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            async with self._backend_call("create_order"):
                order = await self.repository.create_order(record)
        except DuplicateRecordError:
            raise ValidationError("Order number already exists") from None
        logger.info("Created order %s total=%s", order.get("orderNumber"), order.get("totalAmount"))
        return order

    async def set_order_status(self, order_id: Any, status: Any) -> bool:
        # Any status string is accepted; transitions are not restricted.
        if status is None:
            raise ValidationError("Status is required")
        oid = _parse_id(order_id)
        if oid is None:
            return False
        async with self._backend_call("set_order_status"):
            return await self.repository.set_order_status(oid, str(status), iso_now())

    # -------------------------------------- users --------------------------------------
    async def authenticate(self, username: Any, password: Any) -> Optional[dict]:
        """Return the user without its password, or None.

        Unknown usernames still pay for one hash verification so both failure
        paths look the same to the caller.
        """
        if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
            await verify_dummy(password if isinstance(password, str) else "")
            return None
        username = username.strip()
        if not username:
            await verify_dummy(password)
            return None
        async with self._backend_call("authenticate"):
            user = await self.repository.get_user(username)
        if user is None:
            await verify_dummy(password)
            logger.warning("Failed login for %r", username)
            return None
        if not await verify_password(password, user.get("password")):
            logger.warning("Failed login for %r", username)
            return None
        now = iso_now()
        async with self._backend_call("authenticate"):
            await self.repository.record_login(username, now)
        user["lastLogin"] = now
        return strip_password(user)

    async def register(self, username: Any, password: Any) -> Optional[dict]:
        if not isinstance(username, str) or not username.strip():
            raise ValidationError("Username is required")
        if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        username = username.strip()
        async with self._backend_call("register"):
            if await self.repository.get_user(username) is not None:
                return None
        record = {
            "username": username,
            "password": await hash_password(password),
            "isAdmin": False,
            "createdAt": iso_now(),
            "lastLogin": None,
        }
        try:
            async with self._backend_call("register"):
                user = await self.repository.create_user(record)
        except DuplicateRecordError:
            return None
        logger.info("Registered user %r", username)
        return strip_password(user)

    # -------------------------------------- settings --------------------------------------
    async def get_settings(self) -> dict:
        try:
            async with self._backend_call("get_settings"):
                stored = await self.repository.get_settings()
        except BackendError:
            stored = {}
        return {
            key: stored.get(key) if stored.get(key) is not None else default
            for key, default in DEFAULT_SETTINGS.items()
        }

    async def update_settings(self, partial: dict | None) -> dict:
        if partial is None:
            partial = {}
        if not isinstance(partial, dict):
            raise ValidationError("Settings must be an object")
        changes = {key: str(partial[key]) for key in canonical_names("settings") if partial.get(key) is not None}
        if changes:
            async with self._backend_call("update_settings"):
                await self.repository.update_settings(changes)
            logger.info("Updated settings fields %s", sorted(changes))
        return await self.get_settings()

    # -------------------------------------- maintenance --------------------------------------
    async def backup(self) -> dict:
        async with self._backend_call("backup"):
            dump = await self.repository.dump()
        dump["users"] = [strip_password(user) for user in dump["users"]]
        dump["settings"] = {**DEFAULT_SETTINGS, **{k: v for k, v in dump["settings"].items() if v is not None}}
        dump["backend"] = self.backend
        dump["exportedAt"] = iso_now()
        return dump

    async def status(self) -> dict:
        try:
            async with self._backend_call("status"):
                counts = await self.repository.counts()
            state = "ok"
        except BackendError:
            counts, state = None, "degraded"
        return {"status": state, "backend": self.backend, "counts": counts, "timestamp": iso_now()}
