"""
Abstract persistence driver.

Every driver implements the same awaitable surface and returns records in the
canonical shape produced by ``normalizer.normalize``:

    bootstrap(admin, hash, defaults) → bool          schema/file + seeds
    list_products / create_product / get_product / delete_product
    list_orders / create_order / set_order_status
    get_user / create_user / record_login
    get_settings / update_settings
    counts / dump / close

Drivers never hash passwords and never synthesize defaults for callers; the
store service hands them complete canonical records.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional


class DuplicateRecordError(Exception):
    """A unique column (username, order number) already holds the value."""

    def __init__(self, field: str, value: Any):
        super().__init__(f"{field} already exists: {value!r}")
        self.field = field
        self.value = value


class Repository(ABC):
    name: str = ""

    # ── lifecycle ─────────────────────────────────────────────

    @abstractmethod
    async def bootstrap(self, admin_username: str, admin_password_hash: str, default_settings: dict) -> bool:
        """Create storage if absent and seed the admin user and settings.

        Returns True when the admin user was created by this call.
        """
        ...

    def close(self) -> None:
        """Release connections. Default: nothing to release."""

    # ── products ──────────────────────────────────────────────

    @abstractmethod
    async def list_products(self) -> list[dict]:
        """Most recent first."""
        ...

    @abstractmethod
    async def get_product(self, product_id: int) -> Optional[dict]: ...

    @abstractmethod
    async def create_product(self, record: dict) -> dict: ...

    @abstractmethod
    async def delete_product(self, product_id: int) -> bool: ...

    # ── orders ────────────────────────────────────────────────

    @abstractmethod
    async def list_orders(self) -> list[dict]:
        """Most recent first."""
        ...

    @abstractmethod
    async def create_order(self, record: dict) -> dict:
        """Raises DuplicateRecordError when the order number is taken."""
        ...

    @abstractmethod
    async def set_order_status(self, order_id: int, status: str, updated_at: str) -> bool: ...

    # ── users ─────────────────────────────────────────────────

    @abstractmethod
    async def get_user(self, username: str) -> Optional[dict]:
        """Canonical user including the stored password hash."""
        ...

    @abstractmethod
    async def create_user(self, record: dict) -> dict:
        """Raises DuplicateRecordError when the username is taken."""
        ...

    @abstractmethod
    async def record_login(self, username: str, when: str) -> None: ...

    # ── settings ──────────────────────────────────────────────

    @abstractmethod
    async def get_settings(self) -> dict:
        """Stored settings; fields never written are None."""
        ...

    @abstractmethod
    async def update_settings(self, partial: dict) -> dict: ...

    # ── maintenance ───────────────────────────────────────────

    @abstractmethod
    async def counts(self) -> dict[str, int]: ...

    @abstractmethod
    async def dump(self) -> dict:
        """Every collection in canonical shape, user passwords included."""
        ...
