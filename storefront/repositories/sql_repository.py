"""Relational driver backed by SQLAlchemy.

Every public method runs one short session in Starlette's threadpool so the
event loop never blocks on the database. Statements are built with the
SQLAlchemy expression API, so all values travel as bound parameters.
"""
from __future__ import annotations

import functools
import logging
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError

from storefront.core.ids import utc_now
from storefront.db.models import Order, Product, StoreSettings, User
from storefront.db.session import Database
from storefront.repositories import normalizer
from storefront.repositories.base import DuplicateRecordError, Repository
from storefront.repositories.normalizer import SQL

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = 1


def _insert_values(kind: str, record: dict) -> dict:
    """Column values for an INSERT; unset columns fall back to their defaults."""
    values = normalizer.denormalize(kind, record, SQL)
    values.pop("id", None)
    return {key: value for key, value in values.items() if value is not None}


def _threaded(fn):
    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        return await run_in_threadpool(fn, *args, **kwargs)

    return wrapper


class SQLRepository(Repository):
    """CRUD helpers wrapping the SQLAlchemy session."""

    name = SQL

    def __init__(self, database_url: str) -> None:
        self.db = Database(database_url)

    def close(self) -> None:
        self.db.dispose()

    # -------------------------- bootstrap --------------------------
    @_threaded
    def bootstrap(self, admin_username: str, admin_password_hash: str, default_settings: dict) -> bool:
        self.db.create_all()
        created = False
        with self.db.session() as session:
            if session.get(StoreSettings, SETTINGS_ROW_ID) is None:
                values = normalizer.denormalize("settings", default_settings, SQL)
                session.add(StoreSettings(id=SETTINGS_ROW_ID, **values))
                session.commit()
                logger.info("Seeded default settings row")
            stmt = select(User.id).where(User.username == admin_username).limit(1)
            if session.execute(stmt).first() is None:
                session.add(
                    User(
                        username=admin_username,
                        password_hash=admin_password_hash,
                        is_admin=True,
                        created_at=utc_now(),
                    )
                )
                try:
                    session.commit()
                    created = True
                    logger.info("Seeded bootstrap admin user %r", admin_username)
                except IntegrityError:
                    # Another process seeded it first.
                    session.rollback()
        return created

    # -------------------------- products --------------------------
    @_threaded
    def list_products(self) -> list[dict]:
        with self.db.session() as session:
            stmt = select(Product).order_by(Product.created_at.desc(), Product.id.desc())
            return [normalizer.normalize("product", row) for row in session.execute(stmt).scalars().all()]

    @_threaded
    def get_product(self, product_id: int) -> Optional[dict]:
        with self.db.session() as session:
            return normalizer.normalize("product", session.get(Product, product_id))

    @_threaded
    def create_product(self, record: dict) -> dict:
        entity = Product(**_insert_values("product", record))
        with self.db.session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return normalizer.normalize("product", entity)

    @_threaded
    def delete_product(self, product_id: int) -> bool:
        with self.db.session() as session:
            result = session.execute(delete(Product).where(Product.id == product_id))
            session.commit()
            return (result.rowcount or 0) > 0

    # -------------------------- orders --------------------------
    @_threaded
    def list_orders(self) -> list[dict]:
        with self.db.session() as session:
            stmt = select(Order).order_by(Order.created_at.desc(), Order.id.desc())
            return [normalizer.normalize("order", row) for row in session.execute(stmt).scalars().all()]

    @_threaded
    def create_order(self, record: dict) -> dict:
        entity = Order(**_insert_values("order", record))
        with self.db.session() as session:
            session.add(entity)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise DuplicateRecordError("orderNumber", record.get("orderNumber")) from None
            session.refresh(entity)
            return normalizer.normalize("order", entity)

    @_threaded
    def set_order_status(self, order_id: int, status: str, updated_at: str) -> bool:
        with self.db.session() as session:
            stmt = (
                update(Order)
                .where(Order.id == order_id)
                .values(**normalizer.denormalize("order", {"status": status, "updatedAt": updated_at}, SQL))
            )
            result = session.execute(stmt)
            session.commit()
            return (result.rowcount or 0) > 0

    # -------------------------- users --------------------------
    @_threaded
    def get_user(self, username: str) -> Optional[dict]:
        with self.db.session() as session:
            row = session.execute(select(User).where(User.username == username)).scalar_one_or_none()
            return normalizer.normalize("user", row, include_password=True)

    @_threaded
    def create_user(self, record: dict) -> dict:
        entity = User(**_insert_values("user", record))
        with self.db.session() as session:
            session.add(entity)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise DuplicateRecordError("username", record.get("username")) from None
            session.refresh(entity)
            return normalizer.normalize("user", entity, include_password=True)

    @_threaded
    def record_login(self, username: str, when: str) -> None:
        with self.db.session() as session:
            values = normalizer.denormalize("user", {"lastLogin": when}, SQL)
            session.execute(update(User).where(User.username == username).values(**values))
            session.commit()

    # -------------------------- settings --------------------------
    @_threaded
    def get_settings(self) -> dict:
        with self.db.session() as session:
            row = session.get(StoreSettings, SETTINGS_ROW_ID)
            return normalizer.normalize("settings", row) if row else normalizer.normalize("settings", {})

    @_threaded
    def update_settings(self, partial: dict) -> dict:
        values = normalizer.denormalize("settings", partial, SQL)
        with self.db.session() as session:
            row = session.get(StoreSettings, SETTINGS_ROW_ID)
            if row is None:
                row = StoreSettings(id=SETTINGS_ROW_ID, **values)
                session.add(row)
            else:
                for key, value in values.items():
                    setattr(row, key, value)
            session.commit()
            session.refresh(row)
            return normalizer.normalize("settings", row)

    # -------------------------- maintenance --------------------------
    @_threaded
    def counts(self) -> dict[str, int]:
        with self.db.session() as session:
            return {
                "users": session.execute(select(func.count(User.id))).scalar_one(),
                "products": session.execute(select(func.count(Product.id))).scalar_one(),
                "orders": session.execute(select(func.count(Order.id))).scalar_one(),
            }

    @_threaded
    def dump(self) -> dict:
        with self.db.session() as session:
            users = session.execute(select(User).order_by(User.id)).scalars().all()
            products = session.execute(
                select(Product).order_by(Product.created_at.desc(), Product.id.desc())
            ).scalars().all()
            orders = session.execute(select(Order).order_by(Order.created_at.desc(), Order.id.desc())).scalars().all()
            row = session.get(StoreSettings, SETTINGS_ROW_ID)
            return {
                "users": [normalizer.normalize("user", u, include_password=True) for u in users],
                "products": [normalizer.normalize("product", p) for p in products],
                "orders": [normalizer.normalize("order", o) for o in orders],
                "settings": normalizer.normalize("settings", row or {}),
            }
