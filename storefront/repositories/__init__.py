"""
Persistence drivers.

Exactly one driver is active per process: the SQLAlchemy driver when a
connection string is configured, the JSON document driver otherwise. Services
depend on the Repository interface and never learn which one they got.
"""

from __future__ import annotations

from storefront.core.config import Settings
from storefront.core.ids import IdGenerator
from storefront.repositories.base import DuplicateRecordError, Repository


def build_repository(settings: Settings, ids: IdGenerator | None = None) -> Repository:
    if settings.backend == "sql":
        from storefront.repositories.sql_repository import SQLRepository

        return SQLRepository(settings.database_url)
    from storefront.repositories.json_storage import JSONStorage

    return JSONStorage(settings.data_file, ids=ids)


__all__ = ["build_repository", "DuplicateRecordError", "Repository"]
