from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

# Make the storefront package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storefront.core.config import Settings  # noqa: E402
from storefront.core.rate_limiter import reset_limits  # noqa: E402
from storefront.services.store_service import StoreService  # noqa: E402


def make_settings(tmp_path: Path, backend: str = "document", **overrides) -> Settings:
    values = dict(
        app_env="test",
        database_url=f"sqlite:///{tmp_path / 'store.db'}" if backend == "sql" else "",
        data_file=tmp_path / "data.json",
        admin_username="admin",
        admin_password="admin123",
        log_level="WARNING",
        login_rate_limit=0,
        login_rate_window_seconds=60,
        cors_origins=(),
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(params=["document", "sql"])
def store(request, tmp_path):
    """A bootstrapped StoreService on each backend, disposed after the test."""
    service = StoreService(make_settings(tmp_path, request.param))
    asyncio.run(service.bootstrap())
    yield service
    service.close()


@pytest.fixture()
def document_store(tmp_path):
    service = StoreService(make_settings(tmp_path, "document"))
    asyncio.run(service.bootstrap())
    yield service
    service.close()


@pytest.fixture(autouse=True)
def _clear_rate_limits():
    reset_limits()
    yield
    reset_limits()
