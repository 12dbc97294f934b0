"""
Configuration helpers for the storefront backend.

The Settings object is built once at startup and passed explicitly to the
store service and the app factory; nothing else reads os.environ.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os

DEFAULT_DATA_FILE = Path(__file__).resolve().parents[1] / "data.json"


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    database_url: str
    data_file: Path
    admin_username: str
    admin_password: str
    log_level: str
    login_rate_limit: int
    login_rate_window_seconds: int
    cors_origins: tuple[str, ...]

    @property
    def backend(self) -> str:
        """'sql' when a connection string is configured, 'document' otherwise."""
        return "sql" if self.database_url else "document"


def _int(value: str | None, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    origins = os.getenv("CORS_ORIGINS", "")
    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        database_url=(os.getenv("DATABASE_URL") or "").strip(),
        data_file=Path(os.getenv("DATA_FILE") or DEFAULT_DATA_FILE),
        admin_username=os.getenv("ADMIN_USERNAME") or "admin",
        admin_password=os.getenv("ADMIN_PASSWORD") or "admin123",
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        login_rate_limit=_int(os.getenv("LOGIN_RATE_LIMIT"), 10),
        login_rate_window_seconds=_int(os.getenv("LOGIN_RATE_WINDOW_SECONDS"), 60),
        cors_origins=tuple(o.strip().rstrip("/") for o in origins.split(",") if o.strip()),
    )
