"""Database helpers (engine/session export)."""

from .session import Base, Database

__all__ = ["Base", "Database"]
