"""One-off migration script: JSON document (DATA_FILE) -> SQL database (DATABASE_URL)."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
import sys

# Make the storefront package importable when run directly
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storefront.core.config import get_settings  # noqa: E402
from storefront.core.logging import configure_logging  # noqa: E402
from storefront.repositories.json_storage import JSONStorage  # noqa: E402
from storefront.repositories.migrate import copy_store  # noqa: E402
from storefront.repositories.sql_repository import SQLRepository  # noqa: E402

logger = logging.getLogger("migrate_to_sql")


def migrate() -> dict[str, int]:
    settings = get_settings()
    if not settings.data_file.exists():
        raise SystemExit(f"Data file not found: {settings.data_file}")
    source = JSONStorage(settings.data_file)
    target = SQLRepository(settings.database_url)
    try:
        target.db.create_all()
        return asyncio.run(copy_store(source, target))
    finally:
        target.close()


if __name__ == "__main__":
    configure_logging(get_settings().log_level)
    counts = migrate()
    logger.info("Migrated users=%(users)s products=%(products)s orders=%(orders)s", counts)
    print("JSON data migrated to SQL successfully.")
