"""Copy every record from one driver into another (JSON document -> SQL)."""
from __future__ import annotations

import logging

from storefront.repositories.base import DuplicateRecordError, Repository

logger = logging.getLogger(__name__)


async def copy_store(source: Repository, target: Repository) -> dict[str, int]:
    """Insert source records missing from target. Existing usernames and order numbers are skipped.

    Target ids are reassigned by the target driver; order product references are
    free-form and copied as-is.
    """
    data = await source.dump()
    copied = {"users": 0, "products": 0, "orders": 0}

    for user in data["users"]:
        try:
            await target.create_user(user)
            copied["users"] += 1
        except DuplicateRecordError:
            logger.info("Skipping existing user %r", user.get("username"))

    # oldest first so target ids follow creation order
    for product in reversed(data["products"]):
        await target.create_product(product)
        copied["products"] += 1

    for order in reversed(data["orders"]):
        try:
            await target.create_order(order)
            copied["orders"] += 1
        except DuplicateRecordError:
            logger.info("Skipping existing order %s", order.get("orderNumber"))

    settings = {key: value for key, value in data["settings"].items() if value is not None}
    if settings:
        await target.update_settings(settings)
    return copied
