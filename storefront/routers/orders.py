from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends

from storefront.core.errors import NotFoundError
from storefront.routers import get_store, ok
from storefront.services.store_service import StoreService

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("")
async def list_orders(store: StoreService = Depends(get_store)):
    return ok(await store.list_orders())


@router.post("", status_code=201)
async def create_order(payload: Optional[dict] = Body(default=None), store: StoreService = Depends(get_store)):
    return ok(await store.create_order(payload or {}))


@router.put("/{order_id}/status")
async def set_order_status(
    order_id: str,
    payload: Optional[dict] = Body(default=None),
    store: StoreService = Depends(get_store),
):
    status = (payload or {}).get("status")
    if not await store.set_order_status(order_id, status):
        raise NotFoundError("Order not found")
    return ok({"id": order_id, "status": str(status)})
