from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends

from storefront.core.errors import NotFoundError
from storefront.routers import get_store, ok
from storefront.services.store_service import StoreService

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("")
async def list_products(store: StoreService = Depends(get_store)):
    return ok(await store.list_products())


@router.post("", status_code=201)
async def create_product(payload: Optional[dict] = Body(default=None), store: StoreService = Depends(get_store)):
    return ok(await store.create_product(payload or {}))


@router.delete("/{product_id}")
async def delete_product(product_id: str, store: StoreService = Depends(get_store)):
    if not await store.delete_product(product_id):
        raise NotFoundError("Product not found")
    return ok({"id": product_id, "deleted": True})
