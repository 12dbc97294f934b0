from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends

from storefront.routers import get_store, ok
from storefront.services.store_service import StoreService

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("")
async def get_settings(store: StoreService = Depends(get_store)):
    return ok(await store.get_settings())


@router.put("")
async def update_settings(payload: Optional[dict] = Body(default=None), store: StoreService = Depends(get_store)):
    return ok(await store.update_settings(payload or {}))
