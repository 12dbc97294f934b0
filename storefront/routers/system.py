from __future__ import annotations

from fastapi import APIRouter, Depends

from storefront.routers import get_store, ok
from storefront.services.store_service import StoreService

router = APIRouter(prefix="/api", tags=["system"])


@router.get("/backup")
async def backup(store: StoreService = Depends(get_store)):
    return ok(await store.backup())


@router.get("/status")
async def status(store: StoreService = Depends(get_store)):
    return ok(await store.status())
