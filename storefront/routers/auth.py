from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Request

from storefront.core.errors import AuthError, ValidationError
from storefront.core.rate_limiter import rate_limit_ip
from storefront.routers import get_store, ok
from storefront.services.store_service import StoreService

router = APIRouter(prefix="/api", tags=["auth"])

INVALID_CREDENTIALS = "Invalid username or password"


def _limit(request: Request, scope: str, store: StoreService) -> None:
    settings = store.settings
    rate_limit_ip(
        request,
        scope,
        limit=settings.login_rate_limit,
        window_seconds=settings.login_rate_window_seconds,
    )


@router.post("/login")
async def login(
    request: Request,
    payload: Optional[dict] = Body(default=None),
    store: StoreService = Depends(get_store),
):
    _limit(request, "login", store)
    payload = payload or {}
    user = await store.authenticate(payload.get("username"), payload.get("password"))
    if user is None:
        raise AuthError(INVALID_CREDENTIALS)
    return ok(user)


@router.post("/register", status_code=201)
async def register(
    request: Request,
    payload: Optional[dict] = Body(default=None),
    store: StoreService = Depends(get_store),
):
    _limit(request, "register", store)
    payload = payload or {}
    user = await store.register(payload.get("username"), payload.get("password"))
    if user is None:
        raise ValidationError("Username already exists")
    return ok(user)
