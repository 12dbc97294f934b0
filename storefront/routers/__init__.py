"""
FastAPI routers grouped by domain (products, orders, auth, settings, system).

Each module exposes an APIRouter included by ``storefront.app.create_app``.
Every response uses the envelope ``{"success": bool, "data"?, "error"?}``.
"""

from fastapi import Request

from storefront.services.store_service import StoreService


def get_store(request: Request) -> StoreService:
    return request.app.state.store


def ok(data=None) -> dict:
    return {"success": True, "data": data}
