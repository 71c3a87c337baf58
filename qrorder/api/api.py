"""API router composition."""

from fastapi import APIRouter

from qrorder.api.endpoints import admin, auth, menu_items, orders, staff, tables

api_router: APIRouter = APIRouter()
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(menu_items.router, prefix="/menu-items", tags=["menu"])
api_router.include_router(tables.router, prefix="/tables", tags=["tables"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(staff.router, tags=["staff"])
