"""Admin API router aggregation."""

from fastapi import APIRouter

from commission_engine.api.admin.commissions import router as commissions_router
from commission_engine.api.admin.templates import router as templates_router

admin_router = APIRouter(prefix="/admin", tags=["Admin"])

admin_router.include_router(commissions_router)
admin_router.include_router(templates_router)

__all__ = ["admin_router"]
