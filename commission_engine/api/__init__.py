"""API router aggregation."""

from fastapi import APIRouter

from commission_engine.api.admin import admin_router
from commission_engine.api.auth import router as auth_router
from commission_engine.api.health import router as health_router
from commission_engine.api.panel import panel_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(auth_router)

__all__ = ["api_router", "admin_router", "panel_router"]
