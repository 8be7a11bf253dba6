"""
Commission Engine - multi-level commission calculation service

Main FastAPI application with:
- Role-based authentication (admin/member)
- Admin API for templates and the commission ledger
- Member panel with personal commission summaries
- Background reconciliation of missed orders
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from commission_engine.api import admin_router, api_router, panel_router
from commission_engine.config import settings
from commission_engine.db import get_db_context
from commission_engine.models import User, UserRole
from commission_engine.repositories import UserRepository
from commission_engine.scheduler.jobs import scheduler, setup_scheduler
from commission_engine.utils.password import hash_password

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def ensure_admin_account() -> None:
    """Create the configured admin account on first start."""
    async with get_db_context() as db:
        user_repo = UserRepository(db)
        if await user_repo.exists(role=UserRole.ADMIN):
            return

        logger.info("Creating admin account...")
        db.add(
            User(
                username=settings.admin_username,
                password_hash=hash_password(settings.admin_password),
                role=UserRole.ADMIN,
                display_name="Administrator",
                is_active=True,
            )
        )
        logger.info(f"Admin account created: {settings.admin_username}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Creates admin account if not exists
    - Starts the reconciliation scheduler

    Shutdown:
    - Stops the scheduler
    """
    logger.info("Starting Commission Engine...")

    await ensure_admin_account()

    if settings.scheduler_enabled:
        setup_scheduler()
        scheduler.start()
        logger.info("Scheduler started")

    logger.info("Commission Engine started successfully!")

    yield

    logger.info("Shutting down Commission Engine...")
    if scheduler.running:
        scheduler.shutdown(wait=False)


app = FastAPI(
    title="Commission Engine",
    description="Multi-level commission calculation and ledger",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# Include routers
app.include_router(api_router)  # /api/* endpoints
app.include_router(admin_router)  # /admin/* management API
app.include_router(panel_router)  # /panel/* member API


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "commission_engine.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
