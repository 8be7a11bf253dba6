"""
Health check endpoints.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.db import get_db
from commission_engine.models import Order, OrderStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """Returns 200 if the service is running."""
    return {"status": "healthy", "service": "commission-engine"}


@router.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """
    Readiness check with database connectivity.

    Also reports how many completed orders still wait for commission
    generation, so a stuck reconciliation job is visible from outside.
    """
    try:
        await db.execute(text("SELECT 1"))
        backlog = await db.scalar(
            select(func.count())
            .select_from(Order)
            .where(
                Order.status == OrderStatus.COMPLETED,
                Order.commissions_processed_at.is_(None),
            )
        )
    except SQLAlchemyError as e:
        logger.warning(f"Readiness check failed: {e}")
        return {
            "status": "not_ready",
            "database": f"error: {e}",
        }

    return {
        "status": "ready",
        "database": "connected",
        "orders_awaiting_commissions": backlog or 0,
    }


@router.get("/live")
async def liveness_check():
    """Returns 200 if the process is alive."""
    return {"status": "alive"}
