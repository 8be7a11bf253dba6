"""
Background job definitions using APScheduler.

Jobs include:
- Commission reconciliation: generates commissions for completed orders
  whose completion hook failed or never fired
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from commission_engine.config import settings
from commission_engine.db import get_db_context
from commission_engine.repositories import OrderRepository
from commission_engine.services.commission import generate_commissions_safely

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()


async def commission_reconciliation_job(batch_size: Optional[int] = None) -> int:
    """
    Generate missing commissions for completed orders.

    Each order runs in its own session, so one failing order neither
    blocks nor rolls back the others; it is simply retried next run.

    Returns:
        Number of orders for which new ledger rows were written
    """
    batch_size = batch_size or settings.commission_reconcile_batch_size
    logger.debug("Running commission reconciliation job")

    try:
        async with get_db_context() as db:
            order_ids = await OrderRepository(db).find_completed_without_commissions(
                batch_size
            )
    except Exception as e:
        logger.error(f"Commission reconciliation job error: {e}")
        return 0

    generated = 0
    failed = 0
    for order_id in order_ids:
        async with get_db_context() as db:
            result = await generate_commissions_safely(db, order_id)
        if result is None:
            failed += 1
        elif result.created:
            generated += 1

    if order_ids:
        logger.info(
            f"Commission reconciliation: {len(order_ids)} orders checked, "
            f"{generated} generated, {failed} failed"
        )
    return generated


def setup_scheduler():
    """
    Configure and add all scheduled jobs.

    Called during application startup.
    """
    scheduler.add_job(
        commission_reconciliation_job,
        trigger=IntervalTrigger(minutes=settings.commission_reconcile_interval_minutes),
        id="commission_reconciliation",
        name="Generate missing order commissions",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    logger.info("Scheduler configured with jobs")
