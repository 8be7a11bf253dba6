"""Member panel commission endpoints."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.api.admin.commissions import build_summary
from commission_engine.auth.dependencies import get_current_user
from commission_engine.db import get_db
from commission_engine.models import CommissionStatus, User
from commission_engine.schemas.commission import CommissionSummaryResponse

router = APIRouter(prefix="/commissions")


@router.get("/summary", response_model=CommissionSummaryResponse)
async def get_my_commission_summary(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    commission_status: Optional[CommissionStatus] = Query(None, alias="status"),
):
    """The logged-in member's own commission totals."""
    return await build_summary(db, current_user.id, start_date, end_date, commission_status)
