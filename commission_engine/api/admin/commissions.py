"""Admin commission ledger API endpoints."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.auth.dependencies import require_admin
from commission_engine.db import get_db
from commission_engine.models import AuditAction, CommissionStatus, User
from commission_engine.repositories import (
    CommissionRepository,
    OrderRepository,
    UserRepository,
)
from commission_engine.schemas.commission import (
    CommissionBatchRequest,
    CommissionListMeta,
    CommissionListResponse,
    CommissionResponse,
    CommissionSummaryResponse,
    PlatformSummaryResponse,
    TopEarnerResponse,
)
from commission_engine.services.commission import CommissionLedger, CommissionService
from commission_engine.utils.audit import batch_metadata, get_client_ip, log_action
from commission_engine.utils.exceptions import (
    CommissionError,
    CommissionNotFoundError,
    CommissionPersistenceError,
    InvalidCommissionTransition,
    OrderNotFoundError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/commissions")


def to_http_error(error: CommissionError) -> HTTPException:
    """Map an engine error to the HTTP status the admin UI expects."""
    if isinstance(error, (OrderNotFoundError, CommissionNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, CommissionPersistenceError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(error),
        )
    if isinstance(error, InvalidCommissionTransition):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": str(error),
                "target_status": error.target_status,
                "offending": {str(k): v for k, v in error.offending.items()},
            },
        )
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


def _ledger(db: AsyncSession) -> CommissionLedger:
    return CommissionLedger(db, CommissionRepository(db))


def _list_response(rows, created: Optional[bool] = None) -> CommissionListResponse:
    return CommissionListResponse(
        data=[CommissionResponse.model_validate(row) for row in rows],
        meta=CommissionListMeta(count=len(rows), created=created),
    )


@router.post("/calculate/{order_id}", response_model=CommissionListResponse)
async def calculate_order_commissions(
    order_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    Generate commissions for a completed order.

    Repeated calls return the existing rows with meta.created = false.
    """
    # A failed write rolls the session back and expires current_user
    admin_id = current_user.id
    ip_address = get_client_ip(request)

    try:
        result = await CommissionService.from_session(db).generate_for_order(order_id)
    except CommissionError as e:
        logger.warning(f"Commission calculation for order {order_id} failed: {e}")
        raise to_http_error(e)

    if result.created:
        await log_action(
            db=db,
            user_id=admin_id,
            action=AuditAction.CALCULATE_COMMISSIONS,
            target_type="order",
            target_id=order_id,
            action_metadata={"rows": len(result.commissions)},
            ip_address=ip_address,
        )

    return _list_response(result.commissions, created=result.created)


@router.get("/order/{order_id}", response_model=CommissionListResponse)
async def get_order_commissions(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Ledger rows of an order."""
    if not await OrderRepository(db).exists(id=order_id):
        raise to_http_error(OrderNotFoundError(order_id))

    rows = await _ledger(db).get_order_commissions(order_id)
    return _list_response(rows)


@router.get("/user/{user_id}/summary", response_model=CommissionSummaryResponse)
async def get_user_commission_summary(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    commission_status: Optional[CommissionStatus] = Query(None, alias="status"),
):
    """Commission totals of any user, grouped by status."""
    return await build_summary(db, user_id, start_date, end_date, commission_status)


async def build_summary(
    db: AsyncSession,
    user_id: int,
    start_date: Optional[datetime],
    end_date: Optional[datetime],
    commission_status: Optional[CommissionStatus],
) -> CommissionSummaryResponse:
    """Shared by the admin and panel summary endpoints."""
    if start_date and end_date and start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must be before end_date",
        )

    summary = await _ledger(db).get_user_commission_summary(
        user_id,
        start_date=start_date,
        end_date=end_date,
        status=commission_status,
    )
    return CommissionSummaryResponse(
        user_id=user_id,
        total_pending=summary.total_pending,
        total_approved=summary.total_approved,
        total_paid=summary.total_paid,
        commissions=[CommissionResponse.model_validate(row) for row in summary.commissions],
    )


@router.post("/approve", response_model=CommissionListResponse)
async def approve_commissions(
    data: CommissionBatchRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Move pending commissions to approved. All or nothing."""
    try:
        rows = await _ledger(db).approve_commissions(
            data.commission_ids, approved_by_id=current_user.id
        )
    except CommissionError as e:
        raise to_http_error(e)

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.APPROVE_COMMISSIONS,
        target_type="commission",
        action_metadata=batch_metadata(data.commission_ids),
        ip_address=get_client_ip(request),
    )

    return _list_response(rows)


@router.post("/mark-paid", response_model=CommissionListResponse)
async def mark_commissions_paid(
    data: CommissionBatchRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Move approved commissions to paid. All or nothing."""
    try:
        rows = await _ledger(db).mark_commissions_as_paid(
            data.commission_ids, paid_by_id=current_user.id
        )
    except CommissionError as e:
        raise to_http_error(e)

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.PAY_COMMISSIONS,
        target_type="commission",
        action_metadata=batch_metadata(data.commission_ids),
        ip_address=get_client_ip(request),
    )

    return _list_response(rows)


@router.get("/summary", response_model=PlatformSummaryResponse)
async def get_platform_summary(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    top: int = Query(10, ge=1, le=100),
):
    """Ledger-wide totals and the top earning members."""
    if start_date and end_date and start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must be before end_date",
        )

    summary = await _ledger(db).get_platform_summary(start_date, end_date, top=top)

    users = await UserRepository(db).get_many(e.user_id for e in summary.top_earners)
    names = {user.id: user.display_name for user in users}

    return PlatformSummaryResponse(
        start_date=start_date,
        end_date=end_date,
        total_pending=summary.total_pending,
        total_approved=summary.total_approved,
        total_paid=summary.total_paid,
        commission_count=summary.commission_count,
        top_earners=[
            TopEarnerResponse(
                user_id=earner.user_id,
                display_name=names.get(earner.user_id),
                total_earned=earner.total_earned,
                commission_count=earner.commission_count,
            )
            for earner in summary.top_earners
        ],
    )


# Declared last: /{commission_id} would shadow the static GET paths above
@router.get("/{commission_id}", response_model=CommissionResponse)
async def get_commission(
    commission_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """One ledger row."""
    try:
        return await _ledger(db).get_commission(commission_id)
    except CommissionError as e:
        raise to_http_error(e)
