"""Commission ledger schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from commission_engine.models.commission import BeneficiaryType, CommissionStatus
from commission_engine.models.commission_template import CommissionType


class CommissionResponse(BaseModel):
    """One ledger row."""

    id: int
    order_id: int
    order_item_id: int
    beneficiary_id: int
    beneficiary_type: BeneficiaryType
    commission_level: int
    commission_type: CommissionType
    commission_rate: Decimal
    commission_amount: Decimal
    status: CommissionStatus
    applied_template_id: int
    approved_at: Optional[datetime] = None
    approved_by_id: Optional[int] = None
    paid_at: Optional[datetime] = None
    paid_by_id: Optional[int] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CommissionListMeta(BaseModel):
    count: int
    created: Optional[bool] = None


class CommissionListResponse(BaseModel):
    """Rows of a calculation or batch transition."""

    data: List[CommissionResponse]
    meta: CommissionListMeta


class CommissionSummaryResponse(BaseModel):
    """Per-status totals of a beneficiary."""

    user_id: int
    total_pending: Decimal
    total_approved: Decimal
    total_paid: Decimal
    commissions: List[CommissionResponse]


class CommissionBatchRequest(BaseModel):
    """IDs for approve / mark-paid."""

    commission_ids: List[int] = Field(..., min_length=1, max_length=500)

    @field_validator("commission_ids")
    @classmethod
    def ids_positive(cls, v: List[int]) -> List[int]:
        if any(cid <= 0 for cid in v):
            raise ValueError("Commission IDs must be positive integers")
        return v


class TopEarnerResponse(BaseModel):
    user_id: int
    display_name: Optional[str] = None
    total_earned: Decimal
    commission_count: int


class PlatformSummaryResponse(BaseModel):
    """Ledger-wide totals for the admin dashboard."""

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    total_pending: Decimal
    total_approved: Decimal
    total_paid: Decimal
    commission_count: int
    top_earners: List[TopEarnerResponse]
