"""Pydantic schemas for request/response validation."""

from commission_engine.schemas.auth import LoginRequest, LoginResponse
from commission_engine.schemas.commission import (
    CommissionBatchRequest,
    CommissionListMeta,
    CommissionListResponse,
    CommissionResponse,
    CommissionSummaryResponse,
    PlatformSummaryResponse,
    TopEarnerResponse,
)
from commission_engine.schemas.template import (
    ResolvedRuleResponse,
    ResolvedTemplateResponse,
    TemplateCreate,
    TemplateDetailCreate,
    TemplateDetailResponse,
    TemplateResponse,
    TimeBasedTemplateCreate,
    TimeBasedTemplateResponse,
)

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    # Commission
    "CommissionResponse",
    "CommissionListMeta",
    "CommissionListResponse",
    "CommissionSummaryResponse",
    "CommissionBatchRequest",
    "PlatformSummaryResponse",
    "TopEarnerResponse",
    # Template
    "TemplateCreate",
    "TemplateDetailCreate",
    "TemplateDetailResponse",
    "TemplateResponse",
    "TimeBasedTemplateCreate",
    "TimeBasedTemplateResponse",
    "ResolvedRuleResponse",
    "ResolvedTemplateResponse",
]
