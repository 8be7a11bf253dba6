"""Commission template schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from commission_engine.models.commission_template import (
    CommissionType,
    RuleCustomerType,
    TemplateStatus,
)
from commission_engine.services.commission.levels import LevelKind, RuleLevel


class TemplateDetailCreate(BaseModel):
    """One rule row of a new template."""

    level_type: str = Field(..., max_length=30)
    level_number: Optional[int] = Field(None, ge=0)
    customer_type: RuleCustomerType = RuleCustomerType.ALL
    commission_type: CommissionType
    commission_value: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)

    @model_validator(mode="after")
    def check_level(self) -> "TemplateDetailCreate":
        level = RuleLevel.parse(self.level_type)
        if level is None:
            raise ValueError(
                "level_type must be 'direct', 'upline_<n>' (n >= 1) or 'partner_company'"
            )
        self.level_type = level.label

        if level.kind == LevelKind.UPLINE:
            if self.level_number is not None and self.level_number != level.depth:
                raise ValueError(
                    f"level_number {self.level_number} does not match {level.label}"
                )
            self.level_number = level.depth
        elif self.level_number is None:
            self.level_number = 0
        elif level.kind == LevelKind.DIRECT and self.level_number != 0:
            raise ValueError("direct rules must have level_number 0")

        if self.commission_type == CommissionType.PERCENTAGE and self.commission_value > 100:
            raise ValueError("percentage commission_value cannot exceed 100")
        return self


class TemplateCreate(BaseModel):
    """Create a commission template with its rules."""

    template_code: str = Field(..., min_length=1, max_length=50)
    template_name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    status: TemplateStatus = TemplateStatus.ACTIVE
    details: List[TemplateDetailCreate] = Field(default_factory=list)


class TemplateDetailResponse(BaseModel):
    id: int
    level_type: str
    level_number: int
    customer_type: RuleCustomerType
    commission_type: CommissionType
    commission_value: Decimal

    model_config = {"from_attributes": True}


class TemplateResponse(BaseModel):
    id: int
    template_code: str
    template_name: str
    description: Optional[str]
    status: TemplateStatus
    details: List[TemplateDetailResponse]

    model_config = {"from_attributes": True}


class TimeBasedTemplateCreate(BaseModel):
    """Bind a template to a product for a date window."""

    product_id: int = Field(..., gt=0)
    commission_template_id: int = Field(..., gt=0)
    start_date: date
    end_date: date
    priority: int = 0
    status: TemplateStatus = TemplateStatus.ACTIVE

    @model_validator(mode="after")
    def check_dates(self) -> "TimeBasedTemplateCreate":
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self


class TimeBasedTemplateResponse(BaseModel):
    id: int
    product_id: int
    commission_template_id: int
    start_date: date
    end_date: date
    priority: int
    status: TemplateStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class ResolvedRuleResponse(BaseModel):
    detail_id: int
    level_type: str
    customer_type: RuleCustomerType
    commission_type: CommissionType
    commission_value: Decimal


class ResolvedTemplateResponse(BaseModel):
    """Which template a product gets on a date, and why."""

    product_id: int
    on_date: date
    template_id: Optional[int] = None
    template_code: Optional[str] = None
    override_id: Optional[int] = None
    rules: List[ResolvedRuleResponse] = Field(default_factory=list)

    @field_validator("rules")
    @classmethod
    def rules_sorted(cls, v: List[ResolvedRuleResponse]) -> List[ResolvedRuleResponse]:
        return sorted(v, key=lambda r: r.detail_id)
