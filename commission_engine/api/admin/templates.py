"""Admin commission template API endpoints."""

import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.auth.dependencies import require_admin
from commission_engine.db import get_db
from commission_engine.models import (
    AuditAction,
    CommissionTemplate,
    CommissionTemplateDetail,
    User,
)
from commission_engine.repositories import (
    CommissionTemplateRepository,
    ProductRepository,
    TimeBasedTemplateRepository,
)
from commission_engine.schemas.template import (
    ResolvedRuleResponse,
    ResolvedTemplateResponse,
    TemplateCreate,
    TemplateResponse,
    TimeBasedTemplateCreate,
    TimeBasedTemplateResponse,
)
from commission_engine.services.commission import TemplateResolver
from commission_engine.services.commission.template_resolver import business_date
from commission_engine.utils.audit import get_client_ip, log_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/templates")


@router.get("", response_model=List[TemplateResponse])
async def list_templates(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """All templates with their rules."""
    return await CommissionTemplateRepository(db).list_with_details()


@router.post("", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    data: TemplateCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Create a template together with its rule rows."""
    template_repo = CommissionTemplateRepository(db)
    if await template_repo.get_by_code(data.template_code):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Template code '{data.template_code}' already exists",
        )

    template = CommissionTemplate(
        template_code=data.template_code,
        template_name=data.template_name,
        description=data.description,
        status=data.status,
        details=[
            CommissionTemplateDetail(
                level_type=detail.level_type,
                level_number=detail.level_number,
                customer_type=detail.customer_type,
                commission_type=detail.commission_type,
                commission_value=detail.commission_value,
            )
            for detail in data.details
        ],
    )
    db.add(template)
    await db.flush()

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.CREATE_TEMPLATE,
        target_type="template",
        target_id=template.id,
        action_metadata={"template_code": template.template_code},
        ip_address=get_client_ip(request),
    )

    logger.info(
        f"Template {template.template_code} created with {len(data.details)} rules "
        f"by user {current_user.id}"
    )
    return await template_repo.get_with_details(template.id)


@router.post(
    "/time-based",
    response_model=TimeBasedTemplateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_time_based_template(
    data: TimeBasedTemplateCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Schedule a template override for one product and date window."""
    if not await ProductRepository(db).exists(id=data.product_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product {data.product_id} not found",
        )
    if not await CommissionTemplateRepository(db).exists(id=data.commission_template_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Template {data.commission_template_id} not found",
        )

    override = await TimeBasedTemplateRepository(db).create(**data.model_dump())

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.CREATE_TIME_BASED_TEMPLATE,
        target_type="time_based_template",
        target_id=override.id,
        action_metadata={
            "product_id": override.product_id,
            "start_date": override.start_date.isoformat(),
            "end_date": override.end_date.isoformat(),
            "priority": override.priority,
        },
        ip_address=get_client_ip(request),
    )

    return override


@router.get("/resolve", response_model=ResolvedTemplateResponse)
async def resolve_template(
    product_id: int = Query(..., gt=0),
    on_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Show which template a product would get on a date (default today, business timezone)."""
    resolver = TemplateResolver(
        ProductRepository(db),
        CommissionTemplateRepository(db),
        TimeBasedTemplateRepository(db),
    )
    on_date = on_date or business_date(datetime.now(timezone.utc), resolver.tz)
    resolved = await resolver.resolve_template(product_id, on_date)
    if resolved is None:
        return ResolvedTemplateResponse(product_id=product_id, on_date=on_date)

    return ResolvedTemplateResponse(
        product_id=product_id,
        on_date=on_date,
        template_id=resolved.template_id,
        template_code=resolved.template_code,
        override_id=resolved.override_id,
        rules=[
            ResolvedRuleResponse(
                detail_id=rule.detail_id,
                level_type=rule.level.label,
                customer_type=rule.customer_type,
                commission_type=rule.commission_type,
                commission_value=rule.commission_value,
            )
            for rule in resolved.rules
        ],
    )
