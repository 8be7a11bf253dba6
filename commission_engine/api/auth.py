"""
Authentication API endpoints.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.auth.dependencies import get_current_user
from commission_engine.auth.jwt import COOKIE_NAME, create_access_token
from commission_engine.config import settings
from commission_engine.db import get_db
from commission_engine.models import AuditAction, User
from commission_engine.repositories import UserRepository
from commission_engine.schemas.auth import LoginRequest, LoginResponse
from commission_engine.utils.audit import get_client_ip, log_action
from commission_engine.utils.password import (
    hash_password,
    password_needs_rehash,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Authenticate a user and set the JWT cookie."""
    user = await UserRepository(db).get_by_username(credentials.username)

    if not user or not verify_password(credentials.password, user.password_hash):
        logger.info(f"Failed login attempt for '{credentials.username}'")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled",
        )

    if password_needs_rehash(user.password_hash):
        user.password_hash = hash_password(credentials.password)

    token = create_access_token(user.id, user.role.value)
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.jwt_expire_hours * 3600,
    )

    await log_action(
        db=db,
        user_id=user.id,
        action=AuditAction.LOGIN,
        ip_address=get_client_ip(request),
    )

    return LoginResponse(
        success=True,
        user_id=user.id,
        role=user.role,
        display_name=user.display_name,
    )


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Clear the JWT cookie."""
    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.LOGOUT,
        ip_address=get_client_ip(request),
    )

    response.delete_cookie(
        key=COOKIE_NAME,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )

    return {"success": True, "message": "Logged out"}
