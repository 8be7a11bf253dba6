"""
Audit logging utilities.

Every admin action on templates and the commission ledger is recorded.
"""

from typing import Any, Iterable, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models.audit import AuditAction, AuditLog


async def log_action(
    db: AsyncSession,
    user_id: int,
    action: AuditAction,
    target_type: Optional[str] = None,
    target_id: Optional[int] = None,
    action_metadata: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
) -> AuditLog:
    """
    Record an auditable action.

    Args:
        db: Database session
        user_id: ID of the user performing the action
        action: Type of action being performed
        target_type: Kind of entity affected ("order", "commission", "template")
        target_id: ID of the affected entity, None for batches
        action_metadata: Extra context, e.g. the commission IDs of a batch
        ip_address: Client IP address

    Returns:
        Created AuditLog entry (commit happens in the calling context)
    """
    log_entry = AuditLog(
        user_id=user_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        action_metadata=action_metadata,
        ip_address=ip_address,
    )
    db.add(log_entry)
    return log_entry


def batch_metadata(commission_ids: Iterable[int], **extra: Any) -> dict[str, Any]:
    """Metadata payload for a batch transition."""
    ids = sorted(set(commission_ids))
    return {"commission_ids": ids, "count": len(ids), **extra}


def get_client_ip(request: Request) -> Optional[str]:
    """
    Extract client IP from request.

    The first X-Forwarded-For entry wins behind a reverse proxy.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    if request.client:
        return request.client.host

    return None
