"""Audit trail writer"""

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from tablemind.models.audit import AuditLog


def record_action(
    db: AsyncSession,
    restaurant_id: UUID,
    action: str,
    resource_type: str,
    resource_id: Optional[UUID],
    data: Optional[Dict[str, Any]] = None,
    actor=None,
) -> AuditLog:
    """Queue an audit row in the current transaction"""
    entry = AuditLog(
        restaurant_id=restaurant_id,
        actor_id=actor.id if actor is not None else None,
        actor_type="user" if actor is not None else "system",
        actor_name=(actor.full_name or actor.username) if actor is not None else "system",
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        data_json=data,
    )
    db.add(entry)
    return entry
