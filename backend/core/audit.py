"""Append rows to the audit trail inside the caller's transaction."""

from typing import Optional

from fastapi import Request
from sqlalchemy.orm import Session

from core.security import get_client_ip
from models.audit_log import AuditLog


def audit(
    db: Session,
    request: Optional[Request],
    action: str,
    actor_id: Optional[int] = None,
    target_user_id: Optional[int] = None,
    detail: Optional[str] = None,
) -> None:
    """Stage an AuditLog row; it is written by the caller's next commit."""
    db.add(
        AuditLog(
            actor_id=actor_id,
            target_user_id=target_user_id,
            action=action,
            detail=detail,
            request_ip=get_client_ip(request) if request is not None else None,
        )
    )
