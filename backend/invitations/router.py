# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Invitation endpoints.

* ``GET /invitations/validate`` is public and never consumes the token.
* Everything under ``/admin/invitations`` is guarded by ``require_admin``.
"""

from datetime import timedelta
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core import clock
from core.audit import audit
from core.config import settings
from core.errors import NotFound, ValidationError
from core.logger import logger
from core.security import TokenClaims, generate_invitation_token, require_admin
from database import get_db
from invitations import workflow
from invitations.schemas import (
    CreateInvitationRequest,
    CreateInvitationResponse,
    InvitationListResponse,
    InvitationRow,
    InvitationValidationResponse,
)
from models.invitation import INVITABLE_ROLES, InvitationToken

router = APIRouter(prefix="/invitations", tags=["invitations"])
admin_router = APIRouter(prefix="/admin/invitations", tags=["admin"])

_MIN_HOURS = 1
_MAX_HOURS = 168  # 7 days


def build_invite_url(token: str) -> str:
    base = settings.app_base_url.rstrip("/")
    return f"{base}/register?{urlencode({'invite': token})}"


# ---------------------------------------------------------------------------
# GET /invitations/validate?token=  – public pre-check for the signup form
# ---------------------------------------------------------------------------


@router.get("/validate", response_model=InvitationValidationResponse)
def validate_invitation(
    token: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Report whether *token* is usable and which role it grants."""
    if not token:
        raise ValidationError("Token is required")

    invitation = workflow.find_invitation(db, token)
    if invitation is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"valid": False, "error": workflow.INVALID},
        )

    state = workflow.invitation_state(invitation)
    if state != "active":
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "valid": False,
                "error": workflow.ALREADY_USED if state == "used" else workflow.EXPIRED,
            },
        )

    return InvitationValidationResponse(valid=True, role=invitation.role)


# ---------------------------------------------------------------------------
# POST /admin/invitations  – issue a new registration link
# ---------------------------------------------------------------------------


@admin_router.post("", response_model=CreateInvitationResponse, status_code=status.HTTP_201_CREATED)
def create_invitation(
    body: CreateInvitationRequest,
    request: Request,
    admin: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if body.role not in INVITABLE_ROLES:
        raise ValidationError(f"Invalid role. Must be one of: {', '.join(INVITABLE_ROLES)}")
    if not _MIN_HOURS <= body.expires_in_hours <= _MAX_HOURS:
        raise ValidationError("Expiration must be between 1 and 168 hours (7 days)")

    invitation = InvitationToken(
        token=generate_invitation_token(),
        role=body.role,
        expires_at=clock.utcnow() + timedelta(hours=body.expires_in_hours),
        created_by=admin.user_id,
    )
    db.add(invitation)
    db.flush()
    audit(db, request, "create_invitation", actor_id=admin.user_id,
          detail=f"invitation_id={invitation.id} role={body.role} hours={body.expires_in_hours}")
    db.commit()
    db.refresh(invitation)

    logger.info("create_invitation | admin_id=%d invitation_id=%d role=%s",
                admin.user_id, invitation.id, invitation.role)
    return CreateInvitationResponse(
        invitation=InvitationRow.model_validate(invitation),
        invite_url=build_invite_url(invitation.token),
    )


# ---------------------------------------------------------------------------
# GET /admin/invitations  – newest first
# ---------------------------------------------------------------------------


@admin_router.get("", response_model=InvitationListResponse)
def list_invitations(
    admin: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    rows = db.query(InvitationToken).order_by(InvitationToken.created_at.desc(), InvitationToken.id.desc()).all()
    return InvitationListResponse(invitations=rows)


# ---------------------------------------------------------------------------
# DELETE /admin/invitations/{id}  – revoke (used or not)
# ---------------------------------------------------------------------------


@admin_router.delete("/{invitation_id}")
def revoke_invitation(
    invitation_id: int,
    request: Request,
    admin: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    invitation = db.query(InvitationToken).filter(InvitationToken.id == invitation_id).first()
    if not invitation:
        raise NotFound("Invitation not found")

    db.delete(invitation)
    audit(db, request, "revoke_invitation", actor_id=admin.user_id,
          detail=f"invitation_id={invitation_id}")
    db.commit()

    logger.info("revoke_invitation | admin_id=%d invitation_id=%d", admin.user_id, invitation_id)
    return {"detail": "Invitation deleted successfully"}
