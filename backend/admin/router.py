# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Admin endpoints – user lifecycle management and the audit trail.

Every endpoint in this router is guarded by ``require_admin``.  A request
that carries a valid session for a ``worker`` or ``client`` receives 403
before any business logic runs.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from auth.router import normalize_email
from core import clock
from core.audit import audit
from core.errors import Conflict, NotFound, ValidationError
from core.logger import logger
from core.security import TokenClaims, check_password_policy, hash_password, require_admin
from database import get_db
from models.audit_log import AuditLog
from models.user import ROLES, User
from admin.schemas import (
    AuditLogListResponse,
    AuditLogRow,
    CreateUserRequest,
    ResetPasswordRequest,
    UpdateUserRequest,
    UserListResponse,
    UserRow,
)

router = APIRouter(prefix="/admin", tags=["admin"])

_INVALID_ROLE = "Invalid role. Must be 'admin', 'worker' or 'client'"


def _get_user(db: Session, user_id: int) -> User:
    target = db.query(User).filter(User.id == user_id).first()
    if not target:
        raise NotFound("User not found")
    return target


# ---------------------------------------------------------------------------
# POST /admin/users  – create a new user
# ---------------------------------------------------------------------------


@router.post("/users", response_model=UserRow, status_code=status.HTTP_201_CREATED)
def create_user(
    body: CreateUserRequest,
    request: Request,
    admin: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Create an account with any role, bypassing the invitation flow."""
    if body.role not in ROLES:
        raise ValidationError(_INVALID_ROLE)
    if not body.name.strip() or not body.email.strip():
        raise ValidationError("Name and email are required")
    check_password_policy(body.password)

    email = normalize_email(body.email)
    if db.query(User).filter(User.email == email).first():
        raise Conflict("Email already exists")

    user = User(
        name=body.name.strip(),
        email=email,
        password_hash=hash_password(body.password),
        role=body.role,
        phone=body.phone,
        address=body.address,
    )
    db.add(user)
    db.flush()  # get user.id before commit
    audit(db, request, "create_user", actor_id=admin.user_id, target_user_id=user.id,
          detail=f"role={body.role}")
    db.commit()
    db.refresh(user)

    logger.info("create_user | admin_id=%d user_id=%d role=%s", admin.user_id, user.id, user.role)
    return user


# ---------------------------------------------------------------------------
# GET /admin/users  – list all users
# ---------------------------------------------------------------------------


@router.get("/users", response_model=UserListResponse)
def list_users(
    admin: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Return every user row (no password data – handled by the schema)."""
    users = db.query(User).order_by(User.id).all()
    return UserListResponse(users=users)


# ---------------------------------------------------------------------------
# PUT /admin/users/{id}  – edit profile fields and role
# ---------------------------------------------------------------------------


@router.put("/users/{user_id}", response_model=UserRow)
def update_user(
    user_id: int,
    body: UpdateUserRequest,
    request: Request,
    admin: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Partial update.  Guards:
    * Role value must be one of admin / worker / client.
    * Email must stay unique.
    * An admin cannot change their own role (prevents accidental self-lockout).

    A changed role reaches the user's session only when they log in again.
    """
    target = _get_user(db, user_id)
    fields = body.model_fields_set
    changes = []

    if "role" in fields and body.role != target.role:
        if body.role not in ROLES:
            raise ValidationError(_INVALID_ROLE)
        if user_id == admin.user_id:
            raise ValidationError("Cannot change your own role")
        target.role = body.role
        changes.append(f"role={body.role}")

    if "email" in fields:
        if not body.email or not body.email.strip():
            raise ValidationError("Email cannot be empty")
        email = normalize_email(body.email)
        if email != target.email:
            if db.query(User).filter(User.email == email, User.id != user_id).first():
                raise Conflict("Email already exists")
            target.email = email
            changes.append("email")

    if "name" in fields:
        if not body.name or not body.name.strip():
            raise ValidationError("Name cannot be empty")
        target.name = body.name.strip()
        changes.append("name")
    if "phone" in fields:
        target.phone = body.phone
        changes.append("phone")
    if "address" in fields:
        target.address = body.address
        changes.append("address")

    audit(db, request, "update_user", actor_id=admin.user_id, target_user_id=user_id,
          detail=" ".join(changes) or None)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Email already exists")
    db.refresh(target)
    return target


# ---------------------------------------------------------------------------
# PUT /admin/users/{id}/reset-password  – admin resets another user's password
# ---------------------------------------------------------------------------


@router.put("/users/{user_id}/reset-password")
def reset_password(
    user_id: int,
    body: ResetPasswordRequest,
    request: Request,
    admin: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Overwrite a user's password.  The same policy as registration applies."""
    target = _get_user(db, user_id)
    check_password_policy(body.new_password)

    target.password_hash = hash_password(body.new_password)
    audit(db, request, "reset_password", actor_id=admin.user_id, target_user_id=user_id)
    db.commit()

    return {"detail": "Password reset successfully"}


# ---------------------------------------------------------------------------
# DELETE /admin/users/{id}  – hard delete
# ---------------------------------------------------------------------------


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    request: Request,
    admin: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Remove the account.  Time logs go with it (ON DELETE CASCADE); audit
    rows and invitations keep a NULL reference.

    Guard: an admin cannot delete their own account.
    """
    if user_id == admin.user_id:
        raise ValidationError("Cannot delete yourself")

    target = _get_user(db, user_id)
    email = target.email
    db.delete(target)
    audit(db, request, "delete_user", actor_id=admin.user_id, detail=f"email={email}")
    db.commit()

    logger.info("delete_user | admin_id=%d user_id=%d", admin.user_id, user_id)
    return {"detail": "User deleted successfully"}


# ---------------------------------------------------------------------------
# GET /admin/audit-logs  – audit trail with optional filters
# ---------------------------------------------------------------------------


@router.get("/audit-logs", response_model=AuditLogListResponse)
def list_audit_logs(
    emails: list[str] | None = Query(None, description="Filter by exact email(s) – repeated param"),
    since: datetime | None = Query(None, description="ISO-8601 start of time window"),
    until: datetime | None = Query(None, description="ISO-8601 end of time window"),
    limit: int = Query(200, ge=1, le=1000),
    admin: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Return audit log rows newest-first.  Supports optional filters:

    * ``emails`` – one or more exact email addresses; match rows where
                   *either* actor_id or target_user_id belongs to one of them.
    * ``since`` / ``until`` – ISO-8601 bounds on ``created_at``.
    * ``limit`` – max rows returned (default 200, cap 1000).
    """
    ActorUser  = aliased(User)
    TargetUser = aliased(User)

    q = (
        db.query(AuditLog, ActorUser.email, TargetUser.email)
        .outerjoin(ActorUser,  AuditLog.actor_id       == ActorUser.id)
        .outerjoin(TargetUser, AuditLog.target_user_id == TargetUser.id)
    )

    if emails:
        normalized = [normalize_email(e) for e in emails]
        q = q.filter(
            ActorUser.email.in_(normalized) | TargetUser.email.in_(normalized)
        )
    # SQLite keeps no offset, so bounds are compared in UTC
    if since:
        q = q.filter(AuditLog.created_at >= clock.ensure_utc(since))
    if until:
        q = q.filter(AuditLog.created_at <= clock.ensure_utc(until))

    rows = q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()

    result = [
        AuditLogRow(
            id=row.id,
            actor_email=actor_email,
            target_email=target_email,
            action=row.action,
            detail=row.detail,
            request_ip=row.request_ip,
            created_at=row.created_at,
        )
        for row, actor_email, target_email in rows
    ]
    return AuditLogListResponse(logs=result)
