# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Time-tracking endpoints – clock-in, clock-out, and the admin review queue.

Invariants enforced here
------------------------
* A worker has at most one open TimeLog (``clock_out_time IS NULL``).  The
  pre-check gives the friendly 409; the unique ``open_session_user_id``
  column is what actually closes the race between two concurrent clock-ins.
* Clock-out is a conditional UPDATE on ``clock_out_time IS NULL``, so two
  concurrent clock-outs cannot both succeed.
* Wherever both timestamps are set, clock-out is not earlier than clock-in.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from core import clock
from core.audit import audit
from core.errors import AlreadyClockedIn, Conflict, Forbidden, NotFound, Unauthorized, ValidationError
from core.logger import logger
from core.security import (
    TokenClaims,
    ensure_owner_or_admin,
    get_current_claims,
    require_admin,
    require_worker,
)
from database import get_db
from models.time_log import TimeLog
from models.user import User
from timelogs.location import format_location
from timelogs.schemas import (
    ActiveTimeLogResponse,
    AdminTimeLogListResponse,
    ClockInRequest,
    ClockOutRequest,
    ForceClockOutRequest,
    TimeLogListResponse,
    TimeLogResponse,
    TimeLogReviewRequest,
    TimeLogStatus,
    TimeLogWithUser,
)

router = APIRouter(prefix="/timelogs", tags=["timelogs"])
admin_router = APIRouter(prefix="/admin/timelogs", tags=["admin"])

_OUT_BEFORE_IN = "Clock out time must be after clock in time"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _active_log(db: Session, user_id: int) -> Optional[TimeLog]:
    return (
        db.query(TimeLog)
        .filter(TimeLog.user_id == user_id, TimeLog.clock_out_time.is_(None))
        .order_by(TimeLog.clock_in_time.desc())
        .first()
    )


def _get_log(db: Session, log_id: int) -> TimeLog:
    log = db.query(TimeLog).filter(TimeLog.id == log_id).first()
    if not log:
        raise NotFound("Time log not found")
    return log


def _close_session(db: Session, log: TimeLog, values: dict) -> None:
    """
    Compare-and-swap the open log to closed.  Raises 409 if another request
    closed it first.
    """
    values = {**values, "open_session_user_id": None}
    updated = (
        db.query(TimeLog)
        .filter(TimeLog.id == log.id, TimeLog.clock_out_time.is_(None))
        .update(values, synchronize_session=False)
    )
    if not updated:
        db.rollback()
        raise Conflict("This time log is already clocked out")


# ---------------------------------------------------------------------------
# GET /timelogs  – the worker's own history
# ---------------------------------------------------------------------------


@router.get("", response_model=TimeLogListResponse)
def list_own_time_logs(
    claims: TokenClaims = Depends(require_worker),
    db: Session = Depends(get_db),
):
    logs = (
        db.query(TimeLog)
        .filter(TimeLog.user_id == claims.user_id)
        .order_by(TimeLog.clock_in_time.desc())
        .all()
    )
    return TimeLogListResponse(time_logs=logs)


# ---------------------------------------------------------------------------
# GET /timelogs/active  – the open session, if any
# ---------------------------------------------------------------------------


@router.get("/active", response_model=ActiveTimeLogResponse)
def get_active_time_log(
    claims: TokenClaims = Depends(require_worker),
    db: Session = Depends(get_db),
):
    return ActiveTimeLogResponse(active_time_log=_active_log(db, claims.user_id))


# ---------------------------------------------------------------------------
# POST /timelogs  – clock in
# ---------------------------------------------------------------------------


@router.post("", response_model=TimeLogResponse, status_code=status.HTTP_201_CREATED)
def clock_in(
    body: ClockInRequest,
    request: Request,
    claims: TokenClaims = Depends(require_worker),
    db: Session = Depends(get_db),
):
    """Open a new session at the current time with status ``pending``."""
    # The token outlives an account deletion; refuse instead of tripping the FK
    if not db.query(User.id).filter(User.id == claims.user_id).first():
        raise Unauthorized("User not found")
    if _active_log(db, claims.user_id):
        raise AlreadyClockedIn()

    log = TimeLog(
        user_id=claims.user_id,
        clock_in_time=clock.utcnow(),
        clock_in_location=format_location(body.clock_in_location),
        worker_note=body.worker_note or None,
        status="pending",
        open_session_user_id=claims.user_id,
    )
    db.add(log)
    audit(db, request, "clock_in", actor_id=claims.user_id, target_user_id=claims.user_id)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        # Lost the race against a concurrent clock-in for the same worker
        if _active_log(db, claims.user_id):
            raise AlreadyClockedIn()
        raise
    db.refresh(log)

    logger.info("clock_in | user_id=%d time_log_id=%d", claims.user_id, log.id)
    return log


# ---------------------------------------------------------------------------
# GET /timelogs/{id}  – single record, owner or admin
# ---------------------------------------------------------------------------


@router.get("/{log_id}", response_model=TimeLogResponse)
def get_time_log(
    log_id: int,
    claims: TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    log = _get_log(db, log_id)
    ensure_owner_or_admin(claims, log.user_id)
    return log


# ---------------------------------------------------------------------------
# PATCH /timelogs/{id}  – clock out
# ---------------------------------------------------------------------------


@router.patch("/{log_id}", response_model=TimeLogResponse)
def clock_out(
    log_id: int,
    body: ClockOutRequest,
    request: Request,
    claims: TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    """
    Close the caller's own open session.  The clock-in note is kept unless a
    new note is supplied.
    """
    log = _get_log(db, log_id)
    if log.user_id != claims.user_id:
        raise Forbidden("Forbidden - You can only clock out your own time logs")
    if not log.is_open:
        raise Conflict("This time log is already clocked out")

    now = clock.utcnow()
    if now < clock.ensure_utc(log.clock_in_time):
        raise ValidationError(_OUT_BEFORE_IN)

    values = {
        "clock_out_time": now,
        "clock_out_location": format_location(body.clock_out_location),
    }
    if body.worker_note:
        values["worker_note"] = body.worker_note
    _close_session(db, log, values)
    audit(db, request, "clock_out", actor_id=claims.user_id, target_user_id=claims.user_id,
          detail=f"time_log_id={log.id}")
    db.commit()
    db.refresh(log)

    logger.info("clock_out | user_id=%d time_log_id=%d", claims.user_id, log.id)
    return log


# ---------------------------------------------------------------------------
# GET /admin/timelogs  – every worker's records
# ---------------------------------------------------------------------------


@admin_router.get("", response_model=AdminTimeLogListResponse)
def admin_list_time_logs(
    user_id: Optional[int] = Query(None, description="Only this worker's records"),
    status_filter: Optional[TimeLogStatus] = Query(None, alias="status"),
    admin: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    q = db.query(TimeLog).options(joinedload(TimeLog.user))
    if user_id is not None:
        q = q.filter(TimeLog.user_id == user_id)
    if status_filter is not None:
        q = q.filter(TimeLog.status == status_filter)
    logs = q.order_by(TimeLog.clock_in_time.desc()).all()
    return AdminTimeLogListResponse(time_logs=logs)


# ---------------------------------------------------------------------------
# PUT /admin/timelogs/{id}  – review / correct
# ---------------------------------------------------------------------------


@admin_router.put("/{log_id}", response_model=TimeLogWithUser)
def admin_review_time_log(
    log_id: int,
    body: TimeLogReviewRequest,
    request: Request,
    admin: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Apply a partial update.  The ordering check runs against the values the
    row will hold *after* the update, not against the request alone.
    """
    fields = body.model_fields_set
    log = _get_log(db, log_id)

    if "clock_in_time" in fields and body.clock_in_time is None:
        raise ValidationError("Clock in time cannot be cleared")

    final_in = body.clock_in_time or clock.ensure_utc(log.clock_in_time)
    if "clock_out_time" in fields:
        final_out = body.clock_out_time
    else:
        final_out = clock.ensure_utc(log.clock_out_time)
    if final_out is not None and final_out < final_in:
        raise ValidationError(_OUT_BEFORE_IN)

    changes = []
    if body.status is not None:
        log.status = body.status
        changes.append(f"status={body.status}")
    if "admin_note" in fields:
        log.admin_note = body.admin_note
        changes.append("admin_note")
    if "clock_in_time" in fields:
        log.clock_in_time = final_in
        changes.append(f"clock_in_time={final_in.isoformat()}")
    if "clock_out_time" in fields:
        log.clock_out_time = final_out
        log.open_session_user_id = log.user_id if final_out is None else None
        changes.append(f"clock_out_time={final_out.isoformat() if final_out else None}")

    audit(db, request, "review_time_log", actor_id=admin.user_id, target_user_id=log.user_id,
          detail=f"time_log_id={log.id} " + " ".join(changes))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("This worker already has an open time log")
    db.refresh(log)

    logger.info("review_time_log | admin_id=%d time_log_id=%d %s", admin.user_id, log.id, " ".join(changes))
    return log


# ---------------------------------------------------------------------------
# POST /admin/timelogs/{id}/force-clock-out  – close a forgotten session
# ---------------------------------------------------------------------------


@admin_router.post("/{log_id}/force-clock-out", response_model=TimeLogWithUser)
def admin_force_clock_out(
    log_id: int,
    request: Request,
    body: Optional[ForceClockOutRequest] = None,
    admin: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Set clock-out to now on an open log.  No location is recorded."""
    log = _get_log(db, log_id)
    if not log.is_open:
        raise Conflict("This time log is already clocked out")

    values = {"clock_out_time": clock.utcnow()}
    if body is not None and body.admin_note is not None:
        values["admin_note"] = body.admin_note
    _close_session(db, log, values)
    audit(db, request, "force_clock_out", actor_id=admin.user_id, target_user_id=log.user_id,
          detail=f"time_log_id={log.id}")
    db.commit()
    db.refresh(log)

    logger.info("force_clock_out | admin_id=%d time_log_id=%d", admin.user_id, log.id)
    return log


# ---------------------------------------------------------------------------
# DELETE /admin/timelogs/{id}
# ---------------------------------------------------------------------------


@admin_router.delete("/{log_id}")
def admin_delete_time_log(
    log_id: int,
    request: Request,
    admin: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    log = _get_log(db, log_id)
    owner_id = log.user_id
    db.delete(log)
    audit(db, request, "delete_time_log", actor_id=admin.user_id, target_user_id=owner_id,
          detail=f"time_log_id={log_id}")
    db.commit()

    logger.info("delete_time_log | admin_id=%d time_log_id=%d", admin.user_id, log_id)
    return {"detail": "Time log deleted successfully"}
