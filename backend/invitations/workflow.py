# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Invitation lookup and consumption, shared by the public validate endpoint
and by registration.

Consumption is a conditional UPDATE (``used_at IS NULL AND expires_at >= now``)
issued inside the registration transaction.  Whichever request commits it
first wins; a second registration with the same token gets 409 and its
user row is rolled back with it.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from core import clock
from core.errors import Conflict, ValidationError
from models.invitation import InvitationToken

INVALID = "Invalid invitation token"
ALREADY_USED = "This invitation has already been used"
EXPIRED = "This invitation has expired"


def invitation_state(invitation: InvitationToken, now: Optional[datetime] = None) -> str:
    """One of ``"used"``, ``"expired"`` or ``"active"``."""
    now = now or clock.utcnow()
    if invitation.used_at is not None:
        return "used"
    if now > clock.ensure_utc(invitation.expires_at):
        return "expired"
    return "active"


def find_invitation(db: Session, token: str) -> Optional[InvitationToken]:
    return db.query(InvitationToken).filter(InvitationToken.token == token).first()


def require_open_invitation(db: Session, token: str) -> InvitationToken:
    """
    Return the invitation if it can still be used.

    Raises 400 for an unknown or expired token and 409 for one already used.
    """
    invitation = find_invitation(db, token)
    if invitation is None:
        raise ValidationError(INVALID)
    state = invitation_state(invitation)
    if state == "used":
        raise Conflict(ALREADY_USED)
    if state == "expired":
        raise ValidationError(EXPIRED)
    return invitation


def consume_invitation(db: Session, invitation: InvitationToken, user_id: int) -> None:
    """
    Mark *invitation* used by *user_id*.  Does not commit.

    Raises 409 if the row stopped being usable since it was read.
    """
    now = clock.utcnow()
    updated = (
        db.query(InvitationToken)
        .filter(
            InvitationToken.id == invitation.id,
            InvitationToken.used_at.is_(None),
            InvitationToken.expires_at >= now,
        )
        .update({"used_at": now, "used_by": user_id}, synchronize_session=False)
    )
    if not updated:
        raise Conflict(ALREADY_USED)
