# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""InvitationToken ORM model – single-use, role-scoped registration link."""

from sqlalchemy import Column, Integer, String, Enum, DateTime, ForeignKey
from sqlalchemy.sql import func

from database import Base

INVITABLE_ROLES = ("client", "worker")


class InvitationToken(Base):
    __tablename__ = "invitation_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(64), unique=True, nullable=False, index=True)
    role = Column(Enum(*INVITABLE_ROLES, name="invitation_role"), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    # Both NULL until the token is consumed by a registration
    used_at = Column(DateTime(timezone=True), nullable=True)
    used_by = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_by = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
