# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""TimeLog ORM model – one clock-in / clock-out record of a worker."""

from sqlalchemy import Column, Integer, Text, Enum, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base

TIMELOG_STATUSES = ("pending", "approved", "rejected")


class TimeLog(Base):
    __tablename__ = "time_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    clock_in_time = Column(DateTime(timezone=True), nullable=False)
    # JSON text: {"latitude", "longitude", "timestamp", "accuracy"}
    clock_in_location = Column(Text, nullable=False)
    clock_out_time = Column(DateTime(timezone=True), nullable=True)
    clock_out_location = Column(Text, nullable=True)
    worker_note = Column(Text, nullable=True)
    admin_note = Column(Text, nullable=True)
    status = Column(Enum(*TIMELOG_STATUSES, name="timelog_status"), nullable=False, default="pending")
    # Equals user_id while the log is open, NULL once clocked out.  The unique
    # constraint is what keeps a worker to a single open session; NULLs never
    # collide, so closed logs are unconstrained.
    open_session_user_id = Column(Integer, unique=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    user = relationship("User", back_populates="time_logs")

    @property
    def is_open(self) -> bool:
        return self.clock_out_time is None
