# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the time-log endpoints."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, computed_field, field_validator

from core.schemas import UTCDateTime
from timelogs.location import LocationData, calculate_duration, parse_location

NOTE_MAX = 1000

TimeLogStatus = Literal["pending", "approved", "rejected"]


# -- Requests --------------------------------------------------------------


class ClockInRequest(BaseModel):
    clock_in_location: LocationData
    worker_note: Optional[str] = Field(None, max_length=NOTE_MAX)


class ClockOutRequest(BaseModel):
    clock_out_location: LocationData
    worker_note: Optional[str] = Field(None, max_length=NOTE_MAX)


class TimeLogReviewRequest(BaseModel):
    """
    Partial update.  Omitted fields are left alone; an explicit
    ``"clock_out_time": null`` reopens the session.
    """

    status: Optional[TimeLogStatus] = None
    admin_note: Optional[str] = Field(None, max_length=NOTE_MAX)
    clock_in_time: Optional[UTCDateTime] = None
    clock_out_time: Optional[UTCDateTime] = None


class ForceClockOutRequest(BaseModel):
    admin_note: Optional[str] = Field(None, max_length=NOTE_MAX)


# -- Responses -------------------------------------------------------------


class TimeLogResponse(BaseModel):
    id: int
    user_id: int
    clock_in_time: UTCDateTime
    clock_in_location: Optional[LocationData] = None
    clock_out_time: Optional[UTCDateTime] = None
    clock_out_location: Optional[LocationData] = None
    worker_note: Optional[str] = None
    admin_note: Optional[str] = None
    status: str
    created_at: UTCDateTime
    updated_at: UTCDateTime

    model_config = {"from_attributes": True}

    @field_validator("clock_in_location", "clock_out_location", mode="before")
    @classmethod
    def _load_location(cls, v):
        if isinstance(v, str):
            return parse_location(v)
        return v

    @computed_field
    @property
    def duration(self) -> Optional[str]:
        """``"8h 30m"`` once clocked out; None while the session is open."""
        if self.clock_out_time is None:
            return None
        return calculate_duration(self.clock_in_time, self.clock_out_time)


class TimeLogOwner(BaseModel):
    name: str
    email: str

    model_config = {"from_attributes": True}


class TimeLogWithUser(TimeLogResponse):
    user: TimeLogOwner


class TimeLogListResponse(BaseModel):
    time_logs: List[TimeLogResponse]


class AdminTimeLogListResponse(BaseModel):
    time_logs: List[TimeLogWithUser]


class ActiveTimeLogResponse(BaseModel):
    active_time_log: Optional[TimeLogResponse] = None
