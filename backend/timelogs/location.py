# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Geolocation payloads and shift-duration arithmetic.

A location is captured by the browser at clock-in / clock-out and stored on
the TimeLog row as JSON text.  Clients may send it either as an object or as
that JSON text itself; both decode to :class:`LocationData`.
"""

import json
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from core.clock import ensure_utc


class LocationData(BaseModel):
    latitude: float
    longitude: float
    timestamp: datetime
    accuracy: float

    model_config = ConfigDict(allow_inf_nan=False)

    @model_validator(mode="before")
    @classmethod
    def _decode_json_text(cls, data):
        if isinstance(data, (str, bytes)):
            try:
                return json.loads(data)
            except ValueError:
                raise ValueError("Invalid location JSON format")
        return data

    @field_validator("latitude")
    @classmethod
    def _check_latitude(cls, v: float) -> float:
        if not -90 <= v <= 90:
            raise ValueError("Invalid latitude")
        return v

    @field_validator("longitude")
    @classmethod
    def _check_longitude(cls, v: float) -> float:
        if not -180 <= v <= 180:
            raise ValueError("Invalid longitude")
        return v

    @field_validator("accuracy")
    @classmethod
    def _check_accuracy(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Invalid accuracy")
        return v


def format_location(location: LocationData) -> str:
    """Serialise for the ``*_location`` text columns."""
    return location.model_dump_json()


def parse_location(text: Optional[str]) -> Optional[LocationData]:
    """Decode a stored location; unreadable rows come back as None."""
    if not text:
        return None
    try:
        return LocationData.model_validate_json(text)
    except ValueError:
        return None


def calculate_duration(clock_in: datetime, clock_out: datetime) -> str:
    """
    Elapsed time as ``"{hours}h {minutes}m"``, truncated to whole minutes.

    >>> from datetime import datetime
    >>> calculate_duration(datetime(2025, 1, 1, 9), datetime(2025, 1, 1, 17, 30))
    '8h 30m'
    """
    elapsed = ensure_utc(clock_out) - ensure_utc(clock_in)
    total_minutes = int(elapsed.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes}m"
