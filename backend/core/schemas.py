"""Pydantic building blocks shared by the feature schemas."""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator

from core.clock import ensure_utc

# Datetimes leave the API as explicit UTC, whatever the driver hands back.
UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]
