# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the invitation endpoints."""

from typing import List, Optional

from pydantic import BaseModel, computed_field

from core.schemas import UTCDateTime
from invitations.workflow import invitation_state


# -- Requests --------------------------------------------------------------


class CreateInvitationRequest(BaseModel):
    role: str                    # "client" or "worker"
    expires_in_hours: int = 48   # 1 .. 168


# -- Responses -------------------------------------------------------------


class InvitationRow(BaseModel):
    id: int
    token: str
    role: str
    expires_at: UTCDateTime
    used_at: Optional[UTCDateTime] = None
    used_by: Optional[int] = None
    created_by: Optional[int] = None
    created_at: UTCDateTime

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def state(self) -> str:
        """``active``, ``used`` or ``expired`` at the time of the response."""
        return invitation_state(self)


class CreateInvitationResponse(BaseModel):
    invitation: InvitationRow
    invite_url: str


class InvitationListResponse(BaseModel):
    invitations: List[InvitationRow]


class InvitationValidationResponse(BaseModel):
    valid: bool
    role: Optional[str] = None
    error: Optional[str] = None
