# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the auth endpoints."""

from typing import Optional

from pydantic import AliasChoices, BaseModel, Field

from core.schemas import UTCDateTime


# -- Requests --------------------------------------------------------------


class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    # Presence is checked by the handler so the client gets one combined message
    name: str = ""
    email: str = ""
    password: str = ""
    phone: str = ""
    address: Optional[str] = None
    # The signup link carries ?invite=<token>; older clients post inviteToken
    invite_token: Optional[str] = Field(
        None, validation_alias=AliasChoices("invite_token", "inviteToken")
    )


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str


class UpdateProfileRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


# -- Responses -------------------------------------------------------------


class UserSummary(BaseModel):
    id: int
    name: str
    email: str
    role: str

    model_config = {"from_attributes": True}


class SessionResponse(BaseModel):
    """Body returned with the session cookie by login and register."""

    detail: str
    role: str
    user: UserSummary


class ClaimsResponse(BaseModel):
    user_id: int
    email: str
    role: str

    model_config = {"from_attributes": True}


class MeResponse(BaseModel):
    is_authenticated: bool = True
    user: ClaimsResponse


class UserInfoResponse(BaseModel):
    id: int
    name: str
    email: str
    role: str
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: UTCDateTime

    model_config = {"from_attributes": True}
