# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the admin user endpoints."""

from typing import List, Optional

from pydantic import BaseModel

from core.schemas import UTCDateTime


# -- Requests --------------------------------------------------------------


class CreateUserRequest(BaseModel):
    name: str
    email: str
    password: str
    role: str = "client"  # "admin", "worker" or "client"
    phone: Optional[str] = None
    address: Optional[str] = None


class UpdateUserRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    new_password: str


# -- Responses -------------------------------------------------------------


class UserRow(BaseModel):
    id: int
    name: str
    email: str
    role: str
    phone: Optional[str] = None
    address: Optional[str] = None
    last_login: Optional[UTCDateTime] = None
    created_at: UTCDateTime
    updated_at: UTCDateTime

    model_config = {"from_attributes": True}


class UserListResponse(BaseModel):
    users: List[UserRow]


# -- Audit log responses ---------------------------------------------------


class AuditLogRow(BaseModel):
    id: int
    actor_email: Optional[str] = None       # resolved from actor_id join
    target_email: Optional[str] = None      # resolved from target_user_id join
    action: str
    detail: Optional[str] = None
    request_ip: Optional[str] = None
    created_at: UTCDateTime

    model_config = {"from_attributes": True}


class AuditLogListResponse(BaseModel):
    logs: List[AuditLogRow]
