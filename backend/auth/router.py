# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Auth endpoints – register, login, logout, current session, own profile.

Security notes
--------------
* Login returns the *same* error whether the email doesn't exist or the
  password is wrong.  This prevents user-enumeration attacks.
* The session token travels only in the HTTP-only ``token`` cookie; it is
  never placed in a response body.
* Registration with an invitation creates the user and consumes the
  invitation in one transaction: either both rows change or neither does.
* change-password verifies the old password before accepting the new one,
  so a stolen (but not yet expired) token alone cannot reset the password.
"""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core import clock
from core.audit import audit
from core.errors import Conflict, InvalidCredentials, NotFound, ValidationError
from core.logger import logger
from core.security import (
    TokenClaims,
    check_password_policy,
    clear_session_cookie,
    create_access_token,
    get_current_claims,
    get_client_ip,
    hash_password,
    set_session_cookie,
    verify_password,
)
from database import get_db
from invitations.workflow import consume_invitation, require_open_invitation
from models.user import User
from auth.schemas import (
    ChangePasswordRequest,
    ClaimsResponse,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    SessionResponse,
    UpdateProfileRequest,
    UserInfoResponse,
)

router = APIRouter(prefix="/auth", tags=["auth"])

_EMAIL_TAKEN = "Email already registered"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _start_session(response: Response, user: User) -> None:
    token = create_access_token(user.id, user.email, user.role)
    set_session_cookie(response, token)


def _load_self(db: Session, claims: TokenClaims) -> User:
    user = db.query(User).filter(User.id == claims.user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


# ---------------------------------------------------------------------------
# POST /auth/register
# ---------------------------------------------------------------------------


@router.post("/register", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    """
    Create an account and log it in.  The role is ``client`` unless a valid
    invitation token says otherwise.
    """
    if not (body.name and body.email and body.password and body.phone):
        raise ValidationError("Name, email, password, and phone are required")
    check_password_policy(body.password)

    email = normalize_email(body.email)
    if db.query(User).filter(User.email == email).first():
        raise Conflict(_EMAIL_TAKEN)

    invitation = None
    role = "client"
    if body.invite_token:
        invitation = require_open_invitation(db, body.invite_token)
        role = invitation.role

    user = User(
        name=body.name.strip(),
        email=email,
        password_hash=hash_password(body.password),
        phone=body.phone,
        address=body.address or None,
        role=role,
    )
    db.add(user)
    try:
        db.flush()  # get user.id before consuming the invitation
    except IntegrityError:
        db.rollback()
        raise Conflict(_EMAIL_TAKEN)

    if invitation is not None:
        try:
            consume_invitation(db, invitation, user.id)
        except Conflict:
            db.rollback()
            raise

    audit(db, request, "register", actor_id=user.id, target_user_id=user.id,
          detail=f"role={role}" + (f" invitation_id={invitation.id}" if invitation else ""))
    db.commit()
    db.refresh(user)

    logger.info("register | user_id=%d role=%s invited=%s", user.id, user.role, invitation is not None)
    _start_session(response, user)
    return SessionResponse(detail="User registered successfully", role=user.role, user=user)


# ---------------------------------------------------------------------------
# POST /auth/login
# ---------------------------------------------------------------------------


@router.post("/login", response_model=SessionResponse)
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    """Authenticate and set the session cookie."""
    user = db.query(User).filter(User.email == normalize_email(body.email)).first()

    # Unified failure path – no information leaks about whether the email exists
    if not user or not verify_password(body.password, user.password_hash):
        logger.info("login_failed | client=%s", get_client_ip(request))
        raise InvalidCredentials()

    user.last_login = clock.utcnow()
    audit(db, request, "user_login", actor_id=user.id, target_user_id=user.id)
    db.commit()
    db.refresh(user)

    _start_session(response, user)
    return SessionResponse(detail="Login successful", role=user.role, user=user)


# ---------------------------------------------------------------------------
# POST /auth/logout
# ---------------------------------------------------------------------------


@router.post("/logout")
def logout(response: Response):
    """
    Overwrite the cookie with an expired one.  The token itself stays
    cryptographically valid until its own expiry.
    """
    clear_session_cookie(response)
    return {"detail": "Logged out successfully"}


# ---------------------------------------------------------------------------
# GET /auth/me
# ---------------------------------------------------------------------------


@router.get("/me", response_model=MeResponse)
def me(claims: TokenClaims = Depends(get_current_claims)):
    """Return the claims carried by the session cookie."""
    return MeResponse(
        user=ClaimsResponse(user_id=claims.user_id, email=claims.email, role=claims.role)
    )


# ---------------------------------------------------------------------------
# GET /auth/profile, PUT /auth/profile
# ---------------------------------------------------------------------------


@router.get("/profile", response_model=UserInfoResponse)
def get_profile(
    claims: TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    """Return the caller's stored profile (no secrets)."""
    return _load_self(db, claims)


@router.put("/profile", response_model=UserInfoResponse)
def update_profile(
    body: UpdateProfileRequest,
    claims: TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    """Update name, phone and address.  Email and role are admin-managed."""
    user = _load_self(db, claims)
    fields = body.model_fields_set

    if "name" in fields:
        if not body.name or not body.name.strip():
            raise ValidationError("Name cannot be empty")
        user.name = body.name.strip()
    if "phone" in fields:
        if not body.phone:
            raise ValidationError("Phone cannot be empty")
        user.phone = body.phone
    if "address" in fields:
        user.address = body.address or None

    db.commit()
    db.refresh(user)
    return user


# ---------------------------------------------------------------------------
# PUT /auth/change-password
# ---------------------------------------------------------------------------


@router.put("/change-password")
def change_password(
    body: ChangePasswordRequest,
    request: Request,
    claims: TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    """Change the authenticated user's login password."""
    user = _load_self(db, claims)
    if not verify_password(body.old_password, user.password_hash):
        raise ValidationError("Old password is incorrect")
    check_password_policy(body.new_password)

    user.password_hash = hash_password(body.new_password)
    audit(db, request, "change_password", actor_id=user.id, target_user_id=user.id)
    db.commit()

    return {"detail": "Password changed successfully"}
