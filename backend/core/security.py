# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Central security module.  All cryptographic primitives and auth guards live
here.  No other module should touch raw crypto directly.

Responsibilities
----------------
1. Password hashing / verification / policy  (passlib pbkdf2_sha256)
2. Session tokens: creation / decoding        (PyJWT / HS256)
3. Session cookie helpers                     (HTTP-only ``token`` cookie)
4. FastAPI dependency guards                  (get_current_claims, require_roles)
5. Invitation token generation                (secrets)

Session verification is stateless: the claims inside a valid token are
trusted without a database round-trip.  A role change or account deletion
therefore takes effect when the user's token expires (at most
``access_token_expire_minutes``), and logout only removes the cookie.
"""

import re
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import jwt as _jwt        # PyJWT
from passlib.hash import pbkdf2_sha256 as _pbkdf2  # pure Python, no binary deps
from fastapi import Depends, Request, Response
from fastapi.security import APIKeyCookie

from core import clock
from core.config import Settings, settings
from core.errors import Forbidden, InvalidToken, Unauthorized, ValidationError
from models.user import ROLES

SESSION_COOKIE = "token"
_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# 1.  pbkdf2_sha256 – password hashing
# ---------------------------------------------------------------------------
# passlib's pbkdf2_sha256 is pure Python and embeds the salt in the hash
# string.  600 000 rounds matches the passlib 2024 default.


def hash_password(plain: str) -> str:
    """Hash a plaintext password.  Returns the full passlib hash string."""
    return _pbkdf2.using(rounds=600_000).hash(plain)


def verify_password(plain: str, stored_hash: str) -> bool:
    """
    Constant-time verification of a plaintext password against a
    pbkdf2_sha256 hash produced by :func:`hash_password`.
    """
    try:
        return _pbkdf2.verify(plain, stored_hash)
    except ValueError:
        # Not a pbkdf2 hash at all (e.g. imported legacy row)
        return False


def password_policy_error(pw: str) -> Optional[str]:
    """
    Return an error string if the password does not meet the minimum policy,
    or None if it is acceptable.

    Policy: >= 8 chars, at least one uppercase letter, at least one digit.
    """
    if len(pw) < 8:
        return "Password must be at least 8 characters"
    if not re.search(r"[A-Z]", pw):
        return "Password must contain at least one uppercase letter"
    if not re.search(r"[0-9]", pw):
        return "Password must contain at least one number"
    return None


def check_password_policy(pw: str) -> None:
    err = password_policy_error(pw)
    if err:
        raise ValidationError(err)


# ---------------------------------------------------------------------------
# 2.  JWT – session tokens
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TokenClaims:
    """Identity asserted by a verified session token."""

    user_id: int
    email: str
    role: str


def create_access_token(
    user_id: int,
    email: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
    config: Settings = settings,
) -> str:
    """
    Sign a session token with HS256.

    ``iat`` and ``exp`` come from :func:`core.clock.utcnow`; the default
    lifetime is ``config.access_token_expire_minutes``.
    """
    issued_at = clock.utcnow()
    expire = issued_at + (
        expires_delta or timedelta(minutes=config.access_token_expire_minutes)
    )
    payload = {
        "sub": str(user_id),
        "user_id": user_id,
        "email": email,
        "role": role,
        "iat": issued_at,
        "exp": expire,
    }
    return _jwt.encode(payload, config.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str, config: Settings = settings) -> TokenClaims:
    """
    Decode and verify a session token.  Raises :class:`InvalidToken` on any
    failure (expired, bad signature, malformed, missing claims).
    """
    try:
        payload = _jwt.decode(
            token,
            config.secret_key,
            algorithms=[_ALGORITHM],
            options={"require": ["exp", "user_id", "email", "role"]},
        )
    except _jwt.PyJWTError:
        raise InvalidToken()

    if payload["role"] not in ROLES or not isinstance(payload["user_id"], int):
        raise InvalidToken()
    return TokenClaims(user_id=payload["user_id"], email=payload["email"], role=payload["role"])


# ---------------------------------------------------------------------------
# 3.  Session cookie
# ---------------------------------------------------------------------------


def set_session_cookie(response: Response, token: str, config: Settings = settings) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        max_age=config.cookie_max_age,
        path="/",
        httponly=True,
        secure=config.is_production,
        samesite="lax",
    )


def clear_session_cookie(response: Response, config: Settings = settings) -> None:
    """Overwrite the cookie with an empty, immediately-expired value."""
    response.set_cookie(
        key=SESSION_COOKIE,
        value="",
        max_age=0,
        path="/",
        httponly=True,
        secure=config.is_production,
        samesite="lax",
    )


# ---------------------------------------------------------------------------
# 4.  FastAPI dependency guards
# ---------------------------------------------------------------------------

# auto_error=False: a missing cookie must surface as our own 401 body.
cookie_scheme = APIKeyCookie(name=SESSION_COOKIE, auto_error=False)


def get_current_claims(token: Optional[str] = Depends(cookie_scheme)) -> TokenClaims:
    """
    Dependency: read the session cookie and verify it.

    Raises 401 ``Unauthorized`` when the cookie is absent and 401
    ``InvalidToken`` when it does not verify.
    """
    if not token:
        raise Unauthorized()
    return decode_access_token(token)


def require_roles(*roles: str):
    """
    Build a dependency that admits only sessions whose role is in *roles*.
    Raises 403 for any other authenticated role.
    """
    allowed = frozenset(roles)
    label = " or ".join(sorted(allowed)).capitalize()

    def _guard(claims: TokenClaims = Depends(get_current_claims)) -> TokenClaims:
        if claims.role not in allowed:
            raise Forbidden(f"Forbidden - {label} access required")
        return claims

    return _guard


require_admin = require_roles("admin")
require_worker = require_roles("worker")


def ensure_owner_or_admin(claims: TokenClaims, owner_id: int) -> None:
    """Owner-scoped records: the owning user or any admin may proceed."""
    if claims.role != "admin" and claims.user_id != owner_id:
        raise Forbidden("Forbidden - You can only access your own records")


# -- IP Address extraction ----------------------------------------------------


def get_client_ip(request: Request) -> str:
    """
    Extract the client IP address from the request.
    Checks X-Forwarded-For header first (for proxies), then falls back to client host.
    Returns the IP address as a string (supports both IPv4 and IPv6).
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # X-Forwarded-For can contain multiple IPs, take the first (original client)
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"


# ---------------------------------------------------------------------------
# 5.  Invitation tokens
# ---------------------------------------------------------------------------


def generate_invitation_token() -> str:
    """32 random bytes, hex-encoded (64 chars)."""
    return secrets.token_hex(32)
