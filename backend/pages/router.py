# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Server-rendered entry pages and the browser-navigation guard.

API routes answer a missing or bad session with a JSON 401/403.  Browser
navigations to the dashboards get redirects instead:

* no cookie / invalid token   → ``/login?redirect=<requested path>``
* wrong role for the area     → ``/``

The guard runs as middleware so it sees the raw path before routing, and
stores the verified claims on ``request.state.claims`` for the page handler.
"""

from html import escape
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from core.errors import InvalidToken, NotFound
from core.security import SESSION_COOKIE, TokenClaims, decode_access_token
from models.user import ROLES

router = APIRouter(tags=["pages"], include_in_schema=False)

_PROTECTED_PREFIXES = ("/dashboard", "/profile")

# Area prefix → role that may enter it; other dashboards admit any session.
_AREA_ROLES = {
    "/dashboard/admin": "admin",
    "/dashboard/worker": "worker",
}


def _login_redirect(path: str) -> RedirectResponse:
    return RedirectResponse(url=f"/login?{urlencode({'redirect': path})}")


def _required_role(path: str) -> Optional[str]:
    for prefix, role in _AREA_ROLES.items():
        if path == prefix or path.startswith(prefix + "/"):
            return role
    return None


class PageGuardMiddleware(BaseHTTPMiddleware):
    """Redirect unauthenticated or mis-roled navigations to protected pages."""

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if not path.startswith(_PROTECTED_PREFIXES):
            return await call_next(request)

        token = request.cookies.get(SESSION_COOKIE)
        if not token:
            return _login_redirect(path)
        try:
            claims = decode_access_token(token)
        except InvalidToken:
            return _login_redirect(path)

        required = _required_role(path)
        if required and claims.role != required:
            return RedirectResponse(url="/")

        request.state.claims = claims
        return await call_next(request)


def _page(title: str, body: str) -> HTMLResponse:
    return HTMLResponse(
        "<!doctype html><html><head><meta charset=\"utf-8\">"
        f"<title>{escape(title)}</title></head><body>{body}</body></html>"
    )


def _who(claims: TokenClaims) -> str:
    return f"<p>Signed in as {escape(claims.email)} ({escape(claims.role)})</p>"


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------


@router.get("/login", response_class=HTMLResponse)
def login_page(redirect: str = "/"):
    # Only same-site paths are honoured after login
    target = redirect if redirect.startswith("/") and not redirect.startswith("//") else "/"
    return _page(
        "Login",
        "<h1>Login</h1>"
        f"<form data-api=\"/auth/login\" data-redirect=\"{escape(target)}\"></form>",
    )


@router.get("/dashboard/{area}", response_class=HTMLResponse)
def dashboard_page(area: str, request: Request):
    if area not in ROLES:
        raise NotFound("Page not found")
    claims: TokenClaims = request.state.claims
    return _page(f"{area.capitalize()} dashboard", f"<h1>{escape(area.capitalize())} dashboard</h1>" + _who(claims))


@router.get("/profile", response_class=HTMLResponse)
def profile_page(request: Request):
    claims: TokenClaims = request.state.claims
    return _page("Profile", "<h1>Profile</h1>" + _who(claims))
