"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Request pipeline for protected routers:

    Unauthenticated -> TokenPresent -> Verified(role) -> Authorized | Forbidden

require_session()  checks the token channels, decodes the JWT and stores the
                   resulting Claims on request.state.claims.
require_roles()    builds a dependency that rejects verified callers whose
                   role is not in the allow-list. Compose it after
                   require_session at router level.
current_claims()   handler-side accessor. Raises 401 if no Claims were
                   attached, so a handler mounted without the session
                   dependency still refuses to run.

Token channels: the Authorization: Bearer header is the token that gets
decoded. When Settings.require_cookie_token is on (default), the "token"
cookie set at login must also be present and carry the same JWT.

Layer rule: no imports from api/, notes/, or payments/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import hmac
import logging
from typing import Callable

from fastapi import Request

from auth.errors import AuthenticationFailure, AuthorizationFailure, MissingToken, NoteVaultError
from auth.models import Claims
from auth.tokens import COOKIE_NAME, decode_access_token
from core.config import get_settings

logger = logging.getLogger("notevault.auth")

_BEARER = "Bearer "


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    if not header.startswith(_BEARER):
        return None
    token = header[len(_BEARER) :].strip()
    return token or None


def require_session(request: Request) -> Claims:
    """Authenticate the request and attach its Claims.

    Use at router level:
        router = APIRouter(dependencies=[Depends(require_session)])

    Raises MissingToken before any decode attempt if a required channel is
    absent, then whatever decode_access_token() raises.
    """
    token = _bearer_token(request)
    if token is None:
        raise MissingToken()

    if get_settings().require_cookie_token:
        cookie = request.cookies.get(COOKIE_NAME)
        if not cookie:
            raise MissingToken("Token is not available in the cookie.")
        # Headers arrive latin-1 decoded; compare_digest rejects non-ASCII str.
        if not hmac.compare_digest(cookie.encode("utf-8"), token.encode("utf-8")):
            raise AuthenticationFailure("Token cookie does not match the Authorization header.")

    try:
        claims = decode_access_token(token)
    except NoteVaultError as exc:
        logger.info("Rejected token on %s %s: %s", request.method, request.url.path, exc.code)
        raise

    request.state.claims = claims
    return claims


def current_claims(request: Request) -> Claims:
    """Return the Claims attached by require_session, or raise 401.

    Use in handlers:
        async def route(claims: Claims = Depends(current_claims)): ...
    """
    claims = getattr(request.state, "claims", None)
    if not isinstance(claims, Claims):
        raise AuthenticationFailure("Unauthorized access.")
    return claims


def require_roles(*allowed: str) -> Callable[[Request], Claims]:
    """Build a dependency that admits only the given roles.

    The session must already be verified (place after require_session).
    """
    allowed_roles = frozenset(allowed)

    def _role_gate(request: Request) -> Claims:
        claims = current_claims(request)
        if claims.role not in allowed_roles:
            raise AuthorizationFailure(f"Only {', '.join(sorted(allowed_roles))} can access this route.")
        return claims

    return _role_gate


require_admin = require_roles("admin")
