"""
auth/tokens.py -- JWT issuance/verification, password hashing, cookie helpers.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       email, user_id, role, iat and exp. Verification raises one of three
       AuthenticationFailure subclasses so the caller can tell an expired
       session from a forged or garbled token.

  Passwords: bcrypt directly, cost factor from Settings.bcrypt_rounds. A hashing
       failure (bad cost factor, input bcrypt refuses) raises
       CredentialHashError -- the caller's operation fails with a 500 and
       nothing is written. Verification treats a mismatch and a malformed
       stored hash the same way (not authenticated) but logs the latter.

  Timing: authenticate_user() always runs bcrypt, against a dummy hash when
       the email is unknown, so response time does not reveal which emails
       are registered.

  SECRET_KEY: sourced from core.config.get_settings(); validated at startup.

Layer rule: no imports from api/, notes/, or payments/. Import from core/
is allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import TYPE_CHECKING

import bcrypt
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

from auth.errors import CredentialHashError, ExpiredToken, InvalidSignature, MalformedToken
from auth.models import Claims
from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("notevault.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ("email", "user_id", "role", "iat", "exp")

COOKIE_NAME = "token"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Raises CredentialHashError if bcrypt refuses the cost factor or the input.
    The API layer caps passwords at 72 characters, bcrypt's input limit.
    """
    try:
        salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
        return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")
    except (ValueError, TypeError) as exc:
        logger.error("Password hashing failed: %s", exc)
        raise CredentialHashError() from exc


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed stored hash is logged and reported as a mismatch.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError) as exc:
        logger.warning("Password verification error (malformed hash?): %s", exc)
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    # Computed on first use so a bad cost factor surfaces as a request-level
    # CredentialHashError instead of an import-time crash.
    return hash_password("notevault_timing_dummy")


# ---------------------------------------------------------------------------
# User authentication (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Authenticate an email/password login with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown email: bcrypt runs against the dummy hash (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure.
    """
    user = store.get_by_email(email)
    if user is None or not user.hashed_password:
        verify_password(password, _dummy_hash())
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(
    email: str,
    user_id: int,
    role: str,
    expire_seconds: int = 0,
    now: datetime | None = None,
) -> str:
    """Encode a signed JWT carrying the user's identity.

    Args:
        email:          Account email, used by handlers to look the user up.
        user_id:        Numeric user ID stored in the DB.
        role:           "admin" or "user".
        expire_seconds: Token lifetime. If 0 (default), uses
                        Settings.token_expire_seconds.
        now:            Issue time; defaults to the current UTC time.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    issued = now or datetime.now(timezone.utc)
    expire = issued + timedelta(seconds=duration)
    payload = {
        "email": email,
        "user_id": user_id,
        "role": role,
        "iat": int(issued.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> Claims:
    """Verify a JWT and return its Claims.

    Raises:
        MalformedToken:   the token cannot be parsed, or a required claim is
                          missing or mistyped. detail holds the decoder text.
        InvalidSignature: the token parses but was not signed with our key.
        ExpiredToken:     signature is valid but exp is in the past.
    """
    # Parse without verification first so a garbled token is reported as
    # malformed instead of being lumped in with signature failures.
    try:
        jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise MalformedToken(detail=str(exc)) from exc

    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise ExpiredToken() from exc
    except JWTClaimsError as exc:
        raise MalformedToken(detail=str(exc)) from exc
    except JWTError as exc:
        raise InvalidSignature() from exc

    missing = [name for name in _REQUIRED_CLAIMS if name not in payload]
    if missing:
        raise MalformedToken(detail=f"Missing claims: {', '.join(missing)}")
    try:
        return Claims(
            email=str(payload["email"]),
            user_id=int(payload["user_id"]),
            role=str(payload["role"]),
            issued_at=int(payload["iat"]),
            expires_at=int(payload["exp"]),
        )
    except (TypeError, ValueError) as exc:
        raise MalformedToken(detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str, expire_seconds: int = 0) -> None:
    """Write the JWT as an httpOnly "token" cookie on the response.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="lax": not sent on cross-site POST -- CSRF mitigation.
    secure: only sent over HTTPS when SECURE_COOKIES=true.
    max_age: Settings.cookie_expire_seconds unless overridden. This is
        configured separately from the token TTL.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.cookie_expire_seconds
    response.set_cookie(
        COOKIE_NAME,
        value=token,
        path="/",
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=duration,
    )


def clear_auth_cookie(response) -> None:
    """Expire the "token" cookie immediately."""
    response.delete_cookie(
        COOKIE_NAME,
        path="/",
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
    )
