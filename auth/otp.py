"""
auth/otp.py -- TOTP two-factor enrollment, verification and disablement.

Per-user state machine, persisted in the users table:

    Disabled --generate--> Generated (enabled, unverified)
    Generated --verify(ok)--> Verified
    Verified --generate--> Generated        (new secret, must re-verify)
    any --disable--> Disabled               (idempotent)

Codes are 6 decimal digits, HMAC-SHA1, 30-second step (RFC 6238 defaults,
which every authenticator app understands). Settings.otp_valid_window
controls how many neighbouring steps are accepted.

Callers load the user in one pool call and transition in another. verify_code
writes conditionally on the secret it checked, so a generate that lands in
between wins and the stale code is rejected.

Layer rule: no imports from api/, notes/, or payments/.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import re
import secrets
from typing import TYPE_CHECKING

import pyotp

from auth.errors import InvalidCode, NotFound, NotVerified, OtpNotEnabled
from auth.models import OtpEnrollment, User
from core.config import get_settings

if TYPE_CHECKING:
    from auth.store import UserStore

logger = logging.getLogger("notevault.otp")

_SECRET_BYTES = 21
_DIGITS = 6
_INTERVAL = 30
_CODE_RE = re.compile(r"[0-9]{6}")


def new_base32_secret() -> str:
    """Return 21 random bytes as unpadded RFC 4648 base32."""
    raw = secrets.token_bytes(_SECRET_BYTES)
    return base64.b32encode(raw).decode("ascii").rstrip("=")


def build_totp(secret: str) -> pyotp.TOTP:
    """RFC 6238 generator for secret: SHA1, 6 digits, 30-second step."""
    return pyotp.TOTP(secret, digits=_DIGITS, digest=hashlib.sha1, interval=_INTERVAL)


def provisioning_uri(secret: str, email: str, issuer: str) -> str:
    """otpauth:// URI an authenticator app turns into an account entry."""
    return f"otpauth://totp/{issuer}:{email}?secret={secret}&issuer={issuer}"


def code_matches(secret: str, candidate: str) -> bool:
    """True if candidate is a well-formed code for the current time step."""
    if not isinstance(candidate, str) or not _CODE_RE.fullmatch(candidate):
        return False
    return build_totp(secret).verify(candidate, valid_window=get_settings().otp_valid_window)


# ---------------------------------------------------------------------------
# State transitions
# ---------------------------------------------------------------------------


def generate_secret(user: User, store: UserStore) -> OtpEnrollment:
    """Create a fresh secret for user, replacing any existing one.

    Leaves the user enabled but unverified until verify_code() succeeds.
    """
    secret = new_base32_secret()
    auth_url = provisioning_uri(secret, user.email, get_settings().otp_issuer)
    updated = store.update_otp(user.id, enabled=True, verified=False, base32=secret, auth_url=auth_url)
    if updated is None:
        raise NotFound("User not found.")
    logger.info("OTP secret generated for user_id=%s", user.id)
    return OtpEnrollment(otp_base32=secret, otp_auth_url=auth_url)


def verify_code(user: User, candidate: str, store: UserStore) -> User:
    """Confirm enrollment: a correct code marks the secret as verified.

    Raises OtpNotEnabled if no secret has been generated, InvalidCode on a
    wrong code (nothing is written in either case). The write only lands if
    the stored secret is still the one the code was checked against; if a
    newer secret replaced it meanwhile, the code is stale and InvalidCode is
    raised without touching the new enrollment.
    """
    if not user.otp_enabled or not user.otp_base32:
        raise OtpNotEnabled()
    if not code_matches(user.otp_base32, candidate):
        raise InvalidCode()
    updated = store.mark_otp_verified(user.id, user.otp_base32)
    if updated is None:
        logger.info("OTP verify for user_id=%s rejected: secret changed since the code was checked", user.id)
        raise InvalidCode()
    logger.info("OTP verified for user_id=%s", user.id)
    return updated


def validate_for_login(user: User, candidate: str) -> bool:
    """Second-factor check against an already verified secret. Read-only.

    Raises NotVerified if enrollment was never confirmed, whatever the code.
    """
    if not user.otp_verified or not user.otp_base32:
        raise NotVerified()
    if not code_matches(user.otp_base32, candidate):
        raise InvalidCode()
    return True


def disable(user: User, store: UserStore) -> User:
    """Turn two-factor off and forget the secret. Safe to call repeatedly."""
    updated = store.update_otp(user.id, enabled=False, verified=False, base32=None, auth_url=None)
    if updated is None:
        raise NotFound("User not found.")
    logger.info("OTP disabled for user_id=%s", user.id)
    return updated
