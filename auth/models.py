"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work; these classes own the shape.

Layer rule: no imports from api/, notes/, or payments/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account.

    role is assigned once at registration: the first account ever created is
    "admin", every later one is "user".

    OTP fields follow the two-factor state machine in auth/otp.py.
    otp_verified is only ever True while otp_enabled is True and otp_base32
    holds a secret.
    """

    username: str
    email: str
    role: str  # "admin" or "user"
    id: int | None = None
    hashed_password: str | None = None
    otp_enabled: bool = False
    otp_verified: bool = False
    otp_base32: str | None = None
    otp_auth_url: str | None = None


@dataclass(frozen=True)
class Claims:
    """Verified session token payload.

    Built by auth.tokens.decode_access_token() and attached to
    request.state.claims by the access dependency. Never persisted.
    """

    email: str
    user_id: int
    role: str
    issued_at: int  # epoch seconds
    expires_at: int  # epoch seconds


@dataclass(frozen=True)
class OtpEnrollment:
    """Result of generating a new TOTP secret: shown to the user once as a QR code."""

    otp_base32: str
    otp_auth_url: str
