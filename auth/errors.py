"""
auth/errors.py -- Error taxonomy for NoteVault.

Every failure a request can end with is one of these classes. Each carries
the HTTP status, a machine-readable code and a client-safe message; api/main.py
renders them into the standard ErrorResponse envelope. Raising them keeps the
auth core free of any web-framework import.

Hierarchy:
    NoteVaultError
    ├── AuthenticationFailure   401  (bad credentials, missing/expired/invalid token)
    ├── AuthorizationFailure    403  (role not permitted, OTP problems)
    ├── NotFound                404
    ├── Conflict                409
    └── InternalError           500  (hashing failure, upstream failure)

Layer rule: stdlib only. auth/, notes/, payments/ and api/ may import this.
"""

from __future__ import annotations

from typing import Optional


class NoteVaultError(Exception):
    """Base class. `message` is safe to return; `detail` only where noted."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# 401
# ---------------------------------------------------------------------------


class AuthenticationFailure(NoteVaultError):
    status_code = 401
    code = "unauthorized"
    default_message = "Authentication required."


class BadCredentials(AuthenticationFailure):
    code = "bad_credentials"
    default_message = "Invalid email or password."


class MissingToken(AuthenticationFailure):
    code = "missing_token"
    default_message = "Provide an authentication token in the request."


class ExpiredToken(AuthenticationFailure):
    code = "token_expired"
    default_message = "Token has expired."


class InvalidSignature(AuthenticationFailure):
    code = "invalid_signature"
    default_message = "Invalid token signature."


class MalformedToken(AuthenticationFailure):
    """Structural decode failure. `detail` carries the decoder's error text."""

    code = "malformed_token"
    default_message = "Invalid token."


# ---------------------------------------------------------------------------
# 403
# ---------------------------------------------------------------------------


class AuthorizationFailure(NoteVaultError):
    status_code = 403
    code = "forbidden"
    default_message = "You do not have access to this resource."


class InvalidCode(AuthorizationFailure):
    code = "invalid_otp"
    default_message = "Invalid OTP token."


class NotVerified(AuthorizationFailure):
    code = "otp_not_verified"
    default_message = "OTP not verified."


class OtpNotEnabled(AuthorizationFailure):
    code = "otp_not_enabled"
    default_message = "Two-factor authentication is not enabled."


# ---------------------------------------------------------------------------
# 404 / 409
# ---------------------------------------------------------------------------


class NotFound(NoteVaultError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found."


class Conflict(NoteVaultError):
    status_code = 409
    code = "conflict"
    default_message = "Resource already exists."


# ---------------------------------------------------------------------------
# 5xx
# ---------------------------------------------------------------------------


class InternalError(NoteVaultError):
    status_code = 500
    code = "internal_error"


class CredentialHashError(InternalError):
    code = "hash_failed"
    default_message = "Password hashing failed."


class UpstreamError(InternalError):
    """A third-party API answered with an error or could not be reached."""

    status_code = 502
    code = "upstream_error"
    default_message = "Upstream service request failed."

    def __init__(
        self,
        message: Optional[str] = None,
        detail: Optional[str] = None,
        upstream_status: Optional[int] = None,
    ) -> None:
        super().__init__(message, detail)
        self.upstream_status = upstream_status
