"""
API request and response models for NoteVault REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
notes/models.py, which own the internal domain representation. Route handlers
map between the two.

User responses never carry the password hash or the TOTP secret.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import User
from notes.models import Note

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# bcrypt only reads the first 72 bytes of input; reject anything longer up front.
_PASSWORD_MAX = 72


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /user/register."""

    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(min_length=1, max_length=30)
    email: str = Field(max_length=100, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1, max_length=_PASSWORD_MAX)


class LoginRequest(BaseModel):
    """Request body for POST /user/login."""

    email: str = Field(max_length=100)
    password: str = Field(max_length=_PASSWORD_MAX)


class UpdatePasswordRequest(BaseModel):
    """Request body for POST /auth/update-password."""

    old_password: str = Field(max_length=_PASSWORD_MAX)
    new_password: str = Field(min_length=1, max_length=_PASSWORD_MAX)


class UserResponse(BaseModel):
    """Public view of an account."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    role: str
    otp_enabled: bool
    otp_verified: bool

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role,
            otp_enabled=user.otp_enabled,
            otp_verified=user.otp_verified,
        )


class UserEnvelope(BaseModel):
    """Response for GET /auth/user."""

    model_config = ConfigDict(frozen=True)

    user: UserResponse


class LoginUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: str
    username: str


class LoginResponse(BaseModel):
    """Response for POST /user/login. The same token is also set as a cookie."""

    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"
    expires_in: int
    user: LoginUser


# ---------------------------------------------------------------------------
# Two-factor authentication
# ---------------------------------------------------------------------------


class OtpTokenRequest(BaseModel):
    """Request body for POST /auth/otp/verify and /auth/otp/validate."""

    model_config = ConfigDict(str_strip_whitespace=True)

    otp_token: str = Field(max_length=16)


class OtpGenerateResponse(BaseModel):
    """Shown once: the client renders otp_auth_url as a QR code."""

    model_config = ConfigDict(frozen=True)

    status: str = "success"
    otp_base32: str
    otp_auth_url: str


class OtpVerifyResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    otp_verified: bool
    user: UserResponse


class OtpStatusResponse(BaseModel):
    """Response for /auth/otp/validate and /auth/otp/disable."""

    model_config = ConfigDict(frozen=True)

    status: str = "success"
    user: UserResponse


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


class NoteCreate(BaseModel):
    """Request body for POST /secure/api/user/note."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=255)
    content: str = Field(max_length=100_000)
    image_url: Optional[str] = Field(default=None, max_length=255)


class NotePatch(BaseModel):
    """Request body for PATCH /secure/api/user/note/update/{note_id}. Omitted fields are unchanged."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = Field(default=None, max_length=100_000)
    image_url: Optional[str] = Field(default=None, max_length=255)
    active: Optional[bool] = None


class NoteResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    content: str
    image_url: Optional[str]
    active: bool
    created_by: int
    created_on: str
    updated_on: str

    @classmethod
    def from_note(cls, note: Note) -> "NoteResponse":
        return cls(
            id=note.id,
            title=note.title,
            content=note.content,
            image_url=note.image_url,
            active=note.active,
            created_by=note.created_by,
            created_on=note.created_on,
            updated_on=note.updated_on,
        )
