"""
api/routes/account.py -- Authenticated self-service endpoints.

Routes (all require a verified session):
  GET    /auth/otp/generate     -- create a TOTP secret (enabled, unverified)
  POST   /auth/otp/verify       -- confirm the secret with a current code
  POST   /auth/otp/validate     -- second-factor check against a verified secret
  GET    /auth/otp/disable      -- turn 2FA off and forget the secret
  GET    /auth/user             -- own profile
  DELETE /auth/delete           -- delete own account (notes cascade), clear cookie
  POST   /auth/update-password  -- change password given the current one

Every handler re-reads the user row: Claims only prove who the caller was
when the token was issued, not that the account still exists.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import (
    MessageResponse,
    OtpGenerateResponse,
    OtpStatusResponse,
    OtpTokenRequest,
    OtpVerifyResponse,
    UpdatePasswordRequest,
    UserEnvelope,
    UserResponse,
)
from auth import otp
from auth.dependencies import current_claims, require_session
from auth.errors import BadCredentials, NotFound
from auth.models import Claims, User
from auth.store import UserStore
from auth.tokens import clear_auth_cookie, hash_password, verify_password
from core.worker_pool import WorkerPool

logger = logging.getLogger("notevault.api")

# Auth policy: every route requires a verified session (router-level dependency).
router = APIRouter(prefix="/auth", dependencies=[Depends(require_session)])


async def _session_user(request: Request, claims: Claims) -> User:
    pool: WorkerPool = request.app.state.pool
    user_store: UserStore = request.app.state.user_store
    user = await pool.run(user_store.get_by_id, claims.user_id)
    if user is None:
        raise NotFound("User not found.")
    return user


# ---------------------------------------------------------------------------
# Two-factor authentication
# ---------------------------------------------------------------------------


@router.get("/otp/generate", response_model=OtpGenerateResponse)
async def generate_otp(request: Request, claims: Claims = Depends(current_claims)) -> OtpGenerateResponse:
    """Generate a new TOTP secret, replacing any previous one.

    The secret and provisioning URL are returned once so the client can
    render a QR code; verification is required before 2FA is active.
    """
    user = await _session_user(request, claims)
    enrollment = await request.app.state.pool.run(otp.generate_secret, user, request.app.state.user_store)
    return OtpGenerateResponse(otp_base32=enrollment.otp_base32, otp_auth_url=enrollment.otp_auth_url)


@router.post("/otp/verify", response_model=OtpVerifyResponse)
async def verify_otp(
    request: Request,
    body: OtpTokenRequest,
    claims: Claims = Depends(current_claims),
) -> OtpVerifyResponse:
    """Mark the current secret as verified if the code matches (403 otherwise)."""
    user = await _session_user(request, claims)
    updated = await request.app.state.pool.run(otp.verify_code, user, body.otp_token, request.app.state.user_store)
    return OtpVerifyResponse(otp_verified=updated.otp_verified, user=UserResponse.from_user(updated))


@router.post("/otp/validate", response_model=OtpStatusResponse)
async def validate_otp(
    request: Request,
    body: OtpTokenRequest,
    claims: Claims = Depends(current_claims),
) -> OtpStatusResponse:
    """Check a code against a verified secret. 403 if not verified or wrong code."""
    user = await _session_user(request, claims)
    otp.validate_for_login(user, body.otp_token)
    return OtpStatusResponse(user=UserResponse.from_user(user))


@router.get("/otp/disable", response_model=OtpStatusResponse)
async def disable_otp(request: Request, claims: Claims = Depends(current_claims)) -> OtpStatusResponse:
    """Disable 2FA. Calling it on an account without 2FA is a no-op success."""
    user = await _session_user(request, claims)
    updated = await request.app.state.pool.run(otp.disable, user, request.app.state.user_store)
    return OtpStatusResponse(user=UserResponse.from_user(updated))


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@router.get("/user", response_model=UserEnvelope)
async def get_profile(request: Request, claims: Claims = Depends(current_claims)) -> UserEnvelope:
    user = await _session_user(request, claims)
    return UserEnvelope(user=UserResponse.from_user(user))


@router.delete("/delete", response_model=MessageResponse)
async def delete_account(request: Request, claims: Claims = Depends(current_claims)) -> JSONResponse:
    """Delete the caller's account and every note they own; clear the cookie."""
    pool: WorkerPool = request.app.state.pool
    user_store: UserStore = request.app.state.user_store

    deleted = await pool.run(user_store.delete_user, claims.user_id)
    if not deleted:
        raise NotFound("User not found.")

    logger.info("Deleted user_id=%s", claims.user_id)
    resp = JSONResponse(content=MessageResponse(message="User deleted.").model_dump())
    clear_auth_cookie(resp)
    return resp


@router.post("/update-password", response_model=MessageResponse)
async def update_password(
    request: Request,
    body: UpdatePasswordRequest,
    claims: Claims = Depends(current_claims),
) -> MessageResponse:
    """Replace the password after checking the current one (401 on mismatch)."""
    pool: WorkerPool = request.app.state.pool
    user_store: UserStore = request.app.state.user_store

    user = await _session_user(request, claims)
    if not user.hashed_password or not await pool.run(verify_password, body.old_password, user.hashed_password):
        raise BadCredentials("Old password is incorrect.")

    hashed = await pool.run(hash_password, body.new_password)
    if not await pool.run(user_store.update_password, user.id, hashed):
        raise NotFound("User not found.")
    return MessageResponse(message="Password updated.")
