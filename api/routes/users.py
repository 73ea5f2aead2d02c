"""
api/routes/users.py -- Public account endpoints.

Routes:
  POST /user/register   -- create account; the very first account becomes admin
  POST /user/login      -- email/password login; returns JWT and sets "token" cookie
  GET  /user/logout     -- clears the cookie

Security:
  POST /login is rate-limited per IP (Settings.login_rate_limit).
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_email() + verify_password().
  Cache-Control: no-store on login responses.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from jose import JWTError
from sqlalchemy.exc import IntegrityError

from api.limiter import limiter
from api.models import LoginRequest, LoginResponse, LoginUser, MessageResponse, RegisterRequest, UserResponse
from auth.errors import BadCredentials, Conflict, InternalError
from auth.store import UserStore
from auth.tokens import authenticate_user, clear_auth_cookie, create_access_token, hash_password, set_auth_cookie
from core.config import get_settings
from core.worker_pool import WorkerPool

logger = logging.getLogger("notevault.api")

_settings = get_settings()

# Auth policy: every route here is public.
router = APIRouter(prefix="/user")


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(request: Request, body: RegisterRequest) -> UserResponse:
    """Create an account. Returns 409 if the email is already registered.

    The password is hashed before anything is written; a hashing failure
    aborts with 500 and no row is created.
    """
    pool: WorkerPool = request.app.state.pool
    user_store: UserStore = request.app.state.user_store

    hashed = await pool.run(hash_password, body.password)
    try:
        user = await pool.run(user_store.register_user, body.username, body.email, hashed)
    except IntegrityError as exc:
        raise Conflict("A user with that email already exists.") from exc

    logger.info("Registered user_id=%s role=%s", user.id, user.role)
    return UserResponse.from_user(user)


@limiter.limit(_settings.login_rate_limit)  # brute-force mitigation -- must be ABOVE @router
@router.post("/login", response_model=LoginResponse)
async def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return the JWT and set it as a cookie.

    Returns the same error for unknown email and wrong password so the
    response does not leak which emails are registered.
    """
    pool: WorkerPool = request.app.state.pool
    user_store: UserStore = request.app.state.user_store

    user = await pool.run(authenticate_user, user_store, body.email, body.password)
    if user is None:
        raise BadCredentials()

    try:
        token = create_access_token(user.email, user.id, user.role)
    except JWTError as exc:
        logger.error("Token signing failed for user_id=%s: %s", user.id, exc)
        raise InternalError("Failed to generate token.") from exc

    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            token=token,
            expires_in=_settings.token_expire_seconds,
            user=LoginUser(email=user.email, username=user.username),
        ).model_dump(),
    )
    set_auth_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/logout", response_model=MessageResponse)
async def logout() -> JSONResponse:
    """Clear the session cookie. Needs no prior authentication."""
    resp = JSONResponse(content=MessageResponse(message="User logged out.").model_dump())
    clear_auth_cookie(resp)
    return resp
