"""
api/main.py -- FastAPI application entry point for NoteVault.

Run with:      python main.py serve
               uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan handles startup (engine, worker pool, stores, MoonPay client) and
shutdown (drain pool, close client, dispose engine) symmetrically.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.account import router as account_router
from api.routes.admin import router as admin_router
from api.routes.notes import router as notes_router
from api.routes.payments import crypto_router, transaction_router
from api.routes.users import router as users_router
from auth.errors import NoteVaultError, UpstreamError
from auth.store import UserStore
from core.config import get_settings
from core.database import create_db_engine
from core.worker_pool import WorkerPool
from notes.store import NoteStore
from payments.moonpay import MoonPayClient

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("notevault.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Own every process-wide resource for the server lifetime.

    Startup order: engine (creates tables) -> pool -> stores -> MoonPay.
    Shutdown runs in reverse so no in-flight pool job sees a disposed engine.
    """
    settings = get_settings()
    logger.info("NoteVault API starting up")

    engine = create_db_engine(settings.database_url)
    app.state.engine = engine
    app.state.pool = WorkerPool(size=settings.worker_pool_size)
    app.state.user_store = UserStore(engine)
    app.state.note_store = NoteStore(engine)
    app.state.moonpay = MoonPayClient(
        api_key=settings.moonpay_api_key,
        base_url=settings.moonpay_base_url,
        timeout=settings.moonpay_timeout_seconds,
    )
    logger.info(
        "Storage initialized (users=%d)",
        await app.state.pool.run(app.state.user_store.count_users),
    )

    yield

    app.state.pool.shutdown()
    app.state.moonpay.close()
    engine.dispose()
    logger.info("NoteVault API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="NoteVault API",
    description="Notes with JWT sessions, TOTP two-factor authentication and role-based access.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order you want the request to encounter them:
# TrustedHost -> CORS -> SlowAPI.
# ---------------------------------------------------------------------------

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(users_router, tags=["Users"])
app.include_router(account_router, tags=["Account"])
app.include_router(admin_router, tags=["Admin"])
app.include_router(notes_router, tags=["Notes"])
app.include_router(crypto_router, tags=["Payments"])
app.include_router(transaction_router, tags=["Payments"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(NoteVaultError)
async def notevault_error_handler(request: Request, exc: NoteVaultError) -> JSONResponse:
    """Render a domain error with its own status, code and message."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.detail or exc.message)
    detail = exc.detail
    if isinstance(exc, UpstreamError) and exc.upstream_status is not None:
        detail = f"upstream_status={exc.upstream_status} body={exc.detail or ''}"
    return _error(exc.status_code, exc.code, exc.message, detail)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a Retry-After header when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error(429, "rate_limited", "Too many requests.", str(exc))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation."""
    return _error(422, "validation_error", "Request validation failed.", str(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown paths, wrong methods and any framework-raised HTTP errors."""
    return _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# No rate limit -- health checks from load balancers must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=__version__)
