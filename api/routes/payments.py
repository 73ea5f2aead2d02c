"""
api/routes/payments.py -- Pass-through proxy to the MoonPay API.

Routes:
  GET /crypto/buy/lists        -- session required; the caller's transactions
  GET /transaction/buy/quote   -- public; price quote
  GET /transaction/buy/info    -- public; one transaction
  GET /transaction/swap/info   -- public; one swap transaction

MoonPay bodies are returned verbatim. Upstream failures surface as 502 with
the upstream status and body in the error detail.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from auth.dependencies import current_claims, require_session
from auth.models import Claims
from payments.moonpay import MoonPayClient

# Auth policy: /crypto requires a session; /transaction is public but rate-limited.
crypto_router = APIRouter(prefix="/crypto", dependencies=[Depends(require_session)])
transaction_router = APIRouter(prefix="/transaction")


async def _proxy(request: Request, method, *args: Any) -> JSONResponse:
    data = await request.app.state.pool.run(method, *args)
    return JSONResponse(content=data)


@crypto_router.get("/buy/lists")
async def buy_lists(
    request: Request,
    moonpay_token: str = Query(min_length=1, max_length=2048),
    claims: Claims = Depends(current_claims),
) -> JSONResponse:
    """Transactions MoonPay holds for the caller (matched on user id)."""
    moonpay: MoonPayClient = request.app.state.moonpay
    return await _proxy(request, moonpay.list_customer_transactions, moonpay_token, claims.user_id)


@limiter.limit("30/minute")
@transaction_router.get("/buy/quote")
async def buy_quote(
    request: Request,
    crypto_code: str = Query(min_length=1, max_length=20),
    fiat_code: str = Query(min_length=1, max_length=10),
    crypto_amount: int = Query(ge=0),
) -> JSONResponse:
    moonpay: MoonPayClient = request.app.state.moonpay
    return await _proxy(request, moonpay.buy_quote, crypto_code, fiat_code, crypto_amount)


@limiter.limit("30/minute")
@transaction_router.get("/buy/info")
async def buy_info(request: Request, transaction_id: str = Query(min_length=1, max_length=100)) -> JSONResponse:
    moonpay: MoonPayClient = request.app.state.moonpay
    return await _proxy(request, moonpay.transaction_info, transaction_id)


@limiter.limit("30/minute")
@transaction_router.get("/swap/info")
async def swap_info(
    request: Request,
    moonpay_token: str = Query(min_length=1, max_length=2048),
    transaction_id: str = Query(min_length=1, max_length=100),
) -> JSONResponse:
    moonpay: MoonPayClient = request.app.state.moonpay
    return await _proxy(request, moonpay.swap_transaction, moonpay_token, transaction_id)
