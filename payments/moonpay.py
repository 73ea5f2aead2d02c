"""
payments/moonpay.py -- Pass-through client for the MoonPay REST API.

NoteVault does not interpret MoonPay payloads: every method returns the
decoded JSON body unchanged. Failures are normalized into UpstreamError so
route handlers need only one except clause:
  - transport error (DNS, timeout, refused)  -> UpstreamError, detail = error text
  - non-2xx response                          -> UpstreamError, upstream_status + body
  - 2xx with a non-JSON body                  -> UpstreamError

Two credentials are involved:
  moonpay_token  per-customer bearer token supplied by the caller
  api_key        publishable key from Settings.moonpay_api_key
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote

import requests

from auth.errors import UpstreamError

logger = logging.getLogger("notevault.payments")


class MoonPayClient:
    """Blocking MoonPay client. Call through the worker pool from async code."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.moonpay.com",
        timeout: int = 10,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        # Known public API -- a short redirect chain is plenty.
        self._session.max_redirects = 3

    def _get(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
        bearer: Optional[str] = None,
        what: str = "request",
    ) -> Any:
        headers = {"Authorization": f"Bearer {bearer}"} if bearer else {}
        url = f"{self.base_url}{path}"
        try:
            resp = self._session.get(url, params=params, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("MoonPay %s failed: %s", what, exc)
            raise UpstreamError("Request error.", detail=str(exc)) from exc

        if not resp.ok:
            logger.warning("MoonPay %s returned HTTP %d", what, resp.status_code)
            raise UpstreamError(
                f"Failed to fetch {what}.",
                detail=resp.text,
                upstream_status=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamError("Failed to parse response.", detail=str(exc)) from exc

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def list_customer_transactions(self, moonpay_token: str, customer_id: int) -> Any:
        """Transactions MoonPay holds for our user (externalCustomerId = user id)."""
        return self._get(
            "/v1/transactions",
            params={"externalCustomerId": customer_id},
            bearer=moonpay_token,
            what="transactions",
        )

    def buy_quote(self, crypto_code: str, fiat_code: str, crypto_amount: int) -> Any:
        return self._get(
            f"/v3/currencies/{quote(crypto_code, safe='')}/buy_quote",
            params={
                "quoteCurrencyAmount": crypto_amount,
                "baseCurrencyCode": fiat_code,
                "apiKey": self.api_key,
            },
            what="buy quote",
        )

    def transaction_info(self, transaction_id: str) -> Any:
        return self._get(
            f"/v1/transactions/{quote(transaction_id, safe='')}",
            params={"apiKey": self.api_key},
            what="buy info",
        )

    def swap_transaction(self, moonpay_token: str, transaction_id: str) -> Any:
        return self._get(
            f"/v4/swap/transaction/{quote(transaction_id, safe='')}",
            params={"apiKey": self.api_key},
            bearer=moonpay_token,
            what="swap info",
        )

    def close(self) -> None:
        self._session.close()
