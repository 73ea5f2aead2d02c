"""
tests/test_payments_routes.py -- Integration tests for the MoonPay proxy routes.

The app's MoonPay client is the MagicMock installed by the test lifespan, so
these tests check routing, auth and error mapping, not MoonPay itself.

Covers:
  - /crypto/buy/lists requires a session and passes the caller's user id
  - /transaction/* routes are public and return the upstream body verbatim
  - UpstreamError -> 502 with the upstream status in the error detail
  - missing query parameters -> 422
"""

from __future__ import annotations

import pytest

from auth.errors import UpstreamError


@pytest.fixture(autouse=True)
def moonpay(api_client):
    api_client.moonpay.reset_mock(return_value=True, side_effect=True)
    api_client.client.cookies.clear()
    return api_client.moonpay


def test_buy_lists(api_client, moonpay):
    moonpay.list_customer_transactions.return_value = [{"id": "tx1"}]

    resp = api_client.client.get(
        "/crypto/buy/lists",
        params={"moonpay_token": "mp-abc"},
        headers=api_client.user.headers,
    )
    assert resp.status_code == 200
    assert resp.json() == [{"id": "tx1"}]
    moonpay.list_customer_transactions.assert_called_once_with("mp-abc", api_client.user.id)


def test_buy_lists_requires_session(api_client, moonpay):
    resp = api_client.client.get("/crypto/buy/lists", params={"moonpay_token": "mp-abc"})
    assert resp.status_code == 401
    moonpay.list_customer_transactions.assert_not_called()


def test_buy_quote_is_public(api_client, moonpay):
    moonpay.buy_quote.return_value = {"totalAmount": 101.5}

    resp = api_client.client.get(
        "/transaction/buy/quote",
        params={"crypto_code": "eth", "fiat_code": "usd", "crypto_amount": 2},
    )
    assert resp.status_code == 200
    assert resp.json() == {"totalAmount": 101.5}
    moonpay.buy_quote.assert_called_once_with("eth", "usd", 2)


def test_swap_info(api_client, moonpay):
    moonpay.swap_transaction.return_value = {"id": "sw1", "status": "completed"}

    resp = api_client.client.get(
        "/transaction/swap/info",
        params={"moonpay_token": "mp-abc", "transaction_id": "sw1"},
    )
    assert resp.status_code == 200
    moonpay.swap_transaction.assert_called_once_with("mp-abc", "sw1")


def test_upstream_failure_is_502(api_client, moonpay):
    moonpay.transaction_info.side_effect = UpstreamError(
        "Failed to fetch buy info.", detail='{"message":"Transaction not found"}', upstream_status=404
    )

    resp = api_client.client.get("/transaction/buy/info", params={"transaction_id": "nope"})
    assert resp.status_code == 502
    error = resp.json()["error"]
    assert error["code"] == "upstream_error"
    assert "upstream_status=404" in error["detail"]
    assert "Transaction not found" in error["detail"]


def test_missing_params(api_client):
    assert api_client.client.get("/transaction/buy/quote", params={"crypto_code": "eth"}).status_code == 422
