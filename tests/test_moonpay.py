"""Unit tests for payments/moonpay.py -- URL building and error normalization.

The requests.Session is a MagicMock; nothing leaves the process.
"""

from unittest.mock import MagicMock

import pytest
import requests

from auth.errors import UpstreamError
from payments.moonpay import MoonPayClient


def _response(status=200, payload=None, text=""):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    resp.text = text
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload
    return resp


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(session):
    return MoonPayClient(api_key="pk_test", base_url="https://moonpay.test/", timeout=5, session=session)


def test_buy_quote(client, session):
    session.get.return_value = _response(payload={"quoteCurrencyPrice": 1.5})

    assert client.buy_quote("eth", "usd", 2) == {"quoteCurrencyPrice": 1.5}
    session.get.assert_called_once_with(
        "https://moonpay.test/v3/currencies/eth/buy_quote",
        params={"quoteCurrencyAmount": 2, "baseCurrencyCode": "usd", "apiKey": "pk_test"},
        headers={},
        timeout=5,
    )


def test_customer_transactions_sends_bearer(client, session):
    session.get.return_value = _response(payload=[])

    client.list_customer_transactions("mp-token", 12)
    _, kwargs = session.get.call_args
    assert session.get.call_args.args[0] == "https://moonpay.test/v1/transactions"
    assert kwargs["params"] == {"externalCustomerId": 12}
    assert kwargs["headers"] == {"Authorization": "Bearer mp-token"}


def test_path_segments_are_quoted(client, session):
    session.get.return_value = _response(payload={})

    client.transaction_info("../admin?x=1")
    assert session.get.call_args.args[0] == "https://moonpay.test/v1/transactions/..%2Fadmin%3Fx%3D1"

    client.swap_transaction("tok", "abc/def")
    assert session.get.call_args.args[0] == "https://moonpay.test/v4/swap/transaction/abc%2Fdef"


def test_upstream_error_status(client, session):
    session.get.return_value = _response(status=404, text='{"message":"not found"}')

    with pytest.raises(UpstreamError) as exc_info:
        client.transaction_info("tx1")
    assert exc_info.value.status_code == 502
    assert exc_info.value.upstream_status == 404
    assert "not found" in exc_info.value.detail


def test_transport_failure(client, session):
    session.get.side_effect = requests.ConnectionError("refused")

    with pytest.raises(UpstreamError) as exc_info:
        client.buy_quote("eth", "usd", 1)
    assert exc_info.value.upstream_status is None
    assert "refused" in exc_info.value.detail


def test_non_json_body(client, session):
    session.get.return_value = _response(payload=ValueError("no json"))

    with pytest.raises(UpstreamError, match="parse"):
        client.transaction_info("tx1")


def test_close_closes_session(client, session):
    client.close()
    session.close.assert_called_once()
