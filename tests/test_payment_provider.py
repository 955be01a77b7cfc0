"""
Unit tests for the Razorpay order client.
"""

from unittest.mock import MagicMock

import pytest
import requests

from core.exceptions import PaymentProviderError
from services.payment_provider import RazorpayClient


@pytest.fixture
def session():
    mock = MagicMock()
    mock.post.return_value.status_code = 200
    mock.post.return_value.json.return_value = {"id": "order_abc", "status": "created"}
    return mock


@pytest.fixture
def provider(session):
    return RazorpayClient("rzp_key", "rzp_secret", api_url="https://api.test/orders",
                          timeout_seconds=5, session=session)


class TestRazorpayClient:

    def test_create_order(self, provider, session):
        order_id = provider.create_order(60, notes={"jobId": "job-1", "copies": 3})

        assert order_id == "order_abc"
        args, kwargs = session.post.call_args
        assert args[0] == "https://api.test/orders"
        assert kwargs["auth"] == ("rzp_key", "rzp_secret")
        assert kwargs["timeout"] == 5
        assert kwargs["json"]["amount"] == 6000
        assert kwargs["json"]["currency"] == "INR"
        assert kwargs["json"]["notes"] == {"jobId": "job-1", "copies": "3"}
        assert kwargs["json"]["receipt"].startswith("receipt_")

    def test_fractional_amount_is_rounded_to_paise(self, provider, session):
        provider.create_order(12.5)
        assert session.post.call_args.kwargs["json"]["amount"] == 1250

    def test_not_configured(self, session):
        provider = RazorpayClient("", "", session=session)

        assert provider.is_configured is False
        with pytest.raises(PaymentProviderError):
            provider.create_order(10)
        session.post.assert_not_called()

    def test_network_failure(self, provider, session):
        session.post.side_effect = requests.ConnectionError("unreachable")

        with pytest.raises(PaymentProviderError):
            provider.create_order(10)

    def test_error_status(self, provider, session):
        session.post.return_value.status_code = 401
        session.post.return_value.text = '{"error": "Authentication failed"}'

        with pytest.raises(PaymentProviderError) as exc_info:
            provider.create_order(10)

        assert exc_info.value.provider_status == 401
        assert exc_info.value.status_code == 502

    def test_missing_order_id(self, provider, session):
        session.post.return_value.json.return_value = {}

        with pytest.raises(PaymentProviderError):
            provider.create_order(10)
