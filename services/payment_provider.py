"""
Razorpay order creation.

The checkout flow needs an order id before the client can pay. This
client calls the Razorpay Orders API; signature verification of the
completed payment lives in core.payment_gate and never touches the
network.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

import requests

from core.exceptions import PaymentProviderError
from logging_config import get_logger


logger = get_logger(__name__)

DEFAULT_API_URL = "https://api.razorpay.com/v1/orders"


class RazorpayClient:
    """
    Minimal Razorpay Orders API client.

    Attributes:
        key_id: Public key id, also handed to the browser checkout
    """

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        api_url: str = DEFAULT_API_URL,
        currency: str = "INR",
        timeout_seconds: float = 15.0,
        session: Optional[requests.Session] = None,
    ):
        self.key_id = key_id
        self._key_secret = key_secret
        self._api_url = api_url
        self.currency = currency
        self._timeout = timeout_seconds
        self._session = session or requests.Session()

    @property
    def is_configured(self) -> bool:
        return bool(self.key_id and self._key_secret)

    def create_order(self, amount: float, notes: Optional[Dict[str, Any]] = None) -> str:
        """
        Create an order for ``amount`` in major currency units.

        Razorpay expects the amount in the smallest unit (paise for INR).

        Returns:
            The Razorpay order id

        Raises:
            PaymentProviderError: If keys are missing or the API call fails
        """
        if not self.is_configured:
            raise PaymentProviderError(
                "Payment gateway not configured. Set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET."
            )

        payload = {
            "amount": int(round(amount * 100)),
            "currency": self.currency,
            "receipt": f"receipt_{int(time.time() * 1000)}",
            "notes": {k: str(v) for k, v in (notes or {}).items()},
        }

        try:
            response = self._session.post(
                self._api_url,
                auth=(self.key_id, self._key_secret),
                json=payload,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Razorpay order request failed: {e}")
            raise PaymentProviderError(f"Failed to reach payment provider: {e}")

        if response.status_code != 200:
            logger.error(f"Razorpay order creation returned {response.status_code}: {response.text[:200]}")
            raise PaymentProviderError("Failed to create payment order", response.status_code)

        order_id = response.json().get("id")
        if not order_id:
            raise PaymentProviderError("Payment provider returned no order id", response.status_code)

        logger.info(f"Razorpay order {order_id} created for {payload['amount']} {self.currency} (minor units)")
        return order_id
