"""
Razorpay payment signature verification.

Razorpay signs a successful checkout with
``HMAC_SHA256(key_secret, order_id + "|" + payment_id)`` as lowercase hex.
Verification is a pure function: no network, no state.
"""

from __future__ import annotations

import hashlib
import hmac


def compute_signature(order_id: str, payment_id: str, secret: str) -> str:
    """Return the hex signature Razorpay issues for an order/payment pair."""
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify(order_id, payment_id, signature, secret) -> bool:
    """
    Check a claimed payment against its provider-issued signature.

    Returns False on mismatch, on any missing or non-string argument, and
    when no secret is configured. The comparison is constant-time.
    """
    for value in (order_id, payment_id, signature, secret):
        if not isinstance(value, str) or not value:
            return False

    expected = compute_signature(order_id, payment_id, secret)
    # compare_digest rejects non-ASCII str; compare as bytes instead
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))
