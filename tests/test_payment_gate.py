"""
Unit tests for Razorpay signature verification.
"""

import hashlib
import hmac

import pytest

from core import payment_gate


SECRET = "rzp_secret"


def _razorpay_signature(order_id, payment_id, secret=SECRET):
    return hmac.new(
        secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256
    ).hexdigest()


class TestVerify:
    """Test verify() against signatures computed the way Razorpay does."""

    def test_valid_signature(self):
        signature = _razorpay_signature("order_1", "pay_1")
        assert payment_gate.verify("order_1", "pay_1", signature, SECRET) is True

    def test_compute_signature_matches_provider_format(self):
        assert payment_gate.compute_signature("order_1", "pay_1", SECRET) == \
            _razorpay_signature("order_1", "pay_1")

    def test_tampered_signature(self):
        signature = _razorpay_signature("order_1", "pay_1")
        tampered = signature[:-1] + ("0" if signature[-1] != "0" else "1")
        assert payment_gate.verify("order_1", "pay_1", tampered, SECRET) is False

    def test_signature_for_other_order(self):
        signature = _razorpay_signature("order_2", "pay_1")
        assert payment_gate.verify("order_1", "pay_1", signature, SECRET) is False

    def test_wrong_secret(self):
        signature = _razorpay_signature("order_1", "pay_1", secret="other")
        assert payment_gate.verify("order_1", "pay_1", signature, SECRET) is False

    def test_uppercase_hex_is_rejected(self):
        signature = _razorpay_signature("order_1", "pay_1").upper()
        assert payment_gate.verify("order_1", "pay_1", signature, SECRET) is False

    @pytest.mark.parametrize("order_id,payment_id,signature,secret", [
        ("", "pay_1", "abc", SECRET),
        ("order_1", "", "abc", SECRET),
        ("order_1", "pay_1", "", SECRET),
        ("order_1", "pay_1", "abc", ""),
        (None, "pay_1", "abc", SECRET),
        ("order_1", "pay_1", None, SECRET),
        ("order_1", "pay_1", 12345, SECRET),
        ("order_1", "pay_1", "abc", None),
    ])
    def test_missing_or_malformed_input(self, order_id, payment_id, signature, secret):
        assert payment_gate.verify(order_id, payment_id, signature, secret) is False

    def test_non_ascii_signature_does_not_raise(self):
        assert payment_gate.verify("order_1", "pay_1", "é" * 64, SECRET) is False
