"""
Core module for CloudPrint.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
- payment_gate: Razorpay signature verification
- job_store: Durable, atomically-updated job storage
"""

from .exceptions import (
    CloudPrintError,
    ValidationError,
    NotFoundError,
    InvalidStateError,
    SignatureMismatchError,
    PaymentProviderError,
    TransportError,
)
from .job_store import JobStore

__all__ = [
    "CloudPrintError",
    "ValidationError",
    "NotFoundError",
    "InvalidStateError",
    "SignatureMismatchError",
    "PaymentProviderError",
    "TransportError",
    "JobStore",
]
