"""
Custom exceptions for CloudPrint.

Exception Hierarchy:
    CloudPrintError (base)
    ├── ValidationError         - Bad input, user-correctable (400)
    ├── NotFoundError           - Unknown job id (404)
    ├── InvalidStateError       - Transition attempted from the wrong state (409)
    ├── SignatureMismatchError  - Payment signature rejected; job is payment-failed
    ├── PaymentProviderError    - Razorpay order creation failed (502)
    └── TransportError          - Agent-side download or print failure

Usage:
    Validation, not-found and state errors are recovered at the request
    boundary and returned to the caller. Signature and transport failures
    are recorded into job state; nothing here is fatal to the process.
"""

from typing import Optional, Dict, Any


class CloudPrintError(Exception):
    """
    Base exception for all CloudPrint errors.

    Carries a human-readable message plus an optional ``details`` dict and
    the HTTP status the request boundary should answer with.
    """

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(CloudPrintError):
    """Input failed validation (missing field, bad number, copies < 1, ...)."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else None
        super().__init__(message, details)
        self.field = field


class NotFoundError(CloudPrintError):
    """No print job exists with the given identifier."""

    status_code = 404

    def __init__(self, job_id: str):
        super().__init__(f"Print job not found: {job_id}", {"job_id": job_id})
        self.job_id = job_id


class InvalidStateError(CloudPrintError):
    """
    A transition was attempted from a state that does not allow it.

    Examples:
    - attaching an order to a job whose payment already settled
    - confirming a payment for a job with no order attached
    - confirming an already-paid job with a different payment id
    - moving an unpaid job out of ``pending``
    """

    status_code = 409

    def __init__(self, message: str, job_id: Optional[str] = None, state: Optional[str] = None):
        details: Dict[str, Any] = {}
        if job_id:
            details["job_id"] = job_id
        if state:
            details["state"] = state
        super().__init__(message, details)
        self.job_id = job_id
        self.state = state


class SignatureMismatchError(CloudPrintError):
    """
    Payment signature verification failed.

    Raised after the job has already been moved to payment ``failed``,
    which is terminal: the job will never print.
    """

    status_code = 400

    def __init__(self, job_id: str, order_id: Optional[str] = None):
        details = {"job_id": job_id}
        if order_id:
            details["order_id"] = order_id
        super().__init__("Invalid payment signature", details)
        self.job_id = job_id
        self.order_id = order_id


class PaymentProviderError(CloudPrintError):
    """The payment provider refused or failed to create an order."""

    status_code = 502

    def __init__(self, message: str, provider_status: Optional[int] = None):
        details = {"provider_status": provider_status} if provider_status else None
        super().__init__(message, details)
        self.provider_status = provider_status


class TransportError(CloudPrintError):
    """
    Artifact download or print invocation failed on the agent.

    Terminal for the job it concerns; no automatic retry.
    """

    def __init__(self, operation: str, message: str, job_id: Optional[str] = None):
        details = {"operation": operation}
        if job_id:
            details["job_id"] = job_id
        super().__init__(f"{operation} failed: {message}", details)
        self.operation = operation
        self.job_id = job_id
