"""
Data models for CloudPrint.

- PrintJob: the persisted job record (owned by the job store)
- DispatchPayload: frozen job announcement sent to printer agents
- PaymentStatus / PrintStatus: the two job lifecycles
"""

from .print_job import PrintJob, DispatchPayload, PaymentStatus, PrintStatus

__all__ = [
    "PrintJob",
    "DispatchPayload",
    "PaymentStatus",
    "PrintStatus",
]
