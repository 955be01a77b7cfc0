"""
Services layer for CloudPrint.

- JobService: the print job state machine (only writer of job state)
- AgentRegistry / DispatchBroadcaster: connected agents and job fan-out
- StatusSink: agent status reports back into JobService
- RazorpayClient: payment order creation
"""

from .job_service import JobService
from .dispatch import AgentRegistry, DispatchBroadcaster
from .status_sink import StatusSink
from .payment_provider import RazorpayClient

__all__ = [
    "JobService",
    "AgentRegistry",
    "DispatchBroadcaster",
    "StatusSink",
    "RazorpayClient",
]
