"""
Print job data models.

PrintJob is the persisted record owned by the job store. DispatchPayload is
the immutable snapshot handed to the broadcaster and, as a wire message, to
printer agents. Agents never see or mutate a PrintJob.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, Optional


UPLOADS_URL_PREFIX = "/uploads/"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PaymentStatus(Enum):
    """
    Payment lifecycle of a job.

    Lifecycle:
        PENDING -> (PAID | FAILED)

    Both PAID and FAILED are final.
    """

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class PrintStatus(Enum):
    """
    Print-execution lifecycle, reported by the agent.

    Lifecycle (only once payment is PAID):
        PENDING -> PROCESSING -> (COMPLETED | FAILED)
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PrintStatus.COMPLETED, PrintStatus.FAILED)

    @property
    def rank(self) -> int:
        """Position in the lifecycle; both terminal states share a rank."""
        return _PRINT_STATUS_RANK[self]

    @classmethod
    def parse(cls, value: Any) -> "PrintStatus":
        """
        Parse a status string.

        Older agents report ``printing``; it is read as ``processing``.

        Raises:
            ValueError: If the value is not a known status
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Invalid print status: {value!r}")
        normalized = value.strip().lower()
        if normalized == "printing":
            normalized = cls.PROCESSING.value
        return cls(normalized)


_PRINT_STATUS_RANK = {
    PrintStatus.PENDING: 0,
    PrintStatus.PROCESSING: 1,
    PrintStatus.COMPLETED: 2,
    PrintStatus.FAILED: 2,
}


@dataclass(frozen=True)
class DispatchPayload:
    """
    Read-only announcement of a paid job.

    Broadcast to every connected agent; each agent compares
    ``printer_name`` against its own identity.
    """

    job_id: str
    printer_name: str
    artifact_ref: str
    filename: str
    copies: int
    page_count: int

    @property
    def file_url(self) -> str:
        """URL path the agent downloads the artifact from."""
        if self.artifact_ref.startswith(("/", "http://", "https://")):
            return self.artifact_ref
        return f"{UPLOADS_URL_PREFIX}{self.artifact_ref}"

    def to_message(self) -> Dict[str, Any]:
        """Wire format of the ``new-print-job`` event."""
        return {
            "jobId": self.job_id,
            "printerName": self.printer_name,
            "artifactRef": self.artifact_ref,
            "fileUrl": self.file_url,
            "filename": self.filename,
            "copies": self.copies,
            "pageCount": self.page_count,
        }

    @classmethod
    def from_message(cls, data: Dict[str, Any]) -> "DispatchPayload":
        """
        Parse a ``new-print-job`` event.

        A missing copy count means one copy and a missing page count means
        zero, matching what agents have always assumed.

        Raises:
            ValueError: If the message has no job id or no artifact locator,
                or asks for fewer than one copy
        """
        job_id = data.get("jobId")
        artifact = data.get("fileUrl") or data.get("artifactRef")
        if not job_id or not artifact:
            raise ValueError("Dispatch message requires jobId and an artifact locator")

        copies = data.get("copies")
        copies = 1 if copies is None else int(copies)
        if copies < 1:
            raise ValueError(f"Dispatch message asks for {copies} copies")

        return cls(
            job_id=str(job_id),
            printer_name=data.get("printerName") or "",
            artifact_ref=artifact,
            filename=data.get("filename") or "",
            copies=copies,
            page_count=int(data.get("pageCount") or 0),
        )


@dataclass
class PrintJob:
    """
    A paid request to print one artifact, N copies, on one named printer.

    Fields set at creation (id, artifact, printer, page_count, copies,
    amount) never change afterwards. Only JobService mutates the rest,
    and only through the job store's atomic update.
    """

    artifact_ref: str
    """Stored filename of the uploaded PDF."""

    printer_name: str
    """Identity of the agent that must print this job."""

    page_count: int
    copies: int

    amount: float
    """page_count * per_page_rate * copies, fixed at creation."""

    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    original_name: str = ""
    """Filename as uploaded by the client, for display."""

    payment_ref: Optional[str] = None
    """Razorpay order id."""

    payment_id: Optional[str] = None
    """Razorpay payment id, recorded once the payment is verified."""

    payment_status: PaymentStatus = PaymentStatus.PENDING
    status: PrintStatus = PrintStatus.PENDING

    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def touch(self) -> None:
        """Refresh ``updated_at``; called on every mutation."""
        self.updated_at = utc_now()

    def dispatch_payload(self) -> DispatchPayload:
        return DispatchPayload(
            job_id=self.id,
            printer_name=self.printer_name,
            artifact_ref=self.artifact_ref,
            filename=self.original_name or self.artifact_ref,
            copies=self.copies,
            page_count=self.page_count,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        data = asdict(self)
        data["payment_status"] = self.payment_status.value
        data["status"] = self.status.value
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrintJob":
        """Create from a dictionary produced by ``to_dict()``."""
        return cls(
            id=data["id"],
            artifact_ref=data["artifact_ref"],
            original_name=data.get("original_name", ""),
            printer_name=data["printer_name"],
            page_count=data["page_count"],
            copies=data["copies"],
            amount=data["amount"],
            payment_ref=data.get("payment_ref"),
            payment_id=data.get("payment_id"),
            payment_status=PaymentStatus(data.get("payment_status", "pending")),
            status=PrintStatus(data.get("status", "pending")),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )
