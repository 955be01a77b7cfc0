"""
Print job state machine.

JobService is the only writer of print job state. Routes, the Socket.IO
status sink and the admin API all go through it.

Lifecycles:
    Payment:   pending --attach_order--> pending(order issued)
               pending --confirm_payment--> paid | failed
    Printing:  (only once paid)
               pending -> processing -> completed | failed

Thread Safety:
    - Every mutation is one JobStore.update() call (atomic per job)
    - The dispatch broadcast runs AFTER the store update, outside the lock,
      and only when that update performed the pending -> paid transition.
      A second confirmation therefore never dispatches twice.

Usage:
    job_service = JobService(store, broadcaster, payment_secret="...", per_page_rate=2)

    job = job_service.create_job("20261018_doc.pdf", "Library-1", page_count=10, copies=3)
    job = job_service.attach_order(job.id, "order_abc")
    job = job_service.confirm_payment(job.id, "pay_xyz", signature)
    job = job_service.update_execution_status(job.id, "processing")
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from core import payment_gate
from core.exceptions import (
    InvalidStateError,
    NotFoundError,
    SignatureMismatchError,
    ValidationError,
)
from core.job_store import JobStore
from models.print_job import PaymentStatus, PrintJob, PrintStatus
from logging_config import get_logger


logger = get_logger(__name__)

MAX_PRINTER_NAME_LENGTH = 100

# Outcomes decided inside the atomic update of confirm_payment()
_CONFIRMED = "confirmed"
_ALREADY_PAID = "already_paid"
_REJECTED = "rejected"


class Dispatcher(Protocol):
    def dispatch(self, job: PrintJob) -> int: ...


def _require_int(value, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer", field=field_name)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        value = value.strip()
        # isdigit() also accepts superscripts and other non-decimal digits
        if value.isascii() and value.isdecimal():
            return int(value)
    if isinstance(value, int):
        return value
    raise ValidationError(f"{field_name} must be an integer", field=field_name)


class JobService:
    """
    Owns the valid transitions of a print job and their side effects.

    Attributes:
        per_page_rate: Price of one printed page, in currency units
    """

    def __init__(
        self,
        store: JobStore,
        dispatcher: Dispatcher,
        payment_secret: str,
        per_page_rate: float = 2,
    ):
        self._store = store
        self._dispatcher = dispatcher
        self._payment_secret = payment_secret
        self.per_page_rate = per_page_rate

        if not payment_secret:
            logger.warning("No payment secret configured - every payment will be rejected")

        logger.info(f"JobService initialized (per-page rate: {per_page_rate})")

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_job(self, job_id: str) -> PrintJob:
        job = self._store.get(job_id)
        if job is None:
            raise NotFoundError(job_id)
        return job

    def list_jobs(self, limit: int = 50) -> List[PrintJob]:
        return self._store.list_recent(limit)

    def pending_dispatches(self, printer_name: str) -> List[PrintJob]:
        """Paid jobs for ``printer_name`` that no agent has picked up yet."""
        return [
            job for job in self._store.list_all()
            if job.printer_name == printer_name
            and job.payment_status is PaymentStatus.PAID
            and job.status is PrintStatus.PENDING
        ]

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def create_job(
        self,
        artifact_ref: str,
        printer_name: str,
        page_count,
        copies,
        original_name: Optional[str] = None,
    ) -> PrintJob:
        """
        Validate and persist a new job with both lifecycles at ``pending``.

        The amount is computed here, once, and never recomputed.

        Raises:
            ValidationError: On a missing artifact or printer name, a negative
                page count, or fewer than one copy
        """
        if not artifact_ref or not isinstance(artifact_ref, str):
            raise ValidationError("Artifact reference is required", field="artifactRef")

        printer_name = printer_name.strip() if isinstance(printer_name, str) else ""
        if not printer_name:
            raise ValidationError("Printer name is required", field="printerName")
        if len(printer_name) > MAX_PRINTER_NAME_LENGTH:
            raise ValidationError(
                f"Printer name too long. Maximum {MAX_PRINTER_NAME_LENGTH} characters.",
                field="printerName",
            )

        page_count = _require_int(page_count, "pageCount")
        copies = _require_int(copies, "copies")
        if page_count < 0:
            raise ValidationError("pageCount must be zero or more", field="pageCount")
        if copies < 1:
            raise ValidationError("copies must be at least 1", field="copies")

        job = PrintJob(
            artifact_ref=artifact_ref,
            original_name=original_name or artifact_ref,
            printer_name=printer_name,
            page_count=page_count,
            copies=copies,
            amount=page_count * self.per_page_rate * copies,
        )
        self._store.put(job)

        logger.info(
            f"Job {job.id[:8]} created for '{printer_name}': "
            f"{page_count} pages x {copies} copies = {job.amount}"
        )
        return job

    def attach_order(self, job_id: str, order_id: str) -> PrintJob:
        """
        Record the payment provider's order id on a job.

        Raises:
            ValidationError: If order_id is empty
            NotFoundError: If the job does not exist
            InvalidStateError: If the payment is no longer pending
        """
        if not order_id:
            raise ValidationError("Order id is required", field="orderId")

        def mutate(job: PrintJob) -> None:
            if job.payment_status is not PaymentStatus.PENDING:
                raise InvalidStateError(
                    "Cannot attach an order to a job whose payment has settled",
                    job_id=job.id,
                    state=job.payment_status.value,
                )
            job.payment_ref = order_id
            job.touch()

        job, _ = self._update(job_id, mutate)
        logger.info(f"Order {order_id} attached to job {job_id[:8]}")
        return job

    def abandon_order(self, job_id: str, reason: str) -> PrintJob:
        """
        Close a job whose payment order could not be created.

        The job is moved to payment ``failed`` so it never waits for a
        payment that cannot arrive. A job that already has an order or a
        settled payment is left as it is.

        Raises:
            NotFoundError: If the job does not exist
        """

        def mutate(job: PrintJob) -> bool:
            if job.payment_status is not PaymentStatus.PENDING or job.payment_ref:
                return False
            job.payment_status = PaymentStatus.FAILED
            job.touch()
            return True

        job, changed = self._update(job_id, mutate)
        if changed:
            logger.warning(f"Job {job_id[:8]} abandoned, no payment order: {reason}")
        return job

    def confirm_payment(self, job_id: str, payment_id: str, signature: str) -> PrintJob:
        """
        Verify a payment and, on success, dispatch the job to the agents.

        The signature is checked against the order id stored on the job,
        never against one supplied by the caller.

        Returns:
            The paid job. A repeat confirmation with the same payment id
            returns the job unchanged and does not dispatch again.

        Raises:
            NotFoundError: If the job does not exist
            InvalidStateError: If no order is attached, the payment already
                failed, or the job was paid with a different payment id
            SignatureMismatchError: The signature did not verify. The job has
                been moved to payment ``failed`` before this is raised.
        """

        def mutate(job: PrintJob) -> str:
            if job.payment_status is PaymentStatus.PAID:
                if payment_id and payment_id == job.payment_id:
                    return _ALREADY_PAID
                raise InvalidStateError(
                    "Job is already paid with a different payment id",
                    job_id=job.id,
                    state=job.payment_status.value,
                )
            if job.payment_status is PaymentStatus.FAILED:
                raise InvalidStateError(
                    "Payment for this job already failed",
                    job_id=job.id,
                    state=job.payment_status.value,
                )
            if not job.payment_ref:
                raise InvalidStateError(
                    "No payment order has been issued for this job",
                    job_id=job.id,
                    state="created",
                )

            if payment_gate.verify(job.payment_ref, payment_id, signature, self._payment_secret):
                job.payment_status = PaymentStatus.PAID
                job.payment_id = payment_id
                job.touch()
                return _CONFIRMED

            job.payment_status = PaymentStatus.FAILED
            job.touch()
            return _REJECTED

        job, outcome = self._update(job_id, mutate)

        if outcome == _ALREADY_PAID:
            logger.info(f"Job {job_id[:8]} already paid, confirmation ignored")
            return job

        if outcome == _REJECTED:
            logger.warning(f"Payment signature rejected for job {job_id[:8]} (order {job.payment_ref})")
            raise SignatureMismatchError(job.id, job.payment_ref)

        logger.info(f"Payment {payment_id} verified for job {job_id[:8]}")
        delivered = self._dispatcher.dispatch(job)
        logger.info(f"Job {job_id[:8]} dispatched to {delivered} agent channel(s)")
        return job

    def update_execution_status(self, job_id: str, new_status) -> PrintJob:
        """
        Apply a print-status report.

        Reports arrive over a channel without ordering guarantees, so they
        are treated as advisory: a report that would move the job backwards
        is ignored, and terminal -> terminal is last-write-wins.

        Raises:
            ValidationError: If the status is not a known print status
            NotFoundError: If the job does not exist
            InvalidStateError: If the job is unpaid and the report would
                move it out of ``pending``
        """
        try:
            status = PrintStatus.parse(new_status)
        except ValueError:
            raise ValidationError(f"Invalid status: {new_status!r}", field="status")

        def mutate(job: PrintJob) -> bool:
            if job.payment_status is not PaymentStatus.PAID and status is not PrintStatus.PENDING:
                raise InvalidStateError(
                    "Job cannot be printed before payment",
                    job_id=job.id,
                    state=job.payment_status.value,
                )
            if status.rank < job.status.rank:
                return False
            if status is job.status:
                return False
            job.status = status
            job.touch()
            return True

        job, changed = self._update(job_id, mutate)

        if changed:
            logger.info(f"Job {job_id[:8]} status -> {status.value}")
        else:
            logger.info(
                f"Job {job_id[:8]} status report '{status.value}' ignored "
                f"(current: {job.status.value})"
            )
        return job

    def _update(self, job_id: str, mutator):
        result = self._store.update(job_id, mutator)
        if result is None:
            raise NotFoundError(job_id)
        return result
