"""
Printer agent runtime with thread-per-job execution.

Every ``new-print-job`` announcement reaches every agent. For each one the
runtime:

    1. Filters   - job for another printer: ignore, report nothing
    2. Announces - reports ``processing`` before any blocking work
    3. Fetches   - downloads the PDF; failure reports ``failed`` and stops
    4. Prints    - one print call per copy, in order 1..N; the first failed
                   copy fails the whole job (earlier copies are not undone)
    5. Reports   - ``completed`` only if every copy succeeded

Thread Model:
    - Each accepted job runs on its own daemon thread (Job-<id8>)
    - Downloads of different jobs overlap freely
    - The print step holds a lock shared by all jobs: the spooler is one
      local resource, and one job's copies are never interleaved with
      another's
    - No ordering between jobs is guaranteed
    - A job id is executed at most once per agent process: a repeated
      announcement (replay after a reconnect) while the job runs, or after
      it finished, is ignored. The last RECENT_JOB_LIMIT ids are remembered.

Usage:
    runtime = AgentRuntime("Library-1", fetcher, printer, reporter)
    runtime.submit(message)      # from the socket event handler
    runtime.shutdown()
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from core.exceptions import TransportError
from models.print_job import DispatchPayload, PrintStatus
from logging_config import get_job_logger, get_logger, set_thread_name


logger = get_logger(__name__)

RECENT_JOB_LIMIT = 512

StatusReporter = Callable[[str, str], None]


class AgentRuntime:
    """
    Executes announced jobs addressed to this agent's printer name.

    Args:
        printer_name: This agent's identity
        fetcher: Object with ``fetch(locator, job_id) -> Path``
        printer: Object with ``print(path) -> bool``
        reporter: ``reporter(job_id, status)`` sends a status report upstream
        keep_downloads: Leave downloaded PDFs on disk after printing
    """

    def __init__(
        self,
        printer_name: str,
        fetcher,
        printer,
        reporter: StatusReporter,
        keep_downloads: bool = False,
    ):
        self.printer_name = printer_name
        self._fetcher = fetcher
        self._printer = printer
        self._reporter = reporter
        self._keep_downloads = keep_downloads

        self._print_lock = threading.Lock()

        # Track active job threads for shutdown
        self._active_threads: Dict[str, threading.Thread] = {}
        self._threads_lock = threading.Lock()

        # Job ids already accepted, oldest first
        self._claimed: "OrderedDict[str, None]" = OrderedDict()

    # =========================================================================
    # ENTRY POINTS
    # =========================================================================

    def accepts(self, payload: DispatchPayload) -> bool:
        """Whether an announced job is addressed to this agent."""
        return payload.printer_name == self.printer_name

    def submit(self, message: Dict[str, Any]) -> Optional[threading.Thread]:
        """
        Start a job thread for an announcement addressed to this agent.

        Returns:
            The started thread, or None if the announcement was ignored
        """
        payload = self._parse(message)
        if payload is None or not self._filter(payload) or not self._claim(payload.job_id):
            return None

        thread = threading.Thread(
            target=self._job_thread_main,
            args=(payload,),
            name=f"Job-{payload.job_id[:8]}",
            daemon=True,
        )
        with self._threads_lock:
            self._active_threads[payload.job_id] = thread
        thread.start()
        return thread

    def handle_job(self, message: Dict[str, Any]) -> Optional[PrintStatus]:
        """
        Run one announcement to completion on the calling thread.

        Returns:
            The terminal status reported, or None if the job was ignored
        """
        payload = self._parse(message)
        if payload is None or not self._filter(payload) or not self._claim(payload.job_id):
            return None
        return self._execute(payload)

    def shutdown(self, timeout_per_thread: float = 5.0) -> None:
        """Wait for running job threads to finish."""
        with self._threads_lock:
            active = list(self._active_threads.items())

        for job_id, thread in active:
            if thread.is_alive():
                thread.join(timeout=timeout_per_thread)
                if thread.is_alive():
                    logger.warning(f"Job thread {job_id[:8]} did not complete in time")

    # =========================================================================
    # JOB EXECUTION
    # =========================================================================

    def _parse(self, message: Dict[str, Any]) -> Optional[DispatchPayload]:
        try:
            return DispatchPayload.from_message(message or {})
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring malformed job announcement: {e}")
            return None

    def _filter(self, payload: DispatchPayload) -> bool:
        if not self.accepts(payload):
            logger.info(
                f"Job {payload.job_id[:8]} is for a different printer "
                f"({payload.printer_name}), ignoring"
            )
            return False
        return True

    def _claim(self, job_id: str) -> bool:
        """Record ``job_id`` as accepted; False if it already was."""
        with self._threads_lock:
            if job_id in self._claimed or job_id in self._active_threads:
                logger.info(f"Job {job_id[:8]} already accepted by this agent, ignoring repeat")
                return False
            self._claimed[job_id] = None
            while len(self._claimed) > RECENT_JOB_LIMIT:
                self._claimed.popitem(last=False)
            return True

    def _job_thread_main(self, payload: DispatchPayload) -> None:
        set_thread_name(f"Job-{payload.job_id[:8]}")
        try:
            self._execute(payload)
        finally:
            with self._threads_lock:
                self._active_threads.pop(payload.job_id, None)

    def _execute(self, payload: DispatchPayload) -> PrintStatus:
        job_logger = get_job_logger(payload.job_id)
        job_logger.info(
            f"New print job: '{payload.filename}', {payload.page_count} pages, "
            f"{payload.copies} {'copy' if payload.copies == 1 else 'copies'}"
        )

        self._report(payload.job_id, PrintStatus.PROCESSING)

        # STEP 1: Fetch
        try:
            path = self._fetcher.fetch(payload.file_url, payload.job_id)
        except TransportError as e:
            job_logger.error(f"Failed to download PDF: {e.message}")
            return self._report(payload.job_id, PrintStatus.FAILED)

        # STEP 2: Print every copy, in order
        try:
            success = self._print_copies(Path(path), payload.copies, job_logger)
        finally:
            if not self._keep_downloads:
                Path(path).unlink(missing_ok=True)

        # STEP 3: Terminal report
        if success:
            job_logger.info(
                f"Print job completed successfully ({payload.copies} "
                f"{'copy' if payload.copies == 1 else 'copies'})"
            )
            return self._report(payload.job_id, PrintStatus.COMPLETED)

        job_logger.error("Print job failed")
        return self._report(payload.job_id, PrintStatus.FAILED)

    def _print_copies(self, path: Path, copies: int, job_logger) -> bool:
        with self._print_lock:
            for copy_number in range(1, copies + 1):
                job_logger.info(f"Printing copy {copy_number} of {copies}...")
                try:
                    ok = self._printer.print(path)
                except Exception as e:
                    job_logger.error(f"Print capability raised on copy {copy_number}: {e}")
                    ok = False
                if not ok:
                    job_logger.error(f"Copy {copy_number} of {copies} failed")
                    return False
        return True

    def _report(self, job_id: str, status: PrintStatus) -> PrintStatus:
        try:
            self._reporter(job_id, status.value)
        except Exception as e:
            logger.error(f"Failed to report '{status.value}' for job {job_id[:8]}: {e}")
        return status
