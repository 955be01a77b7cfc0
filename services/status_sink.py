"""
Status sink: agent reports back into the job state machine.

Agents emit ``job-status-update {jobId, status}``. Reports are telemetry
from an unauthenticated, unordered channel, so nothing here raises: bad or
stale reports are logged and dropped.
"""

from __future__ import annotations

from typing import Any, Optional

from core.exceptions import CloudPrintError, NotFoundError
from models.print_job import PrintJob
from services.job_service import JobService
from logging_config import get_logger


logger = get_logger(__name__)


class StatusSink:
    """Forwards agent status reports to JobService.update_execution_status()."""

    def __init__(self, job_service: JobService):
        self._job_service = job_service

    def handle_report(self, data: Any) -> Optional[PrintJob]:
        """
        Apply one status report.

        Returns:
            The job after the report, or None if the report was discarded
        """
        if not isinstance(data, dict):
            logger.warning(f"Discarding malformed status report: {data!r}")
            return None

        job_id = data.get("jobId")
        status = data.get("status")
        if not job_id or not status:
            logger.warning(f"Discarding status report without jobId/status: {data!r}")
            return None

        logger.info(f"Status update for job {str(job_id)[:8]}: {status}")

        try:
            return self._job_service.update_execution_status(str(job_id), status)
        except NotFoundError:
            logger.warning(f"Status report for unknown job {job_id} discarded")
        except CloudPrintError as e:
            logger.warning(f"Status report for job {job_id} rejected: {e.message}")
        return None
