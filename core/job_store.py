"""
Durable job store.

A key-value store of PrintJob records keyed by job id, backed by SQLite.
Records are stored as JSON next to an indexed ``created_at`` column used
for newest-first listing.

Thread Safety:
    - One sqlite3 connection shared across threads (check_same_thread=False)
    - Every operation holds ``self._lock``
    - update() runs get -> mutate -> put under the lock, so concurrent
      writers to the same job (a status report racing a payment
      confirmation) never lose an update

Usage:
    store = JobStore("jobs.db")          # or JobStore(":memory:")
    store.put(job)
    job = store.update(job_id, lambda job: ...)
    recent = store.list_recent(limit=50)
"""

from __future__ import annotations

import json
import sqlite3
import threading
from pathlib import Path
from typing import Callable, List, Optional, TypeVar, Tuple, Union

from models.print_job import PrintJob
from logging_config import get_logger


logger = get_logger(__name__)

T = TypeVar("T")


class JobStore:
    """SQLite-backed store of print jobs with per-call atomic updates."""

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self._db_path = str(db_path)
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.RLock()
        self._conn = sqlite3.connect(self._db_path, check_same_thread=False)
        self._init_schema()

        logger.info(f"JobStore opened at {self._db_path}")

    def _init_schema(self) -> None:
        with self._lock, self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS print_jobs (
                    id          TEXT PRIMARY KEY,
                    created_at  TEXT NOT NULL,
                    data        TEXT NOT NULL
                )
            """)
            self._conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_print_jobs_created ON print_jobs (created_at)"
            )

    def get(self, job_id: str) -> Optional[PrintJob]:
        with self._lock:
            row = self._conn.execute(
                "SELECT data FROM print_jobs WHERE id = ?", (job_id,)
            ).fetchone()
        return PrintJob.from_dict(json.loads(row[0])) if row else None

    def put(self, job: PrintJob) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO print_jobs (id, created_at, data) VALUES (?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET data = excluded.data",
                (job.id, job.created_at.isoformat(), json.dumps(job.to_dict())),
            )

    def update(
        self,
        job_id: str,
        mutator: Callable[[PrintJob], T],
    ) -> Optional[Tuple[PrintJob, T]]:
        """
        Atomically read, mutate and write back one job.

        ``mutator`` receives the current job and edits it in place; its
        return value is handed back to the caller so it can report what
        the mutation decided. If the mutator raises, nothing is written.

        Returns:
            (job, mutator_result), or None if the job does not exist
        """
        with self._lock:
            job = self.get(job_id)
            if job is None:
                return None
            result = mutator(job)
            self.put(job)
            return job, result

    def list_recent(self, limit: int = 50) -> List[PrintJob]:
        """Jobs ordered newest first, at most ``limit`` of them."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT data FROM print_jobs ORDER BY created_at DESC, rowid DESC LIMIT ?", (limit,)
            ).fetchall()
        return [PrintJob.from_dict(json.loads(row[0])) for row in rows]

    def list_all(self) -> List[PrintJob]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT data FROM print_jobs ORDER BY created_at ASC, rowid ASC"
            ).fetchall()
        return [PrintJob.from_dict(json.loads(row[0])) for row in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()
        logger.info("JobStore closed")
