"""Artifact download for the printer agent."""

from __future__ import annotations

from pathlib import Path
from typing import Optional
from urllib.parse import urljoin

import requests

from core.exceptions import TransportError
from logging_config import get_logger


logger = get_logger(__name__)

CHUNK_SIZE = 64 * 1024


class ArtifactFetcher:
    """
    Streams a job's PDF from the coordinator into the download directory.

    Relative locators (``/uploads/...``) are resolved against the server URL.
    The timeout bounds both the connect and every read; a stalled transfer
    fails the job instead of hanging it.
    """

    def __init__(
        self,
        server_url: str,
        download_dir: Path,
        timeout_seconds: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self._server_url = server_url.rstrip("/") + "/"
        self._download_dir = Path(download_dir)
        self._timeout = timeout_seconds
        self._session = session or requests.Session()

        self._download_dir.mkdir(parents=True, exist_ok=True)

    def resolve_url(self, locator: str) -> str:
        return urljoin(self._server_url, locator)

    def fetch(self, locator: str, job_id: str) -> Path:
        """
        Download ``locator`` to ``<download_dir>/<job_id>.pdf``.

        Raises:
            TransportError: On any network, HTTP or disk failure. A partial
                file is removed before raising.
        """
        url = self.resolve_url(locator)
        target = self._download_dir / f"{job_id}.pdf"

        logger.info(f"Downloading PDF from: {url}")
        try:
            with self._session.get(url, stream=True, timeout=self._timeout) as response:
                response.raise_for_status()
                with open(target, "wb") as fh:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            fh.write(chunk)
        except (requests.RequestException, OSError) as e:
            target.unlink(missing_ok=True)
            raise TransportError("download", str(e), job_id=job_id) from e

        logger.info(f"PDF downloaded successfully: {target}")
        return target
