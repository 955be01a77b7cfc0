"""
Configuration for the printer agent.

Read from the environment (a .env file next to the agent is loaded first).
"""

from __future__ import annotations

import os
import socket
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class AgentConfig:
    """Settings of one printer agent process."""

    server_url: str
    """Coordinator base URL, e.g. http://localhost:3000."""

    printer_name: str
    """Identity this agent answers to; compared with each job's printer name."""

    download_dir: Path
    namespace: str = "/connectprinter"

    fetch_timeout: float = 30.0
    """Seconds allowed for one artifact download."""

    print_timeout: float = 120.0
    """Seconds allowed for one print invocation before it counts as failed."""

    system_printer: Optional[str] = None
    """OS print queue to use; None means the default printer."""

    reconnect_delay: float = 1.0
    reconnect_delay_max: float = 5.0
    keep_downloads: bool = False

    @classmethod
    def from_env(cls) -> "AgentConfig":
        load_dotenv(override=True)

        return cls(
            server_url=os.environ.get("SERVER_URL", "http://localhost:3000").rstrip("/"),
            printer_name=os.environ.get("PRINTER_NAME") or f"Printer-{socket.gethostname()}",
            download_dir=Path(os.environ.get("DOWNLOAD_DIR", str(Path.cwd() / "downloads"))),
            namespace=os.environ.get("DISPATCH_NAMESPACE", "/connectprinter"),
            fetch_timeout=float(os.environ.get("FETCH_TIMEOUT", "30")),
            print_timeout=float(os.environ.get("PRINT_TIMEOUT", "120")),
            system_printer=os.environ.get("SYSTEM_PRINTER") or None,
            reconnect_delay=float(os.environ.get("RECONNECT_DELAY", "1")),
            reconnect_delay_max=float(os.environ.get("RECONNECT_DELAY_MAX", "5")),
            keep_downloads=os.environ.get("KEEP_DOWNLOADS", "0").lower() in ("1", "true", "yes"),
        )
