"""
Socket.IO transport of the printer agent.

Keeps a persistent connection to the coordinator's printer namespace with
unlimited automatic reconnection (delay doubling from ``reconnect_delay``
up to ``reconnect_delay_max``). On every (re)connect the agent announces
its identity again. Jobs announced while the agent is offline are not
replayed unless the coordinator enables replay-on-register.
"""

from __future__ import annotations

import platform
import socket
from typing import Any, Optional

import socketio

from agent.config import AgentConfig
from agent.runtime import AgentRuntime
from logging_config import get_logger


logger = get_logger(__name__)

PRINTER_REGISTERED_EVENT = "printer-registered"
JOB_STATUS_UPDATE_EVENT = "job-status-update"
NEW_PRINT_JOB_EVENT = "new-print-job"


class AgentClient:
    """
    Binds an AgentRuntime to a Socket.IO connection.

    The runtime is built by the caller with ``client.report_status`` as
    its reporter; see ``build_agent()``.
    """

    def __init__(self, config: AgentConfig, sio: Optional[socketio.Client] = None):
        self.config = config
        self.sio = sio or socketio.Client(
            reconnection=True,
            reconnection_attempts=0,  # 0 = retry forever
            reconnection_delay=config.reconnect_delay,
            reconnection_delay_max=config.reconnect_delay_max,
        )
        self.runtime: Optional[AgentRuntime] = None

        ns = config.namespace
        self.sio.on("connect", self._on_connect, namespace=ns)
        self.sio.on("disconnect", self._on_disconnect, namespace=ns)
        self.sio.on("connect_error", self._on_connect_error, namespace=ns)
        self.sio.on(NEW_PRINT_JOB_EVENT, self._on_new_print_job, namespace=ns)

    def attach(self, runtime: AgentRuntime) -> None:
        self.runtime = runtime

    def registration(self) -> dict:
        return {
            "printerName": self.config.printer_name,
            "platform": platform.system(),
            "hostname": socket.gethostname(),
        }

    # =========================================================================
    # OUTBOUND
    # =========================================================================

    def report_status(self, job_id: str, status: str) -> None:
        """Send ``job-status-update``; dropped with a warning while offline."""
        if not self.sio.connected:
            logger.warning(f"Not connected - status '{status}' for job {job_id[:8]} not delivered")
            return
        self.sio.emit(
            JOB_STATUS_UPDATE_EVENT,
            {"jobId": job_id, "status": status},
            namespace=self.config.namespace,
        )

    # =========================================================================
    # EVENT HANDLERS
    # =========================================================================

    def _on_connect(self) -> None:
        logger.info(f"Connected to server: {self.config.server_url}")
        self.sio.emit(PRINTER_REGISTERED_EVENT, self.registration(), namespace=self.config.namespace)
        logger.info(f"Printer registered: {self.config.printer_name}")

    def _on_disconnect(self, *args: Any) -> None:
        reason = args[0] if args else "unknown"
        logger.warning(f"Disconnected from server ({reason})")

    def _on_connect_error(self, data: Any = None) -> None:
        logger.error(f"Connection error: {data}")

    def _on_new_print_job(self, data: Any) -> None:
        if self.runtime is None:
            logger.error("Job announcement received before a runtime was attached")
            return
        self.runtime.submit(data if isinstance(data, dict) else {})

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self) -> None:
        """Connect and block until disconnect() is called."""
        logger.info("Connecting to server...")
        self.sio.connect(
            self.config.server_url,
            namespaces=[self.config.namespace],
            transports=["websocket"],
            retry=True,
        )
        self.sio.wait()

    def disconnect(self) -> None:
        if self.sio.connected:
            self.sio.disconnect()
