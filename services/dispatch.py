"""
Dispatch of paid jobs to printer agents.

AgentRegistry tracks the Socket.IO channels currently connected to the
printer namespace. DispatchBroadcaster announces every paid job to every
one of them; agents decide for themselves whether a job is theirs.

This is a broadcast, not a directed send:
    - There is no acknowledgment and no retry
    - A channel that disconnects mid-broadcast simply misses the message
    - With zero connected agents the job stays paid/pending until someone
      updates it; nothing is raised

Thread Safety:
    Connect/disconnect handlers mutate the registry while payment
    confirmations iterate it. The registry guards its dict with a lock and
    hands out copies, so a broadcast never iterates a dict that a
    disconnect is shrinking.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, List, Optional

from models.print_job import PrintJob, utc_now
from logging_config import get_logger


logger = get_logger(__name__)

NEW_PRINT_JOB_EVENT = "new-print-job"


@dataclass(frozen=True)
class AgentChannel:
    """One connected agent channel, identified by its Socket.IO sid."""

    sid: str
    connected_at: datetime = field(default_factory=utc_now)
    printer_name: Optional[str] = None
    platform: Optional[str] = None
    hostname: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "sid": self.sid,
            "printerName": self.printer_name,
            "platform": self.platform,
            "hostname": self.hostname,
            "connectedAt": self.connected_at.isoformat(),
        }


class AgentRegistry:
    """
    The set of connected agent channels.

    Created once per coordinator in create_app(); entries are added on
    connect and removed on disconnect. The printer name an agent announces
    is recorded for display only; dispatch does not look at it.
    """

    def __init__(self):
        self._channels: Dict[str, AgentChannel] = {}
        self._lock = threading.Lock()

    def add(self, sid: str) -> None:
        with self._lock:
            self._channels[sid] = AgentChannel(sid=sid)
        logger.debug(f"Channel {sid} added ({len(self)} connected)")

    def register(
        self,
        sid: str,
        printer_name: Optional[str],
        platform: Optional[str] = None,
        hostname: Optional[str] = None,
    ) -> AgentChannel:
        """Record the identity an agent announced on channel ``sid``."""
        with self._lock:
            channel = self._channels.get(sid) or AgentChannel(sid=sid)
            channel = replace(
                channel,
                printer_name=printer_name,
                platform=platform,
                hostname=hostname,
            )
            self._channels[sid] = channel
        return channel

    def remove(self, sid: str) -> Optional[AgentChannel]:
        with self._lock:
            return self._channels.pop(sid, None)

    def snapshot(self) -> List[str]:
        """Sids connected right now, as a list safe to iterate."""
        with self._lock:
            return list(self._channels)

    def agents(self) -> List[AgentChannel]:
        with self._lock:
            return list(self._channels.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._channels)


class DispatchBroadcaster:
    """
    Fans paid jobs out to every connected agent channel.

    Args:
        socketio: Flask-SocketIO server (anything with a compatible emit())
        registry: The coordinator's AgentRegistry
        namespace: Socket.IO namespace the agents connect to
    """

    def __init__(self, socketio, registry: AgentRegistry, namespace: str = "/connectprinter"):
        self._socketio = socketio
        self._registry = registry
        self._namespace = namespace

    @property
    def registry(self) -> AgentRegistry:
        return self._registry

    def dispatch(self, job: PrintJob) -> int:
        """
        Announce a paid job to all connected agents.

        Returns:
            Number of channels the announcement was emitted to
        """
        message = job.dispatch_payload().to_message()
        sids = self._registry.snapshot()

        if not sids:
            logger.warning(
                f"No printer agents connected - job {job.id[:8]} for "
                f"'{job.printer_name}' stays pending until one picks it up"
            )
            return 0

        delivered = 0
        for sid in sids:
            if self._emit(sid, message):
                delivered += 1

        logger.info(
            f"Broadcast job {job.id[:8]} (printer '{job.printer_name}', "
            f"{job.copies} copies) to {delivered}/{len(sids)} channels"
        )
        return delivered

    def send_to(self, sid: str, job: PrintJob) -> bool:
        """Announce one job to a single channel."""
        return self._emit(sid, job.dispatch_payload().to_message())

    def _emit(self, sid: str, message: dict) -> bool:
        try:
            self._socketio.emit(NEW_PRINT_JOB_EVENT, message, to=sid, namespace=self._namespace)
            return True
        except Exception as e:
            # The channel went away between snapshot and emit
            logger.warning(f"Failed to emit job {message.get('jobId', '')[:8]} to {sid}: {e}")
            return False
