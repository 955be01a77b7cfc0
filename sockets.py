"""
Socket.IO handlers for the printer agent namespace.

Events:
    connect               -> channel added to the AgentRegistry
    disconnect            -> channel removed
    printer-registered    {printerName, platform, hostname}
    job-status-update     {jobId, status} -> StatusSink

The coordinator emits ``new-print-job`` from DispatchBroadcaster.
"""

from __future__ import annotations

from flask import request
from flask_socketio import SocketIO

from services.dispatch import AgentRegistry, DispatchBroadcaster
from services.job_service import JobService
from services.status_sink import StatusSink
from logging_config import get_logger


logger = get_logger(__name__)


def register_socket_handlers(
    socketio: SocketIO,
    registry: AgentRegistry,
    broadcaster: DispatchBroadcaster,
    status_sink: StatusSink,
    job_service: JobService,
    namespace: str = "/connectprinter",
    replay_on_register: bool = False,
) -> None:
    """Attach the printer namespace handlers to ``socketio``."""

    @socketio.on("connect", namespace=namespace)
    def on_connect(auth=None):
        registry.add(request.sid)
        logger.info(f"Printer agent connected: {request.sid} ({len(registry)} connected)")

    @socketio.on("disconnect", namespace=namespace)
    def on_disconnect(*args):
        channel = registry.remove(request.sid)
        name = channel.printer_name if channel and channel.printer_name else "unregistered"
        logger.info(f"Printer agent disconnected: {request.sid} ({name})")

    @socketio.on("printer-registered", namespace=namespace)
    def on_printer_registered(data):
        data = data if isinstance(data, dict) else {}
        printer_name = data.get("printerName")
        registry.register(
            request.sid,
            printer_name,
            platform=data.get("platform"),
            hostname=data.get("hostname"),
        )
        logger.info(f"Printer registered: {printer_name} on {data.get('hostname')} ({request.sid})")

        if replay_on_register and printer_name:
            backlog = job_service.pending_dispatches(printer_name)
            for job in backlog:
                broadcaster.send_to(request.sid, job)
            if backlog:
                logger.info(f"Replayed {len(backlog)} pending job(s) to '{printer_name}'")

    @socketio.on("job-status-update", namespace=namespace)
    def on_job_status_update(data):
        status_sink.handle_report(data)
