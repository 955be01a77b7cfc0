"""
Unit tests for the agent registry and the dispatch broadcaster.
"""

import threading
from unittest.mock import MagicMock

import pytest

from models.print_job import PrintJob
from services.dispatch import AgentRegistry, DispatchBroadcaster, NEW_PRINT_JOB_EVENT


NAMESPACE = "/connectprinter"


@pytest.fixture
def registry():
    return AgentRegistry()


@pytest.fixture
def socketio():
    return MagicMock()


@pytest.fixture
def broadcaster(socketio, registry):
    return DispatchBroadcaster(socketio, registry, namespace=NAMESPACE)


@pytest.fixture
def job():
    return PrintJob(
        artifact_ref="1700000000000-abcd1234-doc.pdf",
        original_name="doc.pdf",
        printer_name="Library-1",
        page_count=10,
        copies=3,
        amount=60,
    )


class TestAgentRegistry:

    def test_add_and_remove(self, registry):
        registry.add("sid-1")
        registry.add("sid-2")
        assert len(registry) == 2

        removed = registry.remove("sid-1")

        assert removed.sid == "sid-1"
        assert registry.snapshot() == ["sid-2"]

    def test_remove_unknown_is_harmless(self, registry):
        assert registry.remove("nobody") is None

    def test_register_records_identity(self, registry):
        registry.add("sid-1")
        channel = registry.register("sid-1", "Library-1", platform="Linux", hostname="lab-pc")

        assert channel.printer_name == "Library-1"
        assert registry.agents()[0].to_dict()["printerName"] == "Library-1"
        assert registry.agents()[0].to_dict()["hostname"] == "lab-pc"

    def test_register_keeps_connect_time(self, registry):
        registry.add("sid-1")
        connected_at = registry.agents()[0].connected_at

        channel = registry.register("sid-1", "Library-1")

        assert channel.connected_at == connected_at

    def test_snapshot_is_a_copy(self, registry):
        registry.add("sid-1")
        snapshot = registry.snapshot()

        registry.remove("sid-1")

        assert snapshot == ["sid-1"]

    def test_concurrent_connects(self, registry):
        threads = [
            threading.Thread(target=registry.add, args=(f"sid-{i}",))
            for i in range(50)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(registry) == 50


class TestDispatchBroadcaster:

    def test_emits_to_every_channel(self, broadcaster, socketio, registry, job):
        registry.add("sid-1")
        registry.add("sid-2")
        registry.register("sid-2", "Some-Other-Printer")

        delivered = broadcaster.dispatch(job)

        assert delivered == 2
        targets = [c.kwargs["to"] for c in socketio.emit.call_args_list]
        assert sorted(targets) == ["sid-1", "sid-2"]

    def test_message_format(self, broadcaster, socketio, registry, job):
        registry.add("sid-1")

        broadcaster.dispatch(job)

        args, kwargs = socketio.emit.call_args
        assert args[0] == NEW_PRINT_JOB_EVENT
        assert args[1] == {
            "jobId": job.id,
            "printerName": "Library-1",
            "artifactRef": "1700000000000-abcd1234-doc.pdf",
            "fileUrl": "/uploads/1700000000000-abcd1234-doc.pdf",
            "filename": "doc.pdf",
            "copies": 3,
            "pageCount": 10,
        }
        assert kwargs["namespace"] == NAMESPACE

    def test_zero_agents_is_not_an_error(self, broadcaster, socketio, job):
        assert broadcaster.dispatch(job) == 0
        socketio.emit.assert_not_called()

    def test_failed_emit_does_not_stop_broadcast(self, broadcaster, socketio, registry, job):
        registry.add("sid-1")
        registry.add("sid-2")
        registry.add("sid-3")
        socketio.emit.side_effect = [None, RuntimeError("gone"), None]

        delivered = broadcaster.dispatch(job)

        assert delivered == 2
        assert socketio.emit.call_count == 3

    def test_send_to_single_channel(self, broadcaster, socketio, job):
        assert broadcaster.send_to("sid-9", job) is True
        assert socketio.emit.call_args.kwargs["to"] == "sid-9"

    def test_send_to_reports_failure(self, broadcaster, socketio, job):
        socketio.emit.side_effect = RuntimeError("gone")
        assert broadcaster.send_to("sid-9", job) is False
