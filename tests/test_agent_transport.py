"""
Unit tests for the agent's I/O edges: artifact download, the OS print
command and the Socket.IO client wiring.
"""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests

from agent import AgentConfig, build_agent
from agent.client import AgentClient, JOB_STATUS_UPDATE_EVENT, PRINTER_REGISTERED_EVENT
from agent.fetcher import ArtifactFetcher
from agent.printing import SystemPrinter
from agent.runtime import AgentRuntime
from core.exceptions import TransportError


NAMESPACE = "/connectprinter"


def _response(chunks=(b"%PDF-1.4 ", b"body"), error=None):
    response = MagicMock()
    response.__enter__.return_value = response
    response.iter_content.return_value = list(chunks)
    if error is not None:
        response.raise_for_status.side_effect = error
    return response


# Tests for ArtifactFetcher

class TestArtifactFetcher:

    @pytest.fixture
    def session(self):
        return MagicMock()

    @pytest.fixture
    def fetcher(self, tmp_path, session):
        return ArtifactFetcher("http://coordinator:3000", tmp_path / "downloads",
                               timeout_seconds=7, session=session)

    def test_resolves_relative_locator(self, fetcher):
        assert fetcher.resolve_url("/uploads/a.pdf") == "http://coordinator:3000/uploads/a.pdf"

    def test_keeps_absolute_locator(self, fetcher):
        url = "https://cdn.example.com/uploads/a.pdf"
        assert fetcher.resolve_url(url) == url

    def test_downloads_to_job_file(self, fetcher, session, tmp_path):
        session.get.return_value = _response()

        path = fetcher.fetch("/uploads/a.pdf", "job-1")

        assert path == tmp_path / "downloads" / "job-1.pdf"
        assert path.read_bytes() == b"%PDF-1.4 body"
        session.get.assert_called_once_with(
            "http://coordinator:3000/uploads/a.pdf", stream=True, timeout=7
        )

    def test_http_error_raises_transport_error(self, fetcher, session, tmp_path):
        session.get.return_value = _response(error=requests.HTTPError("404 Not Found"))

        with pytest.raises(TransportError) as exc_info:
            fetcher.fetch("/uploads/missing.pdf", "job-1")

        assert exc_info.value.details["operation"] == "download"
        assert not (tmp_path / "downloads" / "job-1.pdf").exists()

    def test_timeout_raises_transport_error(self, fetcher, session):
        session.get.side_effect = requests.Timeout("read timed out")

        with pytest.raises(TransportError):
            fetcher.fetch("/uploads/a.pdf", "job-1")

    def test_interrupted_stream_removes_partial_file(self, fetcher, session, tmp_path):
        response = _response()

        def broken_stream(chunk_size):
            yield b"%PDF-1.4 "
            raise requests.ConnectionError("connection reset")

        response.iter_content.side_effect = broken_stream
        session.get.return_value = response

        with pytest.raises(TransportError):
            fetcher.fetch("/uploads/a.pdf", "job-1")

        assert not (tmp_path / "downloads" / "job-1.pdf").exists()


# Tests for SystemPrinter

class TestSystemPrinter:

    def test_lp_command_on_linux(self, monkeypatch):
        monkeypatch.setattr("agent.printing.sys.platform", "linux")

        assert SystemPrinter().build_command(Path("/tmp/a.pdf")) == ["lp", "/tmp/a.pdf"]
        assert SystemPrinter("HP_LaserJet").build_command(Path("/tmp/a.pdf")) == \
            ["lp", "-d", "HP_LaserJet", "/tmp/a.pdf"]

    def test_sumatra_command_on_windows(self, monkeypatch):
        monkeypatch.setattr("agent.printing.sys.platform", "win32")
        monkeypatch.setenv("SUMATRA_PDF_PATH", "C:/Tools/SumatraPDF.exe")

        command = SystemPrinter("Front Desk").build_command(Path("job.pdf"))

        assert command == ["C:/Tools/SumatraPDF.exe", "-print-to", "Front Desk", "-silent", "job.pdf"]

    def test_sumatra_default_printer(self, monkeypatch):
        monkeypatch.setattr("agent.printing.sys.platform", "win32")
        monkeypatch.delenv("SUMATRA_PDF_PATH", raising=False)

        command = SystemPrinter().build_command(Path("job.pdf"))

        assert command == ["SumatraPDF.exe", "-print-to-default", "-silent", "job.pdf"]

    @patch("agent.printing.subprocess.run")
    def test_success(self, mock_run):
        mock_run.return_value = subprocess.CompletedProcess([], 0, stdout="request id is P-1", stderr="")

        assert SystemPrinter(timeout_seconds=9).print(Path("a.pdf")) is True
        assert mock_run.call_args.kwargs["timeout"] == 9

    @patch("agent.printing.subprocess.run")
    def test_non_zero_exit(self, mock_run):
        mock_run.return_value = subprocess.CompletedProcess([], 1, stdout="", stderr="lp: no such printer")

        assert SystemPrinter().print(Path("a.pdf")) is False

    @patch("agent.printing.subprocess.run")
    def test_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="lp", timeout=1)

        assert SystemPrinter(timeout_seconds=1).print(Path("a.pdf")) is False

    @patch("agent.printing.subprocess.run")
    def test_missing_binary(self, mock_run):
        mock_run.side_effect = FileNotFoundError("lp")

        assert SystemPrinter().print(Path("a.pdf")) is False


# Tests for AgentClient

@pytest.fixture
def agent_config(tmp_path):
    return AgentConfig(
        server_url="http://coordinator:3000",
        printer_name="Library-1",
        download_dir=tmp_path / "downloads",
        namespace=NAMESPACE,
    )


@pytest.fixture
def sio():
    mock = MagicMock()
    mock.connected = True
    return mock


class TestAgentClient:

    def _handler(self, sio, event):
        for call in sio.on.call_args_list:
            if call.args[0] == event:
                assert call.kwargs["namespace"] == NAMESPACE
                return call.args[1]
        raise AssertionError(f"No handler registered for {event}")

    def test_registers_identity_on_connect(self, agent_config, sio):
        AgentClient(agent_config, sio=sio)

        self._handler(sio, "connect")()

        event, payload = sio.emit.call_args.args
        assert event == PRINTER_REGISTERED_EVENT
        assert payload["printerName"] == "Library-1"
        assert "hostname" in payload and "platform" in payload
        assert sio.emit.call_args.kwargs["namespace"] == NAMESPACE

    def test_report_status(self, agent_config, sio):
        client = AgentClient(agent_config, sio=sio)

        client.report_status("job-1", "completed")

        sio.emit.assert_called_once_with(
            JOB_STATUS_UPDATE_EVENT,
            {"jobId": "job-1", "status": "completed"},
            namespace=NAMESPACE,
        )

    def test_report_status_while_offline_is_dropped(self, agent_config, sio):
        sio.connected = False
        client = AgentClient(agent_config, sio=sio)

        client.report_status("job-1", "completed")

        sio.emit.assert_not_called()

    def test_announcement_is_handed_to_runtime(self, agent_config, sio):
        client = AgentClient(agent_config, sio=sio)
        runtime = MagicMock()
        client.attach(runtime)

        self._handler(sio, "new-print-job")({"jobId": "job-1"})

        runtime.submit.assert_called_once_with({"jobId": "job-1"})

    def test_run_connects_with_retry(self, agent_config, sio):
        client = AgentClient(agent_config, sio=sio)

        client.run()

        sio.connect.assert_called_once_with(
            "http://coordinator:3000",
            namespaces=[NAMESPACE],
            transports=["websocket"],
            retry=True,
        )
        sio.wait.assert_called_once()

    def test_default_client_retries_forever(self, agent_config):
        client = AgentClient(agent_config)

        assert client.sio.reconnection_attempts == 0
        assert client.sio.reconnection_delay == 1.0
        assert client.sio.reconnection_delay_max == 5.0


class TestBuildAgent:

    def test_wires_runtime_to_client(self, agent_config):
        client = build_agent(agent_config)

        assert isinstance(client.runtime, AgentRuntime)
        assert client.runtime.printer_name == "Library-1"

    def test_config_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setattr("agent.config.load_dotenv", lambda **kwargs: None)
        monkeypatch.setenv("SERVER_URL", "http://print.example.com/")
        monkeypatch.setenv("PRINTER_NAME", "Library-2")
        monkeypatch.setenv("DOWNLOAD_DIR", str(tmp_path))
        monkeypatch.setenv("KEEP_DOWNLOADS", "true")

        config = AgentConfig.from_env()

        assert config.server_url == "http://print.example.com"
        assert config.printer_name == "Library-2"
        assert config.keep_downloads is True

    def test_printer_name_defaults_to_hostname(self, monkeypatch):
        monkeypatch.setattr("agent.config.load_dotenv", lambda **kwargs: None)
        monkeypatch.setattr("agent.config.socket.gethostname", lambda: "lab-pc")
        monkeypatch.delenv("PRINTER_NAME", raising=False)

        assert AgentConfig.from_env().printer_name == "Printer-lab-pc"
