"""
Printer agent for CloudPrint.

Runs next to a physical printer, listens for job announcements from the
coordinator and prints the ones addressed to its printer name.

- config: AgentConfig from environment
- fetcher: ArtifactFetcher (HTTP download)
- printing: SystemPrinter (OS spooler)
- runtime: AgentRuntime (per-job state machine)
- client: AgentClient (Socket.IO transport)
"""

from .config import AgentConfig
from .fetcher import ArtifactFetcher
from .printing import SystemPrinter
from .runtime import AgentRuntime
from .client import AgentClient

__all__ = [
    "AgentConfig",
    "ArtifactFetcher",
    "SystemPrinter",
    "AgentRuntime",
    "AgentClient",
    "build_agent",
]


def build_agent(config: AgentConfig) -> AgentClient:
    """Wire fetcher, printer, runtime and transport for ``config``."""
    client = AgentClient(config)
    runtime = AgentRuntime(
        printer_name=config.printer_name,
        fetcher=ArtifactFetcher(
            config.server_url,
            config.download_dir,
            timeout_seconds=config.fetch_timeout,
        ),
        printer=SystemPrinter(config.system_printer, timeout_seconds=config.print_timeout),
        reporter=client.report_status,
        keep_downloads=config.keep_downloads,
    )
    client.attach(runtime)
    return client
