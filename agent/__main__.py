"""
Printer agent entry point.

    python -m agent

Settings come from the environment; see agent/config.py.
"""

import logging
import os
import signal
import sys

from agent import AgentConfig, build_agent
from logging_config import setup_logging, get_logger


logger = get_logger(__name__)


def main() -> int:
    setup_logging(
        app_name="cloud_print_agent",
        log_level=logging.DEBUG if os.environ.get("AGENT_DEBUG") == "1" else logging.INFO,
        enable_file_logging=os.environ.get("AGENT_FILE_LOGGING", "0") == "1",
    )

    config = AgentConfig.from_env()
    logger.info("Cloud Printer Agent starting")
    logger.info(f"  Server:   {config.server_url}")
    logger.info(f"  Printer:  {config.printer_name}")
    logger.info(f"  Spooler:  {config.system_printer or 'default printer'}")
    logger.info(f"  Download: {config.download_dir}")

    client = build_agent(config)

    def shutdown(signum, frame):
        logger.warning("Shutting down agent...")
        client.disconnect()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    try:
        client.run()
    finally:
        if client.runtime is not None:
            client.runtime.shutdown()
        logger.info("Agent stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
