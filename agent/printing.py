"""
Print capability: hand a PDF to the operating system's spooler.

    - Windows: SumatraPDF in silent mode (the same tool pdf-to-printer
      drives), found on PATH or via SUMATRA_PDF_PATH
    - macOS / Linux: CUPS ``lp``

Each call prints one copy. Success means the spooler accepted the file;
what happens on paper afterwards is not observable from here.
"""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

from logging_config import get_logger


logger = get_logger(__name__)


class SystemPrinter:
    """
    ``print(path) -> bool`` over the OS print command.

    Args:
        printer: OS queue name; None prints to the default printer
        timeout_seconds: Limit for one invocation. A spooler that hangs
            longer fails the copy rather than blocking every later job.
    """

    def __init__(self, printer: Optional[str] = None, timeout_seconds: float = 120.0):
        self.printer = printer
        self.timeout_seconds = timeout_seconds

    def build_command(self, path: Path) -> List[str]:
        if sys.platform.startswith("win"):
            sumatra = os.environ.get("SUMATRA_PDF_PATH", "SumatraPDF.exe")
            target = ["-print-to", self.printer] if self.printer else ["-print-to-default"]
            return [sumatra, *target, "-silent", str(path)]

        command = ["lp"]
        if self.printer:
            command += ["-d", self.printer]
        return command + [str(path)]

    def print(self, path: Path) -> bool:
        command = self.build_command(Path(path))
        logger.debug(f"Running print command: {command}")

        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired:
            logger.error(f"Print command timed out after {self.timeout_seconds:.0f}s: {path}")
            return False
        except OSError as e:
            logger.error(f"Print command could not be started ({command[0]}): {e}")
            return False

        if completed.returncode != 0:
            logger.error(
                f"Print command exited with {completed.returncode}: "
                f"{(completed.stderr or completed.stdout).strip()[:200]}"
            )
            return False

        return True
