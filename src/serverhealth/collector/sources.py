"""Source readers for pseudo-files and external commands.

These helpers never raise for an unavailable source: a missing file reads as
empty text and a failed command returns ``None``.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


def read_text(path: str | Path) -> str:
    """Return the contents of *path*, or ``""`` if it cannot be read."""
    try:
        with open(path, encoding="utf-8", errors="replace") as fh:
            return fh.read()
    except OSError as exc:
        logger.debug("Cannot read %s: %s", path, exc)
        return ""


def read_lines(path: str | Path) -> list[str]:
    return read_text(path).splitlines()


def which(command: str) -> str | None:
    return shutil.which(command)


def run_command(args: list[str], timeout: float | None = None) -> str | None:
    """Run *args* and return its stdout with trailing whitespace stripped.

    Returns ``None`` when the executable is missing, exits non-zero or
    exceeds *timeout* seconds. stderr is discarded.
    """
    try:
        result = subprocess.run(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError:
        logger.debug("Command not found: %s", args[0])
        return None
    except subprocess.TimeoutExpired:
        logger.warning("Command timed out after %ss: %s", timeout, " ".join(args))
        return None
    except OSError as exc:
        logger.debug("Command %s failed to start: %s", args[0], exc)
        return None

    if result.returncode != 0:
        logger.debug("Command %s exited with %d", args[0], result.returncode)
        return None
    return result.stdout.rstrip()
