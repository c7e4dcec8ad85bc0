"""User-facing narration printed before each major step."""

import logging
import sys
from typing import Optional, TextIO


def announce(message: str, stream: Optional[TextIO] = None) -> None:
    """Print ``==> message`` preceded by a blank line and log it."""
    stream = stream or sys.stdout
    stream.write(f"\n==> {message}\n")
    stream.flush()
    logging.getLogger("laptop.console").info(message)


def report_failure(stream: Optional[TextIO] = None) -> None:
    """Print the single failure line shown when a run aborts."""
    stream = stream or sys.stderr
    stream.write("failed\n\n")
    stream.flush()
