"""Progress sinks for long-running saves."""

import logging
import sys
from typing import Optional, Protocol, TextIO

logger = logging.getLogger(__name__)


def progress_message(index: int, total: int) -> str:
    """Human-readable progress text for the ``index``-th (1-based) document."""
    return f"Processing file {index} of {total}..."


class ProgressSink(Protocol):
    """Receives progress text during a save and is dismissed when it ends."""

    def update(self, message: str) -> None:
        ...

    def done(self) -> None:
        ...


class LoggingProgress:
    """Report progress through the ``dbprops.progress`` logger."""

    def update(self, message: str) -> None:
        logger.info(message)

    def done(self) -> None:
        logger.debug("Progress dismissed")


class ConsoleProgress:
    """Show progress on one terminal line that each update overwrites."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stderr
        self._shown = False

    def update(self, message: str) -> None:
        self.stream.write(f"\r{message}")
        self.stream.flush()
        self._shown = True

    def done(self) -> None:
        if self._shown:
            self.stream.write("\n")
            self.stream.flush()
            self._shown = False


class NullProgress:
    """Discard progress."""

    def update(self, message: str) -> None:
        pass

    def done(self) -> None:
        pass
