"""
chainsession.orchestration.error_sink - Failure Output Channel
================================================================

Every failure path writes one human-readable line to an ErrorSink and then
asks it to make itself visible (e.g. bring an output panel to the front).

The line is the error's structured ``reason`` when it carries one,
otherwise the error itself rendered as text.

Implementations:
    - LoggingErrorSink:    writes through structlog (default)
    - CollectingErrorSink: keeps lines in memory (tests, embedding UIs)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import structlog

logger = structlog.get_logger()


class ErrorSink(ABC):
    """Destination for human-readable failure lines."""

    @abstractmethod
    def write_line(self, line: str) -> None:
        """Append one line of output."""

    @abstractmethod
    def show(self) -> None:
        """Make the output visible to the user."""


class LoggingErrorSink(ErrorSink):
    """Sink that forwards lines to structlog at error level."""

    def __init__(self) -> None:
        self._logger = logger.bind(component="error_sink")

    def write_line(self, line: str) -> None:
        self._logger.error("session_error", line=line)

    def show(self) -> None:
        """No-op; log lines are already visible."""


class CollectingErrorSink(ErrorSink):
    """Sink that keeps every line in memory.

    Attributes:
        lines: Lines written so far, oldest first.
        visible: True once show() has been called.
        show_count: Number of show() calls.
    """

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.visible: bool = False
        self.show_count: int = 0

    def write_line(self, line: str) -> None:
        self.lines.append(line)

    def show(self) -> None:
        self.visible = True
        self.show_count += 1

    def clear(self) -> None:
        self.lines.clear()
        self.visible = False


def failure_line(error: BaseException) -> str:
    """The line reported for ``error``: its ``reason`` if set, else its text."""
    reason: Any = getattr(error, "reason", None)
    if reason:
        return str(reason)
    return str(error) or type(error).__name__


def report(sink: ErrorSink, error: BaseException) -> str:
    """Write ``error`` to ``sink``, make it visible, return the line."""
    line = failure_line(error)
    sink.write_line(line)
    sink.show()
    return line
