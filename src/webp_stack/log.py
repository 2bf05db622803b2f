"""
Conversion log sinks.

Converters write a human-readable account of what they tried through a
small sink interface: log_line(message, style) and blank_line(). The style
is a hint ("bold", "italic", ...) and never changes behaviour.
"""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class LogSink(Protocol):
    def log_line(self, message: str, style: str = "") -> None:
        ...

    def blank_line(self) -> None:
        ...


class NullLogSink:
    """Discards everything."""

    def log_line(self, message: str, style: str = "") -> None:
        pass

    def blank_line(self) -> None:
        pass


class BufferLogSink:
    """Collects log lines in memory."""

    def __init__(self) -> None:
        self.lines: list[tuple[str, str]] = []

    def log_line(self, message: str, style: str = "") -> None:
        self.lines.append((message, style))

    def blank_line(self) -> None:
        self.lines.append(("", ""))

    def get_text(self, newline: str = "\n") -> str:
        return newline.join(message for message, _ in self.lines)

    def clear(self) -> None:
        self.lines.clear()


class StdlibLogSink:
    """Forwards conversion log lines to a standard library logger."""

    def __init__(self, target: logging.Logger | None = None, level: int = logging.INFO):
        self._logger = target or logger
        self._level = level

    def log_line(self, message: str, style: str = "") -> None:
        if message:
            self._logger.log(self._level, "%s", message)

    def blank_line(self) -> None:
        # Blank lines only matter for buffered/plain-text output.
        pass
