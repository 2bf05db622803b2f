"""
Top-level conversion entry point.

convert() runs the stack converter, which tries each configured converter
in turn until one produces the destination file.
"""

from __future__ import annotations

import random
from pathlib import Path
from typing import Any, Mapping

from .converters.stack import Stack
from .log import LogSink, StdlibLogSink


def convert(
    source: Path | str,
    destination: Path | str,
    options: Mapping[str, Any] | None = None,
    logger: LogSink | None = None,
    rng: random.Random | None = None,
) -> None:
    """
    Convert a JPEG or PNG to WebP.

    Raises:
        ConfigurationError: Bad options, empty stack or unknown converter
        StackNotOperationalError: No converter in the stack was usable
        StackFailedError: At least one converter failed at runtime
        InvalidInputError: The source is missing or not a JPEG/PNG
    """
    Stack.convert(source, destination, options, logger or StdlibLogSink(), rng=rng)
