"""
Stack converter: try a list of converters until one succeeds.

The order is "converters" followed by "extra-converters", with the
"preferred-converters" moved to the front and, optionally, shuffled.
Candidates are tried one at a time; the first success wins.
"""

from __future__ import annotations

import logging
import random
import time
import traceback
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from ..exceptions import (
    ConfigurationError,
    ConversionFailedError,
    ConversionSkippedError,
    ConverterNotFoundError,
    ConverterNotOperationalError,
    EmptyStackError,
    StackFailedError,
    StackNotOperationalError,
)
from ..log import LogSink
from ..options import ConverterSpec, resolve_converter_options
from .base import AbstractConverter
from .registry import get_converter_class

logger = logging.getLogger(__name__)

DEFAULT_CONVERTERS: list[str] = ["cwebp", "pillow", "imagemagick", "graphicsmagick", "ewww"]


class AttemptOutcome(Enum):
    SUCCESS = "success"
    NOT_OPERATIONAL = "not_operational"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class AttemptResult:
    """Outcome of trying one converter."""
    converter_id: str
    outcome: AttemptOutcome
    duration_ms: int
    message: str = ""


def order_converters(
    specs: Iterable[ConverterSpec],
    preferred: Sequence[str] = (),
    shuffle: bool = False,
    rng: random.Random | None = None,
) -> list[ConverterSpec]:
    """
    Effective try order.

    Each preferred id is moved to the front, walking the preferred list
    backwards so the first preferred id ends up first. Shuffling happens
    after that, on the whole list.
    """
    ordered = list(specs)
    for preferred_id in reversed(list(preferred)):
        for i, spec in enumerate(ordered):
            if spec.id == preferred_id:
                ordered.insert(0, ordered.pop(i))
                break

    if shuffle:
        (rng or random.Random()).shuffle(ordered)
    return ordered


def _elapsed_ms(begin: float) -> int:
    return round((time.monotonic() - begin) * 1000)


class Stack(AbstractConverter):
    converter_id = "stack"
    display_name = "Stack"

    # Lossless "auto" is forwarded to the converters in the stack.
    pass_on_lossless_auto = True
    supports_auto_quality = False

    def __init__(
        self,
        source: Path | str,
        destination: Path | str,
        options: Mapping[str, Any] | None = None,
        logger: LogSink | None = None,
        rng: random.Random | None = None,
    ):
        super().__init__(source, destination, options, logger)
        self.rng = rng
        self.attempts: list[AttemptResult] = []

    def get_option_defaults_extra(self) -> dict[str, Any]:
        return {
            "converters": list(DEFAULT_CONVERTERS),
            "extra-converters": [],
            "preferred-converters": [],
            "converter-options": {},
            "shuffle": False,
        }

    @cached_property
    def candidates(self) -> list[ConverterSpec]:
        options = self.options
        converter_options = options.get("converter-options") or {}
        entries = list(options.get("converters") or []) + list(options.get("extra-converters") or [])
        specs = [ConverterSpec.from_entry(entry, converter_options) for entry in entries]
        return order_converters(
            specs,
            options.get("preferred-converters") or [],
            shuffle=bool(options.get("shuffle")),
            rng=self.rng,
        )

    def do_convert(self) -> None:
        if not self.candidates:
            raise EmptyStackError(
                "Converter stack is empty! - no converters to try, no conversion can be made!"
            )
        super().do_convert()

    def check_operationality(self) -> None:
        self.log_line("Stack converter ignited")

    def do_actual_convert(self) -> None:
        begin_stack = time.monotonic()
        any_runtime_errors = False
        self.attempts = []

        for spec in self.candidates:
            converter_options = resolve_converter_options(self.options, spec)
            converter_class = get_converter_class(spec.converter_class or spec.id)
            display_name = converter_class.get_converter_display_name()

            begin = time.monotonic()
            self.blank_line()
            self.log_line(f"Trying: {spec.id}", "italic")

            try:
                converter_class.convert(self.source, self.destination, converter_options, self.log)
            except ConverterNotOperationalError as e:
                self.log_line(str(e))
                self._record(spec, AttemptOutcome.NOT_OPERATIONAL, begin, str(e))
            except (ConverterNotFoundError, EmptyStackError):
                raise
            except (ConversionFailedError, ConfigurationError) as e:
                # A candidate rejecting its own options counts as a runtime failure.
                self.log_line(str(e), "italic")
                self._log_cause(e)
                any_runtime_errors = True
                self._record(spec, AttemptOutcome.FAILED, begin, str(e))
            except ConversionSkippedError as e:
                self.log_line(str(e))
                self._record(spec, AttemptOutcome.SKIPPED, begin, str(e))
            else:
                self._record(spec, AttemptOutcome.SUCCESS, begin)
                self.log_line(f"{display_name} succeeded :)")
                return

            self.log_line(f"{display_name} failed in {_elapsed_ms(begin)} ms")

        self.blank_line()
        self.log_line(f"Stack failed in {_elapsed_ms(begin_stack)} ms")

        if any_runtime_errors:
            raise StackFailedError(
                "None of the converters in the stack could convert the image. "
                "At least one failed, even though its requirements seemed to be met."
            )
        raise StackNotOperationalError("None of the converters in the stack are operational")

    def _record(self, spec: ConverterSpec, outcome: AttemptOutcome, begin: float, message: str = "") -> None:
        result = AttemptResult(spec.id, outcome, _elapsed_ms(begin), message)
        self.attempts.append(result)
        logger.debug("%s: %s in %d ms", spec.id, outcome.value, result.duration_ms)

    def _log_cause(self, error: BaseException) -> None:
        cause = error.__cause__
        if cause is None:
            return
        self.log_line(str(cause), "italic")
        frames = traceback.extract_tb(cause.__traceback__)
        if frames:
            self.log_line(f" in {frames[-1].filename}, line {frames[-1].lineno}", "italic")
        self.blank_line()
