"""
Base class shared by every converter.

A converter is used through the classmethod convert(source, destination,
options, logger). It runs the common life cycle (input check, option
validation, operationality checks, skip handling) and then hands the
actual encoding to do_actual_convert(), wrapped by the lossless policy.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from functools import cached_property
from pathlib import Path
from typing import Any, ClassVar, Mapping

from ..exceptions import ConversionFailedError, ConversionSkippedError, InvalidInputError
from ..log import LogSink, NullLogSink
from ..lossless import LosslessAutoPolicy
from ..options import (
    GENERAL_DEFAULTS,
    SKIP_INPUT_CHECK,
    SUPPRESS_SUCCESS_MESSAGE,
    apply_image_type_options,
    merge_options,
    validate_options,
)
from ..quality import QualityPolicy, guess_mime_type

logger = logging.getLogger(__name__)

SUPPORTED_SOURCE_TYPES = ("image/jpeg", "image/png")


class AbstractConverter(ABC):
    """Common behaviour of all converters."""

    converter_id: ClassVar[str] = ""
    display_name: ClassVar[str] = ""

    supports_lossless: ClassVar[bool] = True
    pass_on_lossless_auto: ClassVar[bool] = False
    supports_auto_quality: ClassVar[bool] = True

    def __init__(
        self,
        source: Path | str,
        destination: Path | str,
        options: Mapping[str, Any] | None = None,
        logger: LogSink | None = None,
    ):
        self.source = Path(source)
        self.destination = Path(destination)
        self.log = logger or NullLogSink()
        self.given_options: dict[str, Any] = dict(options or {})
        self.options: dict[str, Any] = merge_options(
            GENERAL_DEFAULTS, self.get_option_defaults_extra(), self.given_options
        )
        self.lossless_policy = LosslessAutoPolicy()

    @classmethod
    def convert(
        cls,
        source: Path | str,
        destination: Path | str,
        options: Mapping[str, Any] | None = None,
        logger: LogSink | None = None,
        **kwargs: Any,
    ) -> None:
        """Convert source to destination. Raises a WebPConvertError on failure."""
        instance = cls(source, destination, options, logger, **kwargs)
        instance.do_convert()

    @classmethod
    def get_converter_display_name(cls) -> str:
        return cls.display_name or cls.__name__

    def get_option_defaults_extra(self) -> dict[str, Any]:
        """Converter-specific option defaults. Override to add some."""
        return {}

    def check_operationality(self) -> None:
        """Raise ConverterNotOperationalError if prerequisites are missing."""

    def check_convertability(self) -> None:
        """Raise ConverterNotOperationalError if this source type can't be handled."""

    @abstractmethod
    def do_actual_convert(self) -> None:
        """Write self.source as WebP to self.destination."""

    def log_line(self, message: str, style: str = "") -> None:
        self.log.log_line(message, style)

    def blank_line(self) -> None:
        self.log.blank_line()

    @cached_property
    def mime_type_of_source(self) -> str | None:
        return guess_mime_type(self.source)

    @cached_property
    def quality_policy(self) -> QualityPolicy:
        return QualityPolicy(
            self.source, self.options, log=self.log, mime_type=self.mime_type_of_source
        )

    def get_calculated_quality(self) -> int:
        return self.quality_policy.get_calculated_quality()

    def is_quality_detection_required_but_failing(self) -> bool:
        return self.quality_policy.is_quality_detection_required_but_failing()

    def missing_output_error(self, path: Path) -> ConversionFailedError:
        return ConversionFailedError(
            f"{self.get_converter_display_name()} reported success, but no file was created at {path}"
        )

    def check_input(self) -> None:
        """
        Check that the source is an existing JPEG or PNG.

        Raises InvalidInputError: If it is not
        """
        if not self.source.exists():
            raise InvalidInputError(f"Source file was not found: {self.source}")
        if not self.source.is_file():
            raise InvalidInputError(f"Source is not a file: {self.source}")
        if self.mime_type_of_source not in SUPPORTED_SOURCE_TYPES:
            raise InvalidInputError(
                f"Unsupported mime type of source: {self.mime_type_of_source or 'unknown'}"
            )
        if self.destination.resolve() == self.source.resolve():
            raise InvalidInputError("Destination cannot be the same as the source")

    def prepare_options(self) -> None:
        self.options = apply_image_type_options(self.options, self.mime_type_of_source)
        validate_options(self.options)
        if self.options["log-call-arguments"]:
            self.log_line(f"source: {self.source}")
            self.log_line(f"destination: {self.destination}")
            public = {k: v for k, v in self.given_options.items() if not k.startswith("_")}
            self.log_line(f"options: {public}")
            self.blank_line()

    def run_actual_convert(self) -> None:
        self.lossless_policy.run(self)

    def do_convert(self) -> None:
        begin = time.monotonic()

        if not self.options.get(SKIP_INPUT_CHECK):
            self.check_input()

        self.prepare_options()
        self.check_operationality()
        self.check_convertability()

        if self.options["skip"]:
            raise ConversionSkippedError("skipped (the skip option is set)")

        if self.supports_auto_quality and self.is_quality_detection_required_but_failing():
            self.log_line(
                "Warning: quality is set to auto, but the quality of the source could not be "
                f"detected. Using default-quality ({self.options['default-quality']})",
                "bold",
            )

        self.destination.parent.mkdir(parents=True, exist_ok=True)

        logger.debug("%s: %s -> %s", self.converter_id or type(self).__name__, self.source, self.destination)
        self.run_actual_convert()

        if not self.destination.exists():
            raise self.missing_output_error(self.destination)

        if not self.options.get(SUPPRESS_SUCCESS_MESSAGE):
            self._log_success(begin)

    def _log_success(self, begin: float) -> None:
        elapsed_ms = round((time.monotonic() - begin) * 1000)
        source_size = self.source.stat().st_size
        dest_size = self.destination.stat().st_size
        reduction = round((source_size - dest_size) / source_size * 100) if source_size else 0
        self.blank_line()
        self.log_line(
            f"Converted image in {elapsed_ms} ms, reducing file size with {reduction}% "
            f"(went from {source_size} bytes to {dest_size} bytes)"
        )
