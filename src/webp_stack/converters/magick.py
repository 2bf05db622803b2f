"""
Converters backed by the ImageMagick and GraphicsMagick binaries.

Both accept the same "-define webp:..." settings, so they share one
implementation and differ only in how the binary is found and invoked.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Any, ClassVar

from ..exceptions import ConverterCommandError, SystemRequirementsNotMetError
from ..options import metadata_parts
from .base import AbstractConverter

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


class MagickBinaryConverter(AbstractConverter):
    """Shared code for ImageMagick/GraphicsMagick."""

    binary_names: ClassVar[tuple[str, ...]] = ()
    subcommand: ClassVar[list[str]] = []
    version_args: ClassVar[list[str]] = []

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.binary: str | None = None

    def get_option_defaults_extra(self) -> dict[str, Any]:
        return {"binary-path": None, "timeout": DEFAULT_TIMEOUT}

    def find_binary(self) -> str | None:
        explicit = self.options.get("binary-path")
        if explicit:
            return shutil.which(explicit)
        for name in self.binary_names:
            found = shutil.which(name)
            if found:
                return found
        return None

    def _run(self, cmd: list[str]) -> subprocess.CompletedProcess[str]:
        timeout = float(self.options["timeout"])
        try:
            return subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                check=False,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ConverterCommandError(cmd, 124, f"TimeoutExpired after {timeout}s") from e
        except FileNotFoundError as e:
            raise SystemRequirementsNotMetError(f"{cmd[0]} could not be executed") from e

    def has_webp_delegate(self, version_output: str) -> bool:
        return "webp" in version_output.lower()

    def check_operationality(self) -> None:
        self.binary = self.find_binary()
        if self.binary is None:
            raise SystemRequirementsNotMetError(
                f"{self.get_converter_display_name()} is not installed "
                f"(looked for {', '.join(self.binary_names)})"
            )

    def check_convertability(self) -> None:
        cmd = [self.binary or self.binary_names[0]] + self.version_args
        result = self._run(cmd)
        if result.returncode != 0 or not self.has_webp_delegate(result.stdout):
            raise SystemRequirementsNotMetError(
                f"{self.get_converter_display_name()} was compiled without WebP support"
            )

    def create_command_line_options(self) -> list[str]:
        options = self.options
        args = ["-quality", str(self.get_calculated_quality())]

        if options["lossless"] is True:
            args += ["-define", "webp:lossless=true"]
            if options["near-lossless"] != 100:
                args += ["-define", f"webp:near-lossless={options['near-lossless']}"]

        args += ["-define", f"webp:alpha-quality={options['alpha-quality']}"]
        args += ["-define", f"webp:method={options['method']}"]

        if options["auto-filter"]:
            args += ["-define", "webp:auto-filter=true"]
        if options["low-memory"]:
            args += ["-define", "webp:low-memory=true"]
        if options.get("preset") is not None:
            args += ["-define", f"webp:image-hint={options['preset']}"]

        if not metadata_parts(options):
            args.append("-strip")
        return args

    def do_actual_convert(self) -> None:
        binary = self.binary or self.find_binary() or self.binary_names[0]
        cmd = (
            [binary]
            + self.subcommand
            + [str(self.source)]
            + self.create_command_line_options()
            + ["webp:" + str(self.destination)]
        )

        logger.debug("Running: %s", " ".join(cmd))
        self.log_line(f"Executing {self.get_converter_display_name()}: " + " ".join(cmd))
        result = self._run(cmd)
        if result.returncode != 0:
            raise ConverterCommandError(cmd, result.returncode, result.stderr)


class ImageMagick(MagickBinaryConverter):
    converter_id = "imagemagick"
    display_name = "ImageMagick"

    binary_names = ("magick", "convert")
    version_args = ["-version"]


class GraphicsMagick(MagickBinaryConverter):
    converter_id = "graphicsmagick"
    display_name = "GraphicsMagick"

    binary_names = ("gm",)
    subcommand = ["convert"]
    version_args = ["version"]

    def has_webp_delegate(self, version_output: str) -> bool:
        for line in version_output.splitlines():
            if line.strip().lower().startswith("webp"):
                return "yes" in line.lower()
        return False
