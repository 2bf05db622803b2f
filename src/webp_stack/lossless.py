"""
The "lossless: auto" policy.

When a converter supports lossless encoding and lossless is set to "auto",
the image is encoded twice (lossy and lossless) and the smaller file wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .converters.base import AbstractConverter

logger = logging.getLogger(__name__)

LOSSY_SUFFIX = ".lossy.webp"
LOSSLESS_SUFFIX = ".lossless.webp"


@dataclass
class LosslessRun:
    """Bookkeeping for one lossy/lossless comparison."""
    final_path: Path
    lossy_path: Path
    lossless_path: Path
    lossy_size: int = 0
    lossless_size: int = 0

    @classmethod
    def for_destination(cls, destination: Path) -> LosslessRun:
        return cls(
            final_path=destination,
            lossy_path=destination.with_name(destination.name + LOSSY_SUFFIX),
            lossless_path=destination.with_name(destination.name + LOSSLESS_SUFFIX),
        )

    @property
    def lossless_wins(self) -> bool:
        return self.lossless_size <= self.lossy_size

    def cleanup(self) -> None:
        self.lossy_path.unlink(missing_ok=True)
        self.lossless_path.unlink(missing_ok=True)


def _reduction(source: Path, output: Path) -> int:
    source_size = source.stat().st_size
    if source_size == 0:
        return 0
    return round((source_size - output.stat().st_size) / source_size * 100)


class LosslessAutoPolicy:
    """Decides between a single conversion and the dual lossy/lossless run."""

    def applies_to(self, converter: AbstractConverter) -> bool:
        return (
            not converter.pass_on_lossless_auto
            and converter.options.get("lossless") == "auto"
            and converter.supports_lossless
        )

    def run(self, converter: AbstractConverter) -> None:
        if not self.applies_to(converter):
            converter.do_actual_convert()
            return
        self.convert_two_and_select_smallest(converter)

    def convert_two_and_select_smallest(self, converter: AbstractConverter) -> LosslessRun:
        destination = converter.destination
        original_options = converter.options
        run = LosslessRun.for_destination(destination)

        converter.log_line(
            "Lossless is set to auto. Converting to both lossless and lossy and selecting the smallest file"
        )
        try:
            converter.blank_line()
            converter.log_line("Converting to lossy")
            self._convert_variant(converter, run.lossy_path, lossless=False)
            run.lossy_size = run.lossy_path.stat().st_size
            converter.log_line(f"Reduction: {_reduction(converter.source, run.lossy_path)}% ")

            converter.blank_line()
            converter.log_line("Converting to lossless")
            self._convert_variant(converter, run.lossless_path, lossless=True)
            run.lossless_size = run.lossless_path.stat().st_size
            converter.log_line(f"Reduction: {_reduction(converter.source, run.lossless_path)}% ")
            converter.blank_line()
        except Exception:
            run.cleanup()
            raise
        finally:
            converter.destination = destination
            converter.options = original_options

        if run.lossless_wins:
            converter.log_line("Picking lossless")
            run.lossy_path.unlink()
            run.lossless_path.replace(destination)
        else:
            converter.log_line("Picking lossy")
            run.lossless_path.unlink()
            run.lossy_path.replace(destination)

        logger.debug(
            "lossless-auto for %s: lossy=%d bytes, lossless=%d bytes",
            destination.name, run.lossy_size, run.lossless_size,
        )
        return run

    @staticmethod
    def _convert_variant(converter: AbstractConverter, path: Path, lossless: bool) -> None:
        converter.destination = path
        converter.options = {**converter.options, "lossless": lossless}
        converter.do_actual_convert()
        if not path.exists():
            raise converter.missing_output_error(path)
