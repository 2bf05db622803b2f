"""
Quality selection for converters.

Handles the "quality" option: a fixed number, or "auto" which reuses the
encoding quality of a JPEG source. Whatever is chosen is capped by
"max-quality". The decision is made once per converter instance.
"""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import Any, Callable, Mapping

import numpy as np
from PIL import Image, UnidentifiedImageError

from .log import LogSink, NullLogSink

logger = logging.getLogger(__name__)

# IJG standard luminance quantization table (natural order).
STANDARD_LUMINANCE_TABLE = np.array([
    16, 11, 10, 16, 24, 40, 51, 61,
    12, 12, 14, 19, 26, 58, 60, 55,
    14, 13, 16, 24, 40, 57, 69, 56,
    14, 17, 22, 29, 51, 87, 80, 62,
    18, 22, 37, 56, 68, 109, 103, 77,
    24, 35, 55, 64, 81, 104, 113, 92,
    49, 64, 78, 87, 103, 121, 120, 101,
    72, 92, 95, 98, 112, 100, 103, 99,
], dtype=np.int64)

PIL_FORMAT_MIME_TYPES = {
    "JPEG": "image/jpeg",
    "MPO": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "GIF": "image/gif",
}

QualityDetector = Callable[[Path], "int | None"]


def guess_mime_type(path: Path) -> str | None:
    """
    Guess the mime type of an image.

    Lenient: asks Pillow first and falls back to the file extension, so a
    broken file named "x.jpg" is still reported as image/jpeg.
    """
    try:
        with Image.open(path) as img:
            mime = PIL_FORMAT_MIME_TYPES.get(img.format or "")
            if mime:
                return mime
    except (OSError, UnidentifiedImageError, ValueError):
        pass

    mime, _ = mimetypes.guess_type(str(path))
    return mime


def _scaled_tables() -> np.ndarray:
    """Standard table scaled the way libjpeg does it, one row per quality 1..100."""
    qualities = np.arange(1, 101, dtype=np.int64)
    scale = np.where(qualities < 50, 5000 // qualities, 200 - 2 * qualities)
    tables = (STANDARD_LUMINANCE_TABLE[None, :] * scale[:, None] + 50) // 100
    return np.clip(tables, 1, 255)


_SCALED_TABLE_SUMS = _scaled_tables().sum(axis=1)


def detect_jpeg_quality(path: Path) -> int | None:
    """
    Estimate the quality a JPEG was saved with.

    Compares the luminance quantization table against the standard table
    scaled for every quality. Returns None if the file is not a readable
    JPEG.
    """
    try:
        with Image.open(path) as img:
            tables = getattr(img, "quantization", None)
            if not tables or 0 not in tables:
                return None
            luminance = np.asarray(list(tables[0]), dtype=np.int64)
    except (OSError, UnidentifiedImageError, ValueError) as e:
        logger.debug("Quality detection failed for %s: %s", path, e)
        return None

    if luminance.size != 64:
        return None

    distance = np.abs(_SCALED_TABLE_SUMS - luminance.sum())
    return int(np.argmin(distance)) + 1


@dataclass(frozen=True)
class QualityDecision:
    resolved_quality: int
    detection_attempted: bool = False
    detection_failed: bool = False


class QualityPolicy:
    """Resolves the quality to encode with for one source and option set."""

    def __init__(
        self,
        source: Path,
        options: Mapping[str, Any],
        log: LogSink | None = None,
        detector: QualityDetector = detect_jpeg_quality,
        mime_type: str | None = None,
    ):
        self.source = Path(source)
        self.options = options
        self._log = log or NullLogSink()
        self._detector = detector
        self._mime_type = mime_type

    @cached_property
    def mime_type(self) -> str | None:
        return self._mime_type or guess_mime_type(self.source)

    @cached_property
    def decision(self) -> QualityDecision:
        options = self.options
        max_quality = options["max-quality"]
        quality = options["quality"]

        if quality != "auto":
            q = min(quality, max_quality)
            self._log.log_line(f"Quality: {q}. ")
            return QualityDecision(resolved_quality=q)

        if self.mime_type != "image/jpeg":
            q = min(options["default-quality"], max_quality)
            self._log.log_line(f"Quality: {q}. ")
            return QualityDecision(resolved_quality=q)

        detected = self._detector(self.source)
        if detected is None:
            default = options["default-quality"]
            self._log.log_line(
                f"Quality of source could not be established - using default instead ({default})."
            )
            return QualityDecision(
                resolved_quality=min(default, max_quality),
                detection_attempted=True,
                detection_failed=True,
            )

        if detected > max_quality:
            self._log.log_line(
                f"Quality of source is {detected}. This is higher than max-quality, "
                f"so using max-quality instead ({max_quality})"
            )
        else:
            self._log.log_line(f"Quality set to same as source: {detected}")

        return QualityDecision(
            resolved_quality=min(detected, max_quality),
            detection_attempted=True,
        )

    def get_calculated_quality(self) -> int:
        return self.decision.resolved_quality

    def is_quality_detection_required_but_failing(self) -> bool:
        if self.options["quality"] != "auto":
            return False
        return self.decision.detection_failed
