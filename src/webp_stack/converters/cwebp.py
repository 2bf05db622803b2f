"""
Converter backed by the cwebp command-line tool.

This module provides:
- Locating the cwebp binary (explicit path, PATH, common system paths)
- Building the cwebp argument list from the conversion options
- Automatic retry with a partition limit on partition overflow errors
"""

from __future__ import annotations

import logging
import math
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import Any

from ..exceptions import ConverterCommandError, SystemRequirementsNotMetError
from .base import AbstractConverter

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0

COMMON_SYSTEM_PATHS = [
    "/usr/bin/cwebp",
    "/usr/local/bin/cwebp",
    "/usr/gnu/bin/cwebp",
    "/usr/syno/bin/cwebp",
]


def run_cwebp(args: list[str], timeout: float = DEFAULT_TIMEOUT) -> tuple[int, str, str]:
    """Run cwebp with the given arguments."""
    try:
        result = subprocess.run(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            check=False,
            timeout=timeout,
        )
        return result.returncode, result.stdout, result.stderr
    except subprocess.TimeoutExpired:
        return 124, "", f"TimeoutExpired after {timeout}s"
    except FileNotFoundError:
        return 127, "", "cwebp not found. Install webp package."


def _is_partition_overflow(stderr: str) -> bool:
    """Check if error is a partition overflow (retry-able)."""
    if not stderr:
        return False
    return "PARTITION0_OVERFLOW" in stderr or "Error code: 6" in stderr


def find_cwebp(options: dict[str, Any]) -> str | None:
    """Locate a usable cwebp binary, or None."""
    explicit = options.get("binary-path")
    if explicit:
        return explicit if Path(explicit).is_file() else None

    found = shutil.which("cwebp")
    if found:
        return found

    if options.get("try-common-system-paths", True):
        for candidate in COMMON_SYSTEM_PATHS:
            if Path(candidate).is_file():
                return candidate
    return None


class Cwebp(AbstractConverter):
    converter_id = "cwebp"
    display_name = "cwebp"

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.binary: str | None = None

    def get_option_defaults_extra(self) -> dict[str, Any]:
        return {
            "binary-path": None,
            "try-common-system-paths": True,
            "command-line-options": "",
            "timeout": DEFAULT_TIMEOUT,
            "max-retries": 4,
        }

    def check_operationality(self) -> None:
        self.binary = find_cwebp(self.options)
        if self.binary is None:
            raise SystemRequirementsNotMetError(
                "cwebp is not installed (no binary found on PATH or in common system paths)"
            )

    def create_command_line_options(self) -> list[str]:
        """cwebp arguments for the current options, without source and output."""
        options = self.options
        args: list[str] = []

        if options.get("preset") is not None:
            args += ["-preset", options["preset"]]

        args += ["-metadata", options["metadata"]]

        if options.get("size-in-percentage") is not None:
            target = math.floor(options["size-in-percentage"] / 100 * self.source.stat().st_size)
            args += ["-size", str(target)]
        else:
            args += ["-q", str(self.get_calculated_quality())]

        if options["lossless"] is True:
            if options["near-lossless"] == 100:
                args.append("-lossless")
            else:
                args += ["-near_lossless", str(options["near-lossless"])]

        if options["alpha-quality"] != 100:
            args += ["-alpha_q", str(options["alpha-quality"])]

        if options["auto-filter"]:
            args.append("-af")

        args += ["-m", str(options["method"])]

        if options["low-memory"]:
            args.append("-low_memory")

        extra = options.get("command-line-options") or ""
        if extra:
            args += shlex.split(extra)

        args.append("-mt")
        return args

    def do_actual_convert(self) -> None:
        binary = self.binary or find_cwebp(self.options) or "cwebp"
        cmd = [binary] + self.create_command_line_options() + [str(self.source), "-o", str(self.destination)]
        timeout = float(self.options["timeout"])

        logger.debug("Running: %s", " ".join(cmd))
        self.log_line("Executing cwebp: " + " ".join(cmd))
        returncode, stdout, stderr = run_cwebp(cmd, timeout)

        if returncode == 0:
            return
        if returncode == 127:
            raise SystemRequirementsNotMetError(stderr)
        if not _is_partition_overflow(stderr):
            raise ConverterCommandError(cmd, returncode, stderr)

        max_retries = int(self.options["max-retries"])
        retry_cmd = list(cmd)
        for attempt in range(1, max_retries + 1):
            limit = min(100, round(attempt * 100 / max_retries))
            retry_cmd = cmd[:-3] + ["-partition_limit", str(limit)] + cmd[-3:]

            self.log_line(f"Partition overflow, retrying with -partition_limit {limit}")
            logger.info("Retry %d/%d with partition limit %d", attempt, max_retries, limit)
            returncode, stdout, stderr = run_cwebp(retry_cmd, timeout)

            if returncode == 0:
                return

            if not _is_partition_overflow(stderr):
                raise ConverterCommandError(retry_cmd, returncode, stderr)

        raise ConverterCommandError(retry_cmd, returncode, stderr)
