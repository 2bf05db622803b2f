"""Configuration for the conversion stack, loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

from .exceptions import ConfigurationError
from .converters.stack import DEFAULT_CONVERTERS


def _split(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off", ""):
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


def parse_quality(value: str) -> int | str:
    """Either "auto" or an integer."""
    if value.strip().lower() == "auto":
        return "auto"
    return _parse_int("quality", value)


def parse_lossless(value: str) -> bool | str:
    """Either "auto" or a boolean."""
    if value.strip().lower() == "auto":
        return "auto"
    return _parse_bool("lossless", value)


@dataclass(frozen=True)
class StackConfig:
    """Stack configuration."""

    converters: tuple[str, ...] = tuple(DEFAULT_CONVERTERS)
    extra_converters: tuple[str, ...] = ()
    preferred_converters: tuple[str, ...] = ()
    shuffle: bool = False
    quality: int | str = "auto"
    default_quality: int = 75
    max_quality: int = 85
    lossless: bool | str = False
    ewww_api_key: str | None = None
    converter_options: dict[str, dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def load(cls) -> StackConfig:
        """Load from environment variables."""
        converters = _split(os.getenv("WEBP_STACK_CONVERTERS"))
        return cls(
            converters=converters or tuple(DEFAULT_CONVERTERS),
            extra_converters=_split(os.getenv("WEBP_STACK_EXTRA")),
            preferred_converters=_split(os.getenv("WEBP_STACK_PREFERRED")),
            shuffle=_parse_bool("WEBP_STACK_SHUFFLE", os.getenv("WEBP_STACK_SHUFFLE", "false")),
            quality=parse_quality(os.getenv("WEBP_STACK_QUALITY", "auto")),
            default_quality=_parse_int(
                "WEBP_STACK_DEFAULT_QUALITY", os.getenv("WEBP_STACK_DEFAULT_QUALITY", "75")
            ),
            max_quality=_parse_int("WEBP_STACK_MAX_QUALITY", os.getenv("WEBP_STACK_MAX_QUALITY", "85")),
            lossless=parse_lossless(os.getenv("WEBP_STACK_LOSSLESS", "false")),
            ewww_api_key=os.getenv("EWWW_API_KEY") or None,
        )

    def to_options(self) -> dict[str, Any]:
        """Option mapping for the stack converter."""
        converter_options = {k: dict(v) for k, v in self.converter_options.items()}
        if self.ewww_api_key:
            converter_options.setdefault("ewww", {}).setdefault("api-key", self.ewww_api_key)

        return {
            "converters": list(self.converters),
            "extra-converters": list(self.extra_converters),
            "preferred-converters": list(self.preferred_converters),
            "shuffle": self.shuffle,
            "converter-options": converter_options,
            "quality": self.quality,
            "default-quality": self.default_quality,
            "max-quality": self.max_quality,
            "lossless": self.lossless,
        }
