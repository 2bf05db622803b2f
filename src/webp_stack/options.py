"""
Option defaults, validation and per-converter option resolution.

Options are plain dicts keyed by the dashed option names ("max-quality",
"near-lossless", ...). Nothing in here mutates a mapping it was given;
every merge returns a new dict.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from .exceptions import ConfigurationError, InvalidOptionValueError

logger = logging.getLogger(__name__)

GENERAL_DEFAULTS: dict[str, Any] = {
    "quality": "auto",
    "default-quality": 75,
    "max-quality": 85,
    "lossless": False,
    "near-lossless": 60,
    "alpha-quality": 85,
    "method": 6,
    "metadata": "none",
    "auto-filter": False,
    "low-memory": False,
    "preset": None,
    "size-in-percentage": None,
    "skip": False,
    "log-call-arguments": False,
}

# Keys only the stack itself understands. They never reach a converter.
STACK_ONLY_OPTIONS: frozenset[str] = frozenset({
    "converters",
    "extra-converters",
    "converter-options",
    "preferred-converters",
    "shuffle",
})

# Flags the stack hands to the converters it runs.
SKIP_INPUT_CHECK = "_skip_input_check"
SUPPRESS_SUCCESS_MESSAGE = "_suppress_success_message"

IMAGE_TYPE_GROUPS: dict[str, str] = {
    "image/jpeg": "jpeg",
    "image/png": "png",
}

PRESETS = frozenset({"default", "photo", "picture", "drawing", "icon", "text"})
METADATA_VALUES = frozenset({"exif", "icc", "xmp"})


@dataclass(frozen=True)
class ConverterSpec:
    """One candidate of a stack: an id, an optional class handle and overrides."""

    id: str
    options: Mapping[str, Any] = field(default_factory=dict)
    converter_class: type | None = None

    @classmethod
    def from_entry(
        cls,
        entry: Any,
        converter_options: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> ConverterSpec:
        """
        Build a spec from a "converters" list entry.

        Accepts an id string, {"converter": id, "options": {...}} or a
        converter class. converter-options only applies to entries that
        carry no inline options.
        """
        converter_options = converter_options or {}

        if isinstance(entry, Mapping):
            if "converter" not in entry:
                raise ConfigurationError(f"Converter entry is missing the 'converter' key: {entry!r}")
            inner = entry["converter"]
            inline = entry.get("options")
            if isinstance(inner, type):
                spec = cls._from_class(inner)
            else:
                spec = cls(id=str(inner))
            if inline is None:
                return cls(spec.id, dict(converter_options.get(spec.id, {})), spec.converter_class)
            return cls(spec.id, dict(inline), spec.converter_class)

        if isinstance(entry, type):
            spec = cls._from_class(entry)
        elif isinstance(entry, str):
            spec = cls(id=entry)
        else:
            raise ConfigurationError(f"Invalid converter entry: {entry!r}")

        return cls(spec.id, dict(converter_options.get(spec.id, {})), spec.converter_class)

    @classmethod
    def _from_class(cls, converter_class: type) -> ConverterSpec:
        converter_id = getattr(converter_class, "converter_id", None) or converter_class.__name__.lower()
        return cls(id=converter_id, converter_class=converter_class)


def merge_options(*layers: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge option mappings left to right into a new dict."""
    merged: dict[str, Any] = {}
    for layer in layers:
        if layer:
            merged.update(layer)
    return merged


def resolve_converter_options(stack_options: Mapping[str, Any], spec: ConverterSpec) -> dict[str, Any]:
    """Final options for one converter attempt inside a stack."""
    resolved = {k: v for k, v in stack_options.items() if k not in STACK_ONLY_OPTIONS}
    resolved[SKIP_INPUT_CHECK] = True
    resolved[SUPPRESS_SUCCESS_MESSAGE] = True
    resolved.update(spec.options)
    return resolved


def apply_image_type_options(options: Mapping[str, Any], mime_type: str | None) -> dict[str, Any]:
    """Overlay the "jpeg" or "png" option group matching the source type."""
    result = {k: v for k, v in options.items() if k not in IMAGE_TYPE_GROUPS.values()}
    group = IMAGE_TYPE_GROUPS.get(mime_type or "")
    if group and isinstance(options.get(group), Mapping):
        result.update(options[group])
    return result


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_range(options: Mapping[str, Any], name: str, low: int, high: int) -> None:
    value = options.get(name)
    if not _is_int(value) or not (low <= value <= high):
        raise InvalidOptionValueError(name, value, f"integer {low}..{high}")


def validate_options(options: Mapping[str, Any]) -> None:
    """
    Check the general options.

    Raises InvalidOptionValueError: on the first bad value
    """
    quality = options.get("quality")
    if quality != "auto":
        _check_range(options, "quality", 0, 100)

    for name in ("default-quality", "max-quality", "near-lossless", "alpha-quality"):
        _check_range(options, name, 0, 100)
    _check_range(options, "method", 0, 6)

    lossless = options.get("lossless")
    if not isinstance(lossless, bool) and lossless != "auto":
        raise InvalidOptionValueError("lossless", lossless, 'boolean or "auto"')

    for name in ("auto-filter", "low-memory", "skip", "log-call-arguments"):
        if not isinstance(options.get(name), bool):
            raise InvalidOptionValueError(name, options.get(name), "boolean")

    preset = options.get("preset")
    if preset is not None and preset not in PRESETS:
        raise InvalidOptionValueError("preset", preset, "one of " + ", ".join(sorted(PRESETS)))

    size = options.get("size-in-percentage")
    if size is not None:
        _check_range(options, "size-in-percentage", 0, 100)

    metadata = options.get("metadata")
    if not isinstance(metadata, str):
        raise InvalidOptionValueError("metadata", metadata, "string")
    if metadata not in ("none", "all"):
        parts = {part.strip() for part in metadata.split(",")}
        if not parts <= METADATA_VALUES:
            raise InvalidOptionValueError("metadata", metadata, '"none", "all" or a list of exif,icc,xmp')


def metadata_parts(options: Mapping[str, Any]) -> set[str]:
    """Which metadata kinds to keep: a subset of {"exif", "icc", "xmp"}."""
    metadata = options.get("metadata", "none")
    if metadata == "none":
        return set()
    if metadata == "all":
        return set(METADATA_VALUES)
    return {part.strip() for part in metadata.split(",")}
