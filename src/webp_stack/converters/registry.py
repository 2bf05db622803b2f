"""Lookup of converter implementations by id."""

from __future__ import annotations

import importlib
import logging

from ..exceptions import ConverterNotFoundError
from .base import AbstractConverter

logger = logging.getLogger(__name__)

# Imported lazily so a stack can refer to itself without an import cycle.
BUILTIN_CONVERTERS: dict[str, str] = {
    "cwebp": "webp_stack.converters.cwebp:Cwebp",
    "pillow": "webp_stack.converters.pillow:PillowConverter",
    "imagemagick": "webp_stack.converters.magick:ImageMagick",
    "graphicsmagick": "webp_stack.converters.magick:GraphicsMagick",
    "ewww": "webp_stack.converters.ewww:Ewww",
    "stack": "webp_stack.converters.stack:Stack",
}

_registered: dict[str, type[AbstractConverter]] = {}


def register_converter(converter_id: str, converter_class: type[AbstractConverter]) -> None:
    """Make a converter class available under an id."""
    if not (isinstance(converter_class, type) and issubclass(converter_class, AbstractConverter)):
        raise TypeError(f"{converter_class!r} is not a converter class")
    _registered[converter_id.lower()] = converter_class


def unregister_converter(converter_id: str) -> None:
    _registered.pop(converter_id.lower(), None)


def available_converters() -> list[str]:
    return sorted(set(BUILTIN_CONVERTERS) | set(_registered))


def _import_class(reference: str) -> type[AbstractConverter]:
    module_name, _, class_name = reference.partition(":")
    try:
        module = importlib.import_module(module_name)
        converter_class = getattr(module, class_name)
    except (ImportError, AttributeError) as e:
        raise ConverterNotFoundError(f"There is no converter with class name: {reference}") from e

    if not (isinstance(converter_class, type) and issubclass(converter_class, AbstractConverter)):
        raise ConverterNotFoundError(f"{reference} is not a converter class")
    return converter_class


def get_converter_class(converter: str | type[AbstractConverter]) -> type[AbstractConverter]:
    """
    Resolve a converter id ("cwebp"), a dotted reference
    ("package.module:ClassName") or a class to a converter class.

    Raises ConverterNotFoundError: If nothing matches
    """
    if isinstance(converter, type):
        if issubclass(converter, AbstractConverter):
            return converter
        raise ConverterNotFoundError(f"{converter!r} is not a converter class")

    if ":" in converter:
        return _import_class(converter)

    converter_id = converter.lower()
    if converter_id in _registered:
        return _registered[converter_id]
    if converter_id in BUILTIN_CONVERTERS:
        return _import_class(BUILTIN_CONVERTERS[converter_id])

    raise ConverterNotFoundError(f"There is no converter with id: {converter}")
