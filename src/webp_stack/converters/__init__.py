"""Converter implementations and the id -> class registry."""

from .base import AbstractConverter
from .cwebp import Cwebp
from .ewww import Ewww
from .magick import GraphicsMagick, ImageMagick
from .pillow import PillowConverter
from .registry import (
    available_converters,
    get_converter_class,
    register_converter,
    unregister_converter,
)
from .stack import AttemptOutcome, AttemptResult, Stack, order_converters

__all__ = [
    "AbstractConverter",
    "Cwebp",
    "Ewww",
    "GraphicsMagick",
    "ImageMagick",
    "PillowConverter",
    "Stack",
    "AttemptOutcome",
    "AttemptResult",
    "order_converters",
    "available_converters",
    "get_converter_class",
    "register_converter",
    "unregister_converter",
]
