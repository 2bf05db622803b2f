"""
WebP conversion through a stack of interchangeable converters.

Each converter (cwebp, Pillow, ImageMagick, GraphicsMagick, the ewww cloud
API) is tried in order until one succeeds. Two policies apply to every
converter: "quality: auto" reuses the quality of a JPEG source, and
"lossless: auto" encodes both ways and keeps the smaller file.

Deployment:
    pip install webp-stack
    apt install webp  # for the cwebp converter
    webp-stack photo.jpg photo.webp
"""

from .config import StackConfig
from .convert import convert
from .converters import (
    AbstractConverter,
    AttemptOutcome,
    AttemptResult,
    Stack,
    get_converter_class,
    register_converter,
)
from .exceptions import (
    ConfigurationError,
    ConversionFailedError,
    ConversionSkippedError,
    ConverterNotFoundError,
    ConverterNotOperationalError,
    EmptyStackError,
    InvalidInputError,
    InvalidOptionValueError,
    StackFailedError,
    StackNotOperationalError,
    WebPConvertError,
)
from .log import BufferLogSink, LogSink, NullLogSink, StdlibLogSink
from .options import ConverterSpec, resolve_converter_options
from .quality import QualityPolicy, detect_jpeg_quality

__all__ = [
    "convert",
    "StackConfig",
    # Converters
    "AbstractConverter",
    "Stack",
    "AttemptOutcome",
    "AttemptResult",
    "get_converter_class",
    "register_converter",
    # Options and policies
    "ConverterSpec",
    "resolve_converter_options",
    "QualityPolicy",
    "detect_jpeg_quality",
    # Logging
    "LogSink",
    "BufferLogSink",
    "NullLogSink",
    "StdlibLogSink",
    # Errors
    "WebPConvertError",
    "ConfigurationError",
    "ConverterNotFoundError",
    "InvalidOptionValueError",
    "EmptyStackError",
    "ConverterNotOperationalError",
    "StackNotOperationalError",
    "ConversionFailedError",
    "InvalidInputError",
    "StackFailedError",
    "ConversionSkippedError",
]
