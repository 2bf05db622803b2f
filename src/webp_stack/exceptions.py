"""
Exception hierarchy for WebP conversion.

The stack relies on the class of an exception to decide what happened:

    ConverterNotFoundError,
    EmptyStackError              -> fatal, the stack stops
    ConfigurationError           -> fatal for the stack itself; from a candidate,
                                    counted as a failed attempt
    ConverterNotOperationalError -> converter unavailable, try the next one
    ConversionFailedError        -> converter tried and failed, try the next one
    ConversionSkippedError       -> converter chose not to act, try the next one
"""

from __future__ import annotations


class WebPConvertError(Exception):
    """Base class for all conversion errors."""

    def __init__(self, message: str = "", description: str | None = None):
        self.description = description or message
        super().__init__(message)


class ConfigurationError(WebPConvertError):
    """Raised when the conversion is set up wrong."""


class ConverterNotFoundError(ConfigurationError):
    """Raised when a converter id or class reference cannot be resolved."""


class InvalidOptionValueError(ConfigurationError):
    """Raised when an option has a value of the wrong type or range."""

    def __init__(self, option: str, value: object, expected: str):
        self.option = option
        self.value = value
        self.expected = expected
        super().__init__(f'Invalid value for option "{option}": {value!r} (expected {expected})')


class EmptyStackError(ConfigurationError):
    """Raised when a stack has no converters to try."""


class ConverterNotOperationalError(WebPConvertError):
    """Raised when a converter's prerequisites are not met."""


class SystemRequirementsNotMetError(ConverterNotOperationalError):
    """Raised when a binary, library or codec is missing."""


class InvalidApiKeyError(ConverterNotOperationalError):
    """Raised when a cloud converter has no usable api key."""


class StackNotOperationalError(ConverterNotOperationalError):
    """Raised when every converter in a stack was unavailable."""


class ConversionFailedError(WebPConvertError):
    """Raised when a converter was operational but the conversion failed."""


class InvalidInputError(ConversionFailedError):
    """Raised when the source file is missing or not a supported image."""


class ConverterCommandError(ConversionFailedError):
    """Raised when an external command exits nonzero or times out."""

    def __init__(self, command: list[str], returncode: int, stderr: str):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        name = command[0] if command else "command"
        super().__init__(f"{name} failed (rc={returncode}): {stderr.strip()}")


class StackFailedError(ConversionFailedError):
    """Raised when a stack is exhausted and at least one converter failed at runtime."""


class ConversionSkippedError(WebPConvertError):
    """Raised when a converter deliberately does not convert."""
