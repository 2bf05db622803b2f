"""
Converter using the EWWW Image Optimizer cloud API.

Needs an api key. The demo key "abc123" is accepted by the service for
testing; any other key must be 32 alphanumeric characters.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from ..exceptions import ConversionFailedError, InvalidApiKeyError, SystemRequirementsNotMetError
from .base import AbstractConverter

logger = logging.getLogger(__name__)

API_URL = "https://optimize.exactlyww.com/v2/"
VERIFY_URL = "https://optimize.exactlyww.com/verify/"
DEMO_KEY = "abc123"
DEFAULT_TIMEOUT = 60.0

_KEY_PATTERN = re.compile(r"^[a-zA-Z0-9]{32}$")


def is_valid_key(key: object) -> bool:
    """Check the key's format. Says nothing about whether it works."""
    if not isinstance(key, str) or not key:
        return False
    return key == DEMO_KEY or bool(_KEY_PATTERN.match(key))


def get_key_status(key: str, client: httpx.Client) -> str:
    """Ask the service about a key: "great", "exceeded", "invalid" or "unknown"."""
    try:
        response = client.post(VERIFY_URL, data={"api_key": key})
    except httpx.HTTPError as e:
        logger.warning("Could not verify ewww api key: %s", e)
        return "unknown"

    text = response.text.lower()
    if "great" in text:
        return "great"
    if "exceeded" in text:
        return "exceeded"
    if response.status_code >= 500:
        return "unknown"
    return "invalid"


def is_working_key(key: str, client: httpx.Client | None = None) -> bool:
    if not is_valid_key(key):
        return False
    if client is not None:
        return get_key_status(key, client) == "great"
    with httpx.Client(timeout=DEFAULT_TIMEOUT) as own_client:
        return get_key_status(key, own_client) == "great"


class Ewww(AbstractConverter):
    converter_id = "ewww"
    display_name = "ewww cloud converter"

    supports_lossless = False

    def __init__(self, *args: Any, http_client: httpx.Client | None = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._http_client = http_client
        self._close_client = False

    def get_option_defaults_extra(self) -> dict[str, Any]:
        return {"api-key": None, "check-key-status": False, "timeout": DEFAULT_TIMEOUT}

    def _client(self) -> httpx.Client:
        if self._http_client is None:
            self._http_client = httpx.Client(timeout=float(self.options["timeout"]))
            self._close_client = True
        return self._http_client

    def do_convert(self) -> None:
        try:
            super().do_convert()
        finally:
            if self._close_client and self._http_client is not None:
                self._http_client.close()
                self._http_client = None
                self._close_client = False

    def check_operationality(self) -> None:
        key = self.options.get("api-key")
        if not key:
            raise InvalidApiKeyError("Missing api key (set the api-key option)")
        if not isinstance(key, str):
            raise InvalidApiKeyError(f"Api key must be a string, got {type(key).__name__}")
        if not is_valid_key(key):
            raise InvalidApiKeyError(
                "Api key is invalid. Api keys are 32 characters long - yours is " + str(len(key))
            )

        if self.options["check-key-status"]:
            status = get_key_status(key, self._client())
            if status == "exceeded":
                raise SystemRequirementsNotMetError("Quota has exceeded")
            if status == "invalid":
                raise InvalidApiKeyError("Api key is invalid")

    def do_actual_convert(self) -> None:
        options = self.options
        data = {
            "api_key": options["api-key"],
            "webp": "1",
            "jpg": "0",
            "png": "0",
            "gif": "0",
            "quality": str(self.get_calculated_quality()),
            "metadata": "0" if options["metadata"] == "none" else "1",
        }

        try:
            with self.source.open("rb") as fh:
                response = self._client().post(
                    API_URL,
                    data=data,
                    files={"file": (self.source.name, fh, self.mime_type_of_source or "application/octet-stream")},
                )
        except httpx.HTTPError as e:
            raise ConversionFailedError("Request to the ewww api failed") from e

        body = response.content
        if response.status_code != 200:
            raise ConversionFailedError(f"ewww api responded with status {response.status_code}")

        if body.lstrip().startswith(b"{"):
            # Errors come back as JSON, images as raw bytes.
            message = response.text
            if "quota" in message.lower() or "exceeded" in message.lower():
                raise SystemRequirementsNotMetError(f"ewww quota exceeded: {message}")
            if "invalid" in message.lower() and "key" in message.lower():
                raise InvalidApiKeyError(f"ewww rejected the api key: {message}")
            raise ConversionFailedError(f"ewww api returned an error: {message}")

        if not body:
            raise ConversionFailedError("ewww api returned an empty response")

        self.destination.write_bytes(body)
        logger.debug("ewww returned %d bytes", len(body))
