"""In-process converter using Pillow's WebP encoder."""

from __future__ import annotations

import logging
from typing import Any

from PIL import Image, features

from ..exceptions import ConversionFailedError, SystemRequirementsNotMetError
from ..options import metadata_parts
from .base import AbstractConverter

logger = logging.getLogger(__name__)


class PillowConverter(AbstractConverter):
    converter_id = "pillow"
    display_name = "Pillow"

    def check_operationality(self) -> None:
        if not features.check("webp"):
            raise SystemRequirementsNotMetError("Pillow is installed without WebP support")

    def _save_kwargs(self, img: Image.Image) -> dict[str, Any]:
        options = self.options
        kwargs: dict[str, Any] = {
            "lossless": options["lossless"] is True,
            "quality": self.get_calculated_quality(),
            "method": options["method"],
            "alpha_quality": options["alpha-quality"],
        }
        if kwargs["lossless"]:
            # For lossless, "quality" is the compression effort.
            kwargs["quality"] = 100

        keep = metadata_parts(options)
        if "icc" in keep and img.info.get("icc_profile"):
            kwargs["icc_profile"] = img.info["icc_profile"]
        if "exif" in keep and img.info.get("exif"):
            kwargs["exif"] = img.info["exif"]
        if "xmp" in keep and img.info.get("xmp"):
            kwargs["xmp"] = img.info["xmp"]
        return kwargs

    def do_actual_convert(self) -> None:
        try:
            with Image.open(self.source) as img:
                has_alpha = img.mode in ("RGBA", "LA") or (
                    img.mode == "P" and "transparency" in img.info
                )
                kwargs = self._save_kwargs(img)
                converted = img.convert("RGBA" if has_alpha else "RGB")
                converted.save(self.destination, "WEBP", **kwargs)
        except OSError as e:
            raise ConversionFailedError("Pillow failed to encode the image") from e

        logger.debug("Pillow wrote %s with %s", self.destination, kwargs)
