"""Tests for the ImageMagick and GraphicsMagick converters."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from webp_stack.converters import magick as magick_module
from webp_stack.converters.magick import GraphicsMagick, ImageMagick
from webp_stack.exceptions import ConverterCommandError, SystemRequirementsNotMetError

IMAGEMAGICK_VERSION = """Version: ImageMagick 7.1.1-15 Q16-HDRI x86_64
Delegates (built-in): bzlib fontconfig freetype jng jpeg lcms png tiff webp xml zlib
"""

GRAPHICSMAGICK_VERSION = """GraphicsMagick 1.3.42 2023-09-23 Q16 http://www.GraphicsMagick.org/
Feature Support:
  Native Thread Safe         yes
  JPEG                       yes
  WebP                       {webp}
"""


class FakeMagick:
    """Replaces _run: answers version queries and writes output for conversions."""

    def __init__(self, version_output: str, returncode: int = 0, stderr: str = ""):
        self.version_output = version_output
        self.returncode = returncode
        self.stderr = stderr
        self.commands: list[list[str]] = []

    def __call__(self, cmd: list[str]) -> subprocess.CompletedProcess:
        self.commands.append(cmd)
        if cmd[-1].startswith("webp:"):
            if self.returncode == 0:
                Path(cmd[-1][len("webp:"):]).write_bytes(b"RIFF....WEBPVP8 ")
            return subprocess.CompletedProcess(cmd, self.returncode, "", self.stderr)
        return subprocess.CompletedProcess(cmd, 0, self.version_output, "")


@pytest.fixture
def which_everything(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(magick_module.shutil, "which", lambda name: f"/usr/bin/{name}")


class TestImageMagick:
    def test_not_installed(self, png_image: Path, destination: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(magick_module.shutil, "which", lambda name: None)

        with pytest.raises(SystemRequirementsNotMetError, match="ImageMagick is not installed"):
            ImageMagick.convert(png_image, destination)

    def test_without_webp_delegate(
        self, png_image: Path, destination: Path, which_everything, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        fake = FakeMagick("Version: ImageMagick 6.9\nDelegates (built-in): jpeg png\n")
        monkeypatch.setattr(ImageMagick, "_run", fake)

        with pytest.raises(SystemRequirementsNotMetError, match="without WebP support"):
            ImageMagick.convert(png_image, destination)

    def test_convert(
        self, jpeg_q61: Path, destination: Path, which_everything, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        fake = FakeMagick(IMAGEMAGICK_VERSION)
        monkeypatch.setattr(ImageMagick, "_run", fake)

        ImageMagick.convert(jpeg_q61, destination, {"quality": 70, "method": 4})

        assert destination.exists()
        version_cmd, convert_cmd = fake.commands
        assert version_cmd == ["/usr/bin/magick", "-version"]
        assert convert_cmd[:2] == ["/usr/bin/magick", str(jpeg_q61)]
        assert convert_cmd[-1] == "webp:" + str(destination)
        assert convert_cmd[convert_cmd.index("-quality") + 1] == "70"
        assert "webp:method=4" in convert_cmd
        assert "-strip" in convert_cmd

    def test_command_error(
        self, jpeg_q61: Path, destination: Path, which_everything, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(ImageMagick, "_run", FakeMagick(IMAGEMAGICK_VERSION, 1, "no decode delegate"))

        with pytest.raises(ConverterCommandError, match="no decode delegate"):
            ImageMagick.convert(jpeg_q61, destination, {"quality": 70})


class TestCommandLineOptions:
    def test_lossless_defines(self, png_image: Path, destination: Path) -> None:
        converter = ImageMagick(png_image, destination, {
            "lossless": True,
            "near-lossless": 60,
            "auto-filter": True,
            "preset": "photo",
            "metadata": "exif",
        })
        args = converter.create_command_line_options()

        assert "webp:lossless=true" in args
        assert "webp:near-lossless=60" in args
        assert "webp:auto-filter=true" in args
        assert "webp:image-hint=photo" in args
        assert "-strip" not in args

    def test_lossy_has_no_lossless_define(self, png_image: Path, destination: Path) -> None:
        converter = ImageMagick(png_image, destination, {"lossless": False})
        args = converter.create_command_line_options()
        assert not any(a.startswith("webp:lossless") for a in args)


class TestGraphicsMagick:
    @pytest.mark.parametrize("webp, expected", [("yes", True), ("no", False)])
    def test_webp_delegate(self, png_image: Path, destination: Path, webp: str, expected: bool) -> None:
        converter = GraphicsMagick(png_image, destination)
        assert converter.has_webp_delegate(GRAPHICSMAGICK_VERSION.format(webp=webp)) is expected

    def test_convert_uses_subcommand(
        self, png_image: Path, destination: Path, which_everything, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        fake = FakeMagick(GRAPHICSMAGICK_VERSION.format(webp="yes"))
        monkeypatch.setattr(GraphicsMagick, "_run", fake)

        GraphicsMagick.convert(png_image, destination, {"quality": 80})

        version_cmd, convert_cmd = fake.commands
        assert version_cmd == ["/usr/bin/gm", "version"]
        assert convert_cmd[:3] == ["/usr/bin/gm", "convert", str(png_image)]
        assert destination.exists()
