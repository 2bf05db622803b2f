"""Shared fixtures: test images generated with Pillow."""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from fakes import reset_fakes


def _gradient(mode: str = "RGB", size: tuple[int, int] = (64, 48)) -> Image.Image:
    img = Image.new(mode, size)
    w, h = size
    pixels = img.load()
    for x in range(w):
        for y in range(h):
            value = (x * 4 % 256, y * 5 % 256, (x + y) * 3 % 256)
            pixels[x, y] = value + (200,) if mode == "RGBA" else value
    return img


@pytest.fixture(autouse=True)
def _reset_fake_converters():
    reset_fakes()
    yield
    reset_fakes()


@pytest.fixture
def jpeg_q61(tmp_path: Path) -> Path:
    path = tmp_path / "small-q61.jpg"
    _gradient().save(path, "JPEG", quality=61)
    return path


@pytest.fixture
def jpeg_q90(tmp_path: Path) -> Path:
    path = tmp_path / "small-q90.jpg"
    _gradient().save(path, "JPEG", quality=90)
    return path


@pytest.fixture
def png_image(tmp_path: Path) -> Path:
    path = tmp_path / "test.png"
    _gradient("RGBA").save(path, "PNG")
    return path


@pytest.fixture
def text_with_jpg_extension(tmp_path: Path) -> Path:
    path = tmp_path / "text-with-jpg-extension.jpg"
    path.write_text("this is not an image\n" * 20)
    return path


@pytest.fixture
def destination(tmp_path: Path) -> Path:
    return tmp_path / "out" / "result.webp"
