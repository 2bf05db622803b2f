"""Tests for the command-line interface."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from fakes import FailingConverter, SuccessGuaranteedConverter
from webp_stack.cli import cli

SUCCESS = "fakes:SuccessGuaranteedConverter"
FAILING = "fakes:FailingConverter"


@pytest.fixture
def runner(monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    for name in ("WEBP_STACK_CONVERTERS", "WEBP_STACK_QUALITY", "WEBP_STACK_LOSSLESS"):
        monkeypatch.delenv(name, raising=False)
    return CliRunner()


def test_convert(runner: CliRunner, png_image: Path, destination: Path) -> None:
    result = runner.invoke(cli, [str(png_image), str(destination), "-c", SUCCESS])

    assert result.exit_code == 0, result.output
    assert destination.exists()
    assert SuccessGuaranteedConverter.calls == 1


def test_default_destination(runner: CliRunner, png_image: Path) -> None:
    result = runner.invoke(cli, [str(png_image), "-c", SUCCESS])

    assert result.exit_code == 0, result.output
    assert (png_image.parent / "test.png.webp").exists()


def test_falls_through_to_next_converter(runner: CliRunner, png_image: Path, destination: Path) -> None:
    result = runner.invoke(cli, [str(png_image), str(destination), "-c", FAILING, "-c", SUCCESS])

    assert result.exit_code == 0, result.output
    assert FailingConverter.calls == 1
    assert SuccessGuaranteedConverter.calls == 1


def test_prefer(runner: CliRunner, png_image: Path, destination: Path) -> None:
    result = runner.invoke(cli, [
        str(png_image), str(destination), "-c", FAILING, "-c", SUCCESS, "--prefer", SUCCESS,
    ])

    assert result.exit_code == 0, result.output
    assert FailingConverter.calls == 0


def test_options_are_passed_on(runner: CliRunner, png_image: Path, destination: Path) -> None:
    result = runner.invoke(cli, [
        str(png_image), str(destination), "-c", SUCCESS,
        "--quality", "70", "--max-quality", "90", "--lossless", "false",
    ])

    assert result.exit_code == 0, result.output
    received = SuccessGuaranteedConverter.received_options[0]
    assert received["quality"] == 70
    assert received["max-quality"] == 90
    assert received["lossless"] is False


def test_failure_exit_code(runner: CliRunner, png_image: Path, destination: Path) -> None:
    result = runner.invoke(cli, [str(png_image), str(destination), "-c", FAILING])

    assert result.exit_code == 1
    assert not destination.exists()


def test_unknown_converter(runner: CliRunner, png_image: Path, destination: Path) -> None:
    result = runner.invoke(cli, [str(png_image), str(destination), "-c", "no-such-converter"])
    assert result.exit_code == 1


def test_bad_quality(runner: CliRunner, png_image: Path, destination: Path) -> None:
    result = runner.invoke(cli, [str(png_image), str(destination), "--quality", "high"])
    assert result.exit_code == 2


def test_missing_source(runner: CliRunner) -> None:
    result = runner.invoke(cli, [])
    assert result.exit_code == 2


def test_list_converters(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["--list-converters"])

    assert result.exit_code == 0
    listed = result.output.split()
    for converter_id in ("cwebp", "pillow", "imagemagick", "graphicsmagick", "ewww", "stack"):
        assert converter_id in listed
