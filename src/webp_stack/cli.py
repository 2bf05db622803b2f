"""CLI for converting an image with the converter stack."""

from __future__ import annotations

import logging
import sys
from dataclasses import replace
from pathlib import Path

import click

from .config import StackConfig, parse_lossless, parse_quality
from .convert import convert
from .converters.registry import available_converters
from .exceptions import ConfigurationError, WebPConvertError
from .log import StdlibLogSink

logger = logging.getLogger(__name__)


@click.command()
@click.argument("source", required=False, type=click.Path(path_type=Path))
@click.argument("destination", required=False, type=click.Path(path_type=Path))
@click.option("-c", "--converter", "converters", multiple=True, help="Converter to try (repeatable, in order)")
@click.option("--prefer", "preferred", multiple=True, help="Converter to move to the front (repeatable)")
@click.option("--quality", default=None, help='Quality 0-100 or "auto"')
@click.option("--default-quality", type=int, default=None, help="Quality used when auto-detection fails")
@click.option("--max-quality", type=int, default=None, help="Upper bound for the quality")
@click.option("--lossless", default=None, help='true, false or "auto"')
@click.option("--shuffle", is_flag=True, help="Try converters in random order")
@click.option("--list-converters", is_flag=True, help="List converter ids and exit")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def cli(source: Path | None, destination: Path | None, converters: tuple[str, ...],
        preferred: tuple[str, ...], quality: str | None, default_quality: int | None,
        max_quality: int | None, lossless: str | None, shuffle: bool,
        list_converters: bool, verbose: bool) -> None:
    """Convert SOURCE (jpeg/png) to WebP at DESTINATION."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    if list_converters:
        for converter_id in available_converters():
            click.echo(converter_id)
        return

    if source is None:
        raise click.UsageError("Missing argument 'SOURCE'.")
    if destination is None:
        destination = source.with_name(source.name + ".webp")

    try:
        config = StackConfig.load()
        overrides: dict = {}
        if converters:
            overrides["converters"] = converters
        if preferred:
            overrides["preferred_converters"] = preferred
        if quality is not None:
            overrides["quality"] = parse_quality(quality)
        if default_quality is not None:
            overrides["default_quality"] = default_quality
        if max_quality is not None:
            overrides["max_quality"] = max_quality
        if lossless is not None:
            overrides["lossless"] = parse_lossless(lossless)
        if shuffle:
            overrides["shuffle"] = True
        config = replace(config, **overrides)
    except ConfigurationError as e:
        raise click.BadParameter(str(e)) from e

    try:
        convert(source, destination, config.to_options(), StdlibLogSink(logging.getLogger("webp_stack")))
    except WebPConvertError as e:
        logger.error("Conversion failed: %s", e)
        sys.exit(1)

    logger.info("Wrote %s", destination)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
