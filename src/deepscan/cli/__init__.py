"""CLI entry point — Click group with global options."""

from __future__ import annotations

import logging

import click

from deepscan import __version__
from deepscan.config import ConfigError, ScannerConfig


@click.group()
@click.version_option(version=__version__, prog_name="deepscan")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True),
    help="Path to a YAML scanner config file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """DeepScan — pattern-based static analysis for source trees."""
    try:
        config = ScannerConfig.load(config_path)
    except ConfigError as e:
        raise click.BadParameter(str(e), param_hint="--config") from e

    verbose = verbose or config.verbose
    config.verbose = verbose

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _register_commands() -> None:
    from deepscan.cli.patterns import patterns  # noqa: F811
    from deepscan.cli.scan import scan  # noqa: F811
    from deepscan.cli.watch import watch  # noqa: F811

    main.add_command(scan)
    main.add_command(watch)
    main.add_command(patterns)


_register_commands()
