"""CLI command: deepscan scan [DIRECTORY] — one-shot scan."""

from __future__ import annotations

import asyncio
import sys

import click

from deepscan.cli.display import PASS_CHOICES, console, findings_table, print_summary
from deepscan.config import ConfigError, ScannerConfig
from deepscan.scanner.engine import create_deep_scanner
from deepscan.scanner.errors import ScannerError
from deepscan.scanner.models import ScanResult, Severity


async def _run_scan(config: ScannerConfig, directory: str) -> ScanResult:
    scanner = await create_deep_scanner(config=config, workspace_path=directory)
    return await scanner.run_detailed()


@click.command()
@click.argument(
    "directory", type=click.Path(exists=True, file_okay=False), default="."
)
@click.option(
    "--pass",
    "-p",
    "passes",
    multiple=True,
    type=click.Choice(PASS_CHOICES),
    help="Pass to run (repeatable). Defaults to the configured passes.",
)
@click.pass_context
def scan(ctx: click.Context, directory: str, passes: tuple[str, ...]) -> None:
    """Scan a source tree for anti-patterns, performance and security issues."""
    config: ScannerConfig = ctx.obj["config"]
    if not config.enabled:
        console.print("[yellow]Scanner is disabled in the configuration.[/yellow]")
        return

    if passes:
        try:
            config = config.updated(passes=list(passes))
        except ConfigError as e:
            raise click.BadParameter(str(e), param_hint="--pass") from e

    console.print(
        f"[bold]DeepScan[/bold] scanning [cyan]{directory}[/cyan] "
        f"({', '.join(p.value for p in config.passes)})\n"
    )

    try:
        result = asyncio.run(_run_scan(config, directory))
    except ScannerError as e:
        raise click.ClickException(f"{e} [{e.code}]") from e

    if not result.findings:
        console.print("[green]No findings.[/green]")
        print_summary(result)
        return

    console.print(findings_table(result.findings))
    print_summary(result)

    critical_count = sum(1 for f in result.findings if f.severity == Severity.CRITICAL)
    if critical_count > 0:
        console.print(f"\n[red]{critical_count} critical finding(s)[/red]")
        sys.exit(1)
