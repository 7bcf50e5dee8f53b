"""CLI command: deepscan watch [DIRECTORY] — continuous scanning until Ctrl+C."""

from __future__ import annotations

import asyncio

import click

from deepscan.cli.display import console, severity_counts
from deepscan.config import ConfigError, ScannerConfig
from deepscan.scanner.engine import create_deep_scanner
from deepscan.scanner.errors import ScannerError
from deepscan.scanner.progress import ProgressEventType, ScanProgressEvent


def _on_progress(event: ScanProgressEvent) -> None:
    if event.type is ProgressEventType.SCAN_COMPLETED:
        findings = list(event.findings or ())
        console.print(f"  [dim]{event.timestamp}[/dim] {severity_counts(findings)}")
    elif event.type is ProgressEventType.SCAN_ERROR:
        console.print(f"  [red]error[/red] {event.message}")


async def _watch(config: ScannerConfig, directory: str) -> None:
    scanner = await create_deep_scanner(
        config=config, workspace_path=directory, on_progress=_on_progress
    )
    await scanner.continuous_scan()
    try:
        await scanner.wait_stopped()
    finally:
        scanner.stop()
        await scanner.save_state()


@click.command()
@click.argument(
    "directory", type=click.Path(exists=True, file_okay=False), default="."
)
@click.option(
    "--interval",
    "-i",
    type=float,
    default=None,
    help="Seconds between scans (default: config continuous_interval).",
)
@click.pass_context
def watch(ctx: click.Context, directory: str, interval: float | None) -> None:
    """Rescan a source tree on a fixed interval."""
    config: ScannerConfig = ctx.obj["config"]
    if not config.enabled:
        console.print("[yellow]Scanner is disabled in the configuration.[/yellow]")
        return

    if interval is not None:
        try:
            config = config.updated(continuous_interval=int(interval * 1000))
        except ConfigError as e:
            raise click.BadParameter(str(e), param_hint="--interval") from e

    console.print(
        f"[bold]DeepScan[/bold] watching [cyan]{directory}[/cyan] "
        f"every {config.continuous_interval / 1000:g}s"
    )
    console.print("  Press Ctrl+C to stop.\n")

    try:
        asyncio.run(_watch(config, directory))
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")
    except ScannerError as e:
        raise click.ClickException(f"{e} [{e.code}]") from e
