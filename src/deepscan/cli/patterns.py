"""CLI command: deepscan patterns — list the active pattern repertoire."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click
from rich.table import Table

from deepscan.cli.display import PASS_CHOICES, SEVERITY_COLORS, console
from deepscan.config import ScannerConfig
from deepscan.scanner.errors import RepertoireLoadError
from deepscan.scanner.models import ScanPass, Severity
from deepscan.scanner.repertoire import RepertoireStore, render_repertoire_markdown


@click.command()
@click.argument(
    "directory", type=click.Path(exists=True, file_okay=False), default="."
)
@click.option(
    "--pass", "-p", "pass_", type=click.Choice(PASS_CHOICES), help="Only this pass."
)
@click.option(
    "--markdown",
    is_flag=True,
    help="Print the repertoire as markdown (suitable as a repertoire file).",
)
@click.pass_context
def patterns(
    ctx: click.Context, directory: str, pass_: str | None, markdown: bool
) -> None:
    """Show the patterns a scan of DIRECTORY would use."""
    config: ScannerConfig = ctx.obj["config"]
    store = RepertoireStore(
        Path(directory) / config.repertoire_file,
        cache_enabled=config.cache_enabled,
    )
    try:
        repertoire = asyncio.run(store.load_repertoire())
    except RepertoireLoadError as e:
        raise click.ClickException(str(e)) from e

    if markdown:
        click.echo(render_repertoire_markdown(repertoire))
        return

    selected = [
        p
        for p in repertoire.patterns
        if pass_ is None or p.pass_ is ScanPass(pass_)
    ]

    table = Table(title=f"Repertoire v{repertoire.version}")
    table.add_column("ID", style="cyan")
    table.add_column("Pass")
    table.add_column("Severity")
    table.add_column("Type")
    table.add_column("Enabled")
    table.add_column("Name")

    for pattern in selected:
        if isinstance(pattern.severity, Severity):
            color = SEVERITY_COLORS[pattern.severity]
            severity = f"[{color}]{pattern.severity.value}[/{color}]"
        else:
            severity = pattern.severity
        table.add_row(
            pattern.id,
            pattern.pass_.value,
            severity,
            pattern.match_type.value,
            "yes" if pattern.enabled else "[dim]no[/dim]",
            pattern.name,
        )

    console.print(table)
    console.print(f"{len(selected)} pattern(s)")
