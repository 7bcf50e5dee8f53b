"""Shared Rich rendering for CLI commands."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from deepscan.scanner.models import (
    ALL_SCAN_PASSES,
    SEVERITY_ORDER,
    Finding,
    ScanResult,
    Severity,
)

console = Console(stderr=True)

PASS_CHOICES = [p.value for p in ALL_SCAN_PASSES]

SEVERITY_COLORS = {
    Severity.INFO: "blue",
    Severity.LOW: "cyan",
    Severity.MEDIUM: "yellow",
    Severity.HIGH: "magenta",
    Severity.CRITICAL: "red",
}


def sort_findings(findings: list[Finding]) -> list[Finding]:
    """Critical first, then file, then line."""
    return sorted(
        findings,
        key=lambda f: (-SEVERITY_ORDER[f.severity], f.file, f.line, f.column),
    )


def findings_table(findings: list[Finding]) -> Table:
    table = Table(title="Findings", show_lines=False)
    table.add_column("Severity", style="bold", width=10)
    table.add_column("File", style="cyan")
    table.add_column("Line", justify="right")
    table.add_column("Pass")
    table.add_column("Pattern")
    table.add_column("Message", max_width=60)

    for finding in sort_findings(findings):
        color = SEVERITY_COLORS.get(finding.severity, "white")
        table.add_row(
            f"[{color}]{finding.severity.value}[/{color}]",
            finding.file,
            f"{finding.line}:{finding.column}",
            finding.pass_.value,
            finding.pattern_id or "-",
            finding.message,
        )
    return table


def severity_counts(findings: list[Finding]) -> str:
    counts = {s: 0 for s in Severity}
    for finding in findings:
        counts[finding.severity] += 1
    parts = [
        f"[{SEVERITY_COLORS[s]}]{counts[s]} {s.value}[/{SEVERITY_COLORS[s]}]"
        for s in sorted(Severity, key=lambda s: -SEVERITY_ORDER[s])
        if counts[s]
    ]
    return ", ".join(parts) or "[green]no findings[/green]"


def print_summary(result: ScanResult) -> None:
    for pass_result in result.pass_results:
        if pass_result.error:
            console.print(
                f"[red]{pass_result.pass_.value} pass failed:[/red] {pass_result.error}"
            )
    console.print(
        f"\nScanned {result.total_files_scanned} file(s) "
        f"in {len(result.pass_results)} pass(es), {result.total_duration}ms"
    )
    console.print(f"Total findings: {len(result.findings)}")
