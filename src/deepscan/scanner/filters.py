"""Finding filters — narrow a findings list by severity, pass and path."""

from __future__ import annotations

from dataclasses import dataclass

from deepscan.scanner.globs import matches_any
from deepscan.scanner.models import Finding, ScanPass, Severity, severity_at_or_above


@dataclass(frozen=True)
class FindingFilter:
    min_severity: Severity | None = None
    passes: tuple[ScanPass, ...] | None = None
    include_files: tuple[str, ...] | None = None
    exclude_files: tuple[str, ...] | None = None

    def accepts(self, finding: Finding) -> bool:
        if self.min_severity is not None and not severity_at_or_above(
            finding.severity, self.min_severity
        ):
            return False
        if self.passes is not None and finding.pass_ not in self.passes:
            return False
        if self.include_files and not matches_any(finding.file, self.include_files):
            return False
        if self.exclude_files and matches_any(finding.file, self.exclude_files):
            return False
        return True


def filter_findings(
    findings: list[Finding], finding_filter: FindingFilter | None = None
) -> list[Finding]:
    """Findings accepted by *finding_filter*, order preserved."""
    if finding_filter is None:
        return list(findings)
    return [f for f in findings if finding_filter.accepts(f)]
