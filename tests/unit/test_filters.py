"""Tests for finding filters."""

from __future__ import annotations

from deepscan.scanner.filters import FindingFilter, filter_findings
from deepscan.scanner.models import Finding, ScanPass, Severity


def _finding(severity: Severity, file: str, pass_: ScanPass) -> Finding:
    return Finding(
        severity=severity, message="m", file=file, line=1, column=1, pass_=pass_
    )


FINDINGS = [
    _finding(Severity.CRITICAL, "src/a.ts", ScanPass.SECURITY),
    _finding(Severity.LOW, "src/b.ts", ScanPass.ANTI_PATTERNS),
    _finding(Severity.MEDIUM, "test/c.ts", ScanPass.PERFORMANCE),
]


def test_no_filter_returns_copy():
    result = filter_findings(FINDINGS)
    assert result == FINDINGS
    assert result is not FINDINGS


def test_min_severity():
    result = filter_findings(FINDINGS, FindingFilter(min_severity=Severity.MEDIUM))
    assert [f.file for f in result] == ["src/a.ts", "test/c.ts"]


def test_passes():
    result = filter_findings(FINDINGS, FindingFilter(passes=(ScanPass.ANTI_PATTERNS,)))
    assert [f.file for f in result] == ["src/b.ts"]


def test_include_and_exclude_files():
    result = filter_findings(
        FINDINGS,
        FindingFilter(include_files=("src/**",), exclude_files=("**/b.ts",)),
    )
    assert [f.file for f in result] == ["src/a.ts"]
