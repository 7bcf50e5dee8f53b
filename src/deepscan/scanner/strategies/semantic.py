"""Semantic strategy — a fixed set of heuristics keyed by pattern id.

These are deliberately narrow text heuristics, not general detectors.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from deepscan.scanner.models import FileInfo, Finding, PatternDefinition
from deepscan.scanner.strategies.base import build_finding, locate, resolve_severity

LARGE_FILE_LINES = 500

# Only matches a `for (...) { ... for (` shape with no closing brace between
_NESTED_LOOP = re.compile(r"for\s*\([^)]+\)\s*\{[^}]*for\s*\(")


def _large_file(file: FileInfo, pattern: PatternDefinition) -> list[Finding]:
    content = file.content or ""
    line_count = len(content.split("\n"))
    if line_count <= LARGE_FILE_LINES:
        return []
    return [
        build_finding(
            file,
            pattern,
            line=1,
            column=1,
            severity=resolve_severity(pattern.severity),
            message=f"{pattern.name}: File has {line_count} lines",
        )
    ]


def _nested_loop(file: FileInfo, pattern: PatternDefinition) -> list[Finding]:
    content = file.content or ""
    findings = []
    for m in _NESTED_LOOP.finditer(content):
        line, column = locate(content, m.start())
        findings.append(
            build_finding(
                file,
                pattern,
                line=line,
                column=column,
                severity=resolve_severity(pattern.severity, m.group(0)),
                message=f"{pattern.name}: Potential O(n²) complexity",
            )
        )
    return findings


_HEURISTICS: dict[str, Callable[[FileInfo, PatternDefinition], list[Finding]]] = {
    "large-file": _large_file,
    "nested-loop-o2": _nested_loop,
}


class SemanticStrategy:
    """Dispatches to a known heuristic; unknown pattern ids yield nothing."""

    def match(self, file: FileInfo, pattern: PatternDefinition) -> list[Finding]:
        heuristic = _HEURISTICS.get(pattern.id)
        if heuristic is None or not file.content:
            return []
        return heuristic(file, pattern)
