"""Shared pieces for match strategies — protocol, severity, locations, snippets."""

from __future__ import annotations

from typing import Protocol

from deepscan.scanner.models import (
    FileInfo,
    Finding,
    PatternDefinition,
    PatternSeverity,
    Severity,
)

SNIPPET_CONTEXT_LINES = 2

_DYNAMIC_CRITICAL_MARKERS = ("password", "secret")


class MatchStrategy(Protocol):
    """One way of matching a pattern against a file's content."""

    def match(self, file: FileInfo, pattern: PatternDefinition) -> list[Finding]:
        """Return the findings of *pattern* in *file*."""
        ...


def resolve_severity(
    severity: PatternSeverity, matched_text: str | None = None
) -> Severity:
    """Resolve a pattern severity for one match.

    Fixed severities pass through. ``dynamic`` becomes critical when the
    matched text mentions a password or secret, high otherwise.
    """
    if isinstance(severity, Severity):
        return severity
    lowered = (matched_text or "").lower()
    if any(marker in lowered for marker in _DYNAMIC_CRITICAL_MARKERS):
        return Severity.CRITICAL
    return Severity.HIGH


def locate(content: str, offset: int) -> tuple[int, int]:
    """1-based (line, column) of *offset* in *content*."""
    line = content.count("\n", 0, offset) + 1
    column = offset - content.rfind("\n", 0, offset)
    return line, column


def extract_code_snippet(
    lines: list[str], line_index: int, context: int = SNIPPET_CONTEXT_LINES
) -> str:
    """Window of lines around *line_index* (0-based), match line marked with '>'."""
    start = max(0, line_index - context)
    end = min(len(lines), line_index + context + 1)
    rendered = []
    for i in range(start, end):
        marker = ">" if i == line_index else " "
        rendered.append(f"{marker} {i + 1:>4} | {lines[i]}")
    return "\n".join(rendered)


def build_finding(
    file: FileInfo,
    pattern: PatternDefinition,
    *,
    line: int,
    column: int,
    severity: Severity,
    message: str,
    code_snippet: str | None = None,
) -> Finding:
    return Finding(
        severity=severity,
        message=message,
        file=file.path,
        line=line,
        column=column,
        pass_=pattern.pass_,
        code_snippet=code_snippet,
        suggestion=pattern.suggestion,
        pattern_id=pattern.id,
    )
