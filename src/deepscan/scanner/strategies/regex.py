"""Regex strategy — global search over the whole file content."""

from __future__ import annotations

import re

from deepscan.scanner.cache import REGEX_FLAGS, PatternCache
from deepscan.scanner.errors import PatternMatcherError
from deepscan.scanner.models import FileInfo, Finding, PatternDefinition
from deepscan.scanner.strategies.base import (
    build_finding,
    extract_code_snippet,
    locate,
    resolve_severity,
)


class RegexStrategy:
    """Matches ``pattern.pattern`` everywhere in the file.

    Compiled regexes are reused through the injected cache when one is given.
    """

    def __init__(self, cache: PatternCache | None = None) -> None:
        self._cache = cache

    def compile(self, pattern: PatternDefinition) -> re.Pattern[str]:
        if not pattern.pattern:
            raise PatternMatcherError(
                f"Pattern '{pattern.id}' has no regex source",
                pattern_id=pattern.id,
            )
        try:
            if self._cache is not None:
                return self._cache.compile(pattern.pattern)
            return re.compile(pattern.pattern, REGEX_FLAGS)
        except re.error as e:
            raise PatternMatcherError(
                f"Invalid regex pattern '{pattern.pattern}': {e}",
                cause=e,
                pattern_id=pattern.id,
            ) from e

    def match(self, file: FileInfo, pattern: PatternDefinition) -> list[Finding]:
        regex = self.compile(pattern)
        content = file.content
        if not content:
            return []

        lines = content.split("\n")
        findings: list[Finding] = []
        for m in regex.finditer(content):
            line, column = locate(content, m.start())
            findings.append(
                build_finding(
                    file,
                    pattern,
                    line=line,
                    column=column,
                    severity=resolve_severity(pattern.severity, m.group(0)),
                    message=f"{pattern.name}: {pattern.description}",
                    code_snippet=extract_code_snippet(lines, line - 1),
                )
            )
        return findings
