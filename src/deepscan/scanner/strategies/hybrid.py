"""Hybrid strategy — regex results plus AST results."""

from __future__ import annotations

from deepscan.scanner.models import FileInfo, Finding, PatternDefinition
from deepscan.scanner.strategies.ast_ import AstStrategy
from deepscan.scanner.strategies.regex import RegexStrategy


class HybridStrategy:
    def __init__(self, regex: RegexStrategy, ast: AstStrategy) -> None:
        self._regex = regex
        self._ast = ast

    def match(self, file: FileInfo, pattern: PatternDefinition) -> list[Finding]:
        return [
            *self._regex.match(file, pattern),
            *self._ast.match(file, pattern),
        ]
