"""Pattern matcher — applies a pass's patterns to one file."""

from __future__ import annotations

import logging

from deepscan.scanner.errors import PatternMatcherError
from deepscan.scanner.globs import matches_any
from deepscan.scanner.models import (
    FileInfo,
    Finding,
    MatchType,
    PatternDefinition,
    PatternRepertoire,
    ScanPass,
)
from deepscan.scanner.repertoire import RepertoireStore
from deepscan.scanner.strategies import (
    AstStrategy,
    HybridStrategy,
    MatchStrategy,
    RegexStrategy,
    SemanticStrategy,
)

logger = logging.getLogger(__name__)


def default_strategies(store: RepertoireStore) -> dict[MatchType, MatchStrategy]:
    """One strategy per match type, regex compilation sharing the store's cache."""
    regex = RegexStrategy(store.cache)
    ast = AstStrategy()
    return {
        MatchType.REGEX: regex,
        MatchType.AST: ast,
        MatchType.SEMANTIC: SemanticStrategy(),
        MatchType.HYBRID: HybridStrategy(regex, ast),
    }


def applies_to(pattern: PatternDefinition, path: str) -> bool:
    """Check a pattern's include/exclude globs against a relative path."""
    if pattern.file_patterns is not None and not matches_any(
        path, pattern.file_patterns
    ):
        return False
    if pattern.exclude_patterns and matches_any(path, pattern.exclude_patterns):
        return False
    return True


class PatternMatcher:
    """Matches file content against the patterns of a pass."""

    def __init__(
        self,
        store: RepertoireStore,
        strategies: dict[MatchType, MatchStrategy] | None = None,
    ) -> None:
        self.store = store
        self._strategies = strategies or default_strategies(store)

    async def load_repertoire(self) -> PatternRepertoire:
        return await self.store.load_repertoire()

    async def match_file(self, file: FileInfo, scan_pass: ScanPass) -> list[Finding]:
        """Union of every applicable pattern's findings for *file*.

        A pattern that fails (e.g. invalid regex) is logged and skipped so the
        remaining patterns still contribute.
        """
        patterns = await self.store.get_patterns_for_pass(scan_pass)
        findings: list[Finding] = []

        for pattern in patterns:
            if not applies_to(pattern, file.path):
                continue
            try:
                findings.extend(self.match_pattern(file, pattern))
            except PatternMatcherError as e:
                logger.warning(
                    "Skipping pattern %s on %s: %s", e.pattern_id, file.path, e
                )

        return findings

    def match_pattern(
        self, file: FileInfo, pattern: PatternDefinition
    ) -> list[Finding]:
        """Run the strategy for ``pattern.match_type`` against *file*.

        Raises PatternMatcherError (tagged with the pattern id) when the
        pattern itself is unusable.
        """
        if not file.content:
            return []
        strategy = self._strategies.get(pattern.match_type)
        if strategy is None:
            return []
        return strategy.match(file, pattern)

    def clear_cache(self) -> None:
        self.store.clear_cache()
