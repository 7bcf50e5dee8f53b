"""AST strategy — placeholder until a real parser is wired in."""

from __future__ import annotations

import logging

from deepscan.scanner.models import FileInfo, Finding, PatternDefinition

logger = logging.getLogger(__name__)


class AstStrategy:
    """Reports nothing. Swap this class out once AST matching exists."""

    def match(self, file: FileInfo, pattern: PatternDefinition) -> list[Finding]:
        logger.warning(
            "AST pattern matching not yet implemented for pattern: %s", pattern.id
        )
        return []
