"""Pattern cache — compiled regexes and the loaded repertoire, with a TTL."""

from __future__ import annotations

import re
import time
from collections.abc import Callable

from deepscan.scanner.models import PatternDefinition, PatternRepertoire

# 5 minutes
CACHE_TTL = 300.0

REGEX_FLAGS = re.MULTILINE


class PatternCache:
    """Holds compiled regexes (keyed by source) and the last repertoire.

    One instance is shared process-wide by default (see ``shared_cache``);
    stores that need isolation get their own instance.
    """

    def __init__(
        self,
        ttl: float = CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self.regex: dict[str, re.Pattern[str]] = {}
        self.patterns: dict[str, PatternDefinition] = {}
        self.repertoire: PatternRepertoire | None = None
        self.source: str | None = None
        self.loaded_at: float = 0.0

    def is_fresh(self, source: str | None = None) -> bool:
        """True while a stored repertoire is younger than the TTL.

        When *source* is given the stored repertoire must also come from it.
        """
        return (
            self.repertoire is not None
            and (source is None or source == self.source)
            and self._clock() - self.loaded_at < self.ttl
        )

    def store(self, repertoire: PatternRepertoire, source: str | None = None) -> None:
        self.repertoire = repertoire
        self.source = source
        self.loaded_at = self._clock()
        self.patterns = {p.id: p for p in repertoire.patterns}

    def compile(self, source: str) -> re.Pattern[str]:
        """Return the compiled regex for *source*, compiling on first use.

        Raises re.error for invalid sources; failures are not cached.
        """
        compiled = self.regex.get(source)
        if compiled is None:
            compiled = re.compile(source, REGEX_FLAGS)
            self.regex[source] = compiled
        return compiled

    def clear(self) -> None:
        self.regex.clear()
        self.patterns.clear()
        self.repertoire = None
        self.source = None
        self.loaded_at = 0.0


_SHARED_CACHE = PatternCache()


def shared_cache() -> PatternCache:
    """The process-wide cache used when callers do not inject one."""
    return _SHARED_CACHE
