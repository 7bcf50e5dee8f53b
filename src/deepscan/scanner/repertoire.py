"""Pattern repertoire store — load, parse, cache and look up pattern definitions."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import Any

from deepscan.scanner.cache import PatternCache, shared_cache
from deepscan.scanner.errors import RepertoireLoadError
from deepscan.scanner.models import (
    ALL_SCAN_PASSES,
    PatternDefinition,
    PatternRepertoire,
    ScanPass,
    utc_now,
)
from deepscan.scanner.patterns import DEFAULT_VERSION, default_repertoire

logger = logging.getLogger(__name__)

_JSON_BLOCK = re.compile(r"```json\n(.*?)\n```", re.DOTALL)
_VERSION_HEADER = re.compile(r"\*\*Version:\*\*\s*(\S+)")


class RepertoireStore:
    """Loads the repertoire from disk (or built-in defaults) and caches it."""

    def __init__(
        self,
        repertoire_path: str | Path,
        cache: PatternCache | None = None,
        cache_enabled: bool = True,
    ) -> None:
        self.repertoire_path = Path(repertoire_path)
        self._source = str(self.repertoire_path.resolve())
        if cache is not None:
            self.cache = cache
        elif cache_enabled:
            self.cache = shared_cache()
        else:
            self.cache = PatternCache()

    async def load_repertoire(self) -> PatternRepertoire:
        """Return the repertoire, re-reading the file once the TTL lapses.

        A missing file yields the built-in defaults. Any other read or parse
        failure raises RepertoireLoadError.
        """
        cached = self.cache.repertoire
        if cached is not None and self.cache.is_fresh(self._source):
            return cached

        try:
            text = await asyncio.to_thread(
                self.repertoire_path.read_text, encoding="utf-8"
            )
        except FileNotFoundError:
            logger.debug(
                "No repertoire at %s, using built-in patterns", self.repertoire_path
            )
            return default_repertoire()
        except OSError as e:
            raise RepertoireLoadError(
                f"Failed to load repertoire: {e}", cause=e
            ) from e

        repertoire = parse_repertoire(text)
        self.cache.store(repertoire, self._source)
        logger.info(
            "Loaded %d pattern(s) from %s",
            len(repertoire.patterns),
            self.repertoire_path,
        )
        return repertoire

    async def get_patterns_for_pass(
        self, scan_pass: ScanPass
    ) -> list[PatternDefinition]:
        repertoire = await self.load_repertoire()
        return repertoire.for_pass(scan_pass)

    async def get_pattern(self, pattern_id: str) -> PatternDefinition | None:
        if self.cache.is_fresh(self._source) and pattern_id in self.cache.patterns:
            return self.cache.patterns[pattern_id]
        repertoire = await self.load_repertoire()
        return repertoire.get(pattern_id)

    def clear_cache(self) -> None:
        self.cache.clear()


def parse_repertoire(text: str) -> PatternRepertoire:
    """Parse repertoire file content.

    Accepts a JSON array of patterns, a full repertoire JSON object, or a
    markdown document with one ```json block per pattern.
    """
    trimmed = text.strip()
    if trimmed.startswith(("{", "[")):
        try:
            data = json.loads(trimmed)
        except json.JSONDecodeError as e:
            raise RepertoireLoadError(f"Failed to parse repertoire: {e}", cause=e) from e
        if isinstance(data, list):
            return PatternRepertoire.from_patterns(_build_patterns(data))
        if isinstance(data, dict):
            return _repertoire_from_dict(data)
    return parse_markdown_repertoire(text)


def parse_markdown_repertoire(text: str) -> PatternRepertoire:
    """Collect pattern objects from fenced json blocks; bad blocks are skipped."""
    patterns: list[PatternDefinition] = []
    for block in _JSON_BLOCK.findall(text):
        try:
            data = json.loads(block)
        except json.JSONDecodeError:
            logger.debug("Skipping unparseable json block in repertoire")
            continue
        if not isinstance(data, dict):
            continue
        if not (data.get("id") and data.get("name") and data.get("pass")):
            continue
        pattern = _build_pattern(data)
        if pattern is not None:
            patterns.append(pattern)

    version_match = _VERSION_HEADER.search(text)
    version = version_match.group(1) if version_match else DEFAULT_VERSION
    return PatternRepertoire.from_patterns(patterns, version=version)


def render_repertoire_markdown(repertoire: PatternRepertoire) -> str:
    """Render *repertoire* in the markdown form read by parse_markdown_repertoire."""
    lines = [
        "# Scanner Pattern Repertoire",
        "",
        f"**Version:** {repertoire.version}",
        f"**Updated:** {repertoire.updated_at}",
        "",
    ]
    for scan_pass in ALL_SCAN_PASSES:
        members = [p for p in repertoire.patterns if p.pass_ is scan_pass]
        if not members:
            continue
        lines.append(f"## {scan_pass.value}")
        lines.append("")
        for pattern in members:
            lines.append(f"### {pattern.name}")
            lines.append("")
            if pattern.description:
                lines.append(pattern.description)
                lines.append("")
            lines.append("```json")
            lines.append(json.dumps(pattern.to_dict(), indent=2, ensure_ascii=False))
            lines.append("```")
            lines.append("")
    return "\n".join(lines)


def _repertoire_from_dict(data: dict[str, Any]) -> PatternRepertoire:
    version = str(data.get("version", DEFAULT_VERSION))
    updated_at = data.get("updated_at") or utc_now()

    raw_patterns = data.get("patterns")
    if not raw_patterns:
        # Flatten categories when the object has no flat list
        raw_patterns = [
            p
            for category in data.get("categories", [])
            if isinstance(category, dict)
            for p in category.get("patterns", [])
        ]
    return PatternRepertoire.from_patterns(
        _build_patterns(raw_patterns), version=version, updated_at=updated_at
    )


def _build_patterns(entries: list[Any]) -> list[PatternDefinition]:
    patterns = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        pattern = _build_pattern(entry)
        if pattern is not None:
            patterns.append(pattern)
    return patterns


def _build_pattern(entry: dict[str, Any]) -> PatternDefinition | None:
    try:
        return PatternDefinition.from_dict(entry)
    except (KeyError, ValueError, TypeError) as e:
        logger.warning(
            "Skipping pattern %r: %s", entry.get("id", "<unnamed>"), e
        )
        return None
