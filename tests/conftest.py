"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from deepscan.scanner.cache import shared_cache
from deepscan.scanner.models import (
    FileInfo,
    MatchType,
    PatternDefinition,
    ScanPass,
    Severity,
)


@pytest.fixture(autouse=True)
def _clear_shared_cache():
    shared_cache().clear()
    yield
    shared_cache().clear()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def write_file(workspace: Path) -> Callable[[str, str], Path]:
    """Write *content* at a workspace-relative path, creating parents."""

    def _write(relative: str, content: str) -> Path:
        path = workspace / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


def _make_file(content: str, path: str = "src/app.ts") -> FileInfo:
    return FileInfo(
        path=path,
        absolute_path=f"/ws/{path}",
        extension=Path(path).suffix,
        size=len(content),
        content=content,
    )


def _make_pattern(**overrides) -> PatternDefinition:
    fields = {
        "id": "test-pattern",
        "name": "Test Pattern",
        "description": "A test pattern",
        "pass_": ScanPass.SECURITY,
        "severity": Severity.HIGH,
        "match_type": MatchType.REGEX,
        "pattern": r"danger\(",
    }
    fields.update(overrides)
    return PatternDefinition(**fields)


@pytest.fixture
def make_file() -> Callable[..., FileInfo]:
    return _make_file


@pytest.fixture
def make_pattern() -> Callable[..., PatternDefinition]:
    return _make_pattern
