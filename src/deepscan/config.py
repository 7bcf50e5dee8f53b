"""Scanner configuration — defaults, YAML file, env vars."""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from deepscan.scanner.models import ALL_SCAN_PASSES, ScanPass

DEFAULT_EXCLUDE_PATTERNS = (
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/.git/**",
    "**/*.min.js",
    "**/*.min.css",
)

# 1 MB
DEFAULT_MAX_FILE_SIZE = 1024 * 1024

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ConfigError(ValueError):
    """Invalid configuration value."""


@dataclass
class ScannerConfig:
    """Options for one DeepScanner instance. Intervals are in milliseconds."""

    enabled: bool = True
    passes: list[ScanPass] = field(default_factory=lambda: list(ALL_SCAN_PASSES))
    continuous: bool = False
    continuous_interval: int = 60_000
    state_file: str = ".framework/scanner-state.md"
    repertoire_file: str = ".framework/scanner-repertoire.md"
    mcp_servers: list[str] = field(default_factory=list)
    exclude_patterns: list[str] = field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS)
    )
    max_findings_per_pass: int = 100
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    verbose: bool = False
    cache_enabled: bool = True

    def copy(self) -> ScannerConfig:
        return dataclasses.replace(
            self,
            passes=list(self.passes),
            mcp_servers=list(self.mcp_servers),
            exclude_patterns=list(self.exclude_patterns),
        )

    def updated(self, **changes: Any) -> ScannerConfig:
        """Return a copy with *changes* applied and validated."""
        known = {f.name for f in dataclasses.fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ConfigError(f"Unknown config option(s): {', '.join(sorted(unknown))}")
        config = self.copy()
        _apply(config, changes)
        return config

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScannerConfig:
        """Build a config from a mapping; unknown keys are ignored."""
        config = cls()
        known = {f.name for f in dataclasses.fields(cls)}
        _apply(config, {k: v for k, v in data.items() if k in known})
        return config

    @classmethod
    def load(cls, path: str | Path | None = None) -> ScannerConfig:
        """Load config from an optional YAML file, then env var overrides.

        The file may hold the options at its root or under a ``scanner:`` key.
        """
        config = cls()
        if path is not None:
            text = Path(path).read_text(encoding="utf-8")
            data = yaml.safe_load(text) or {}
            if not isinstance(data, dict):
                raise ConfigError("Config YAML must be a mapping")
            section = data.get("scanner", data)
            if not isinstance(section, dict):
                raise ConfigError("'scanner' section must be a mapping")
            config = cls.from_dict(section)

        env_passes = os.environ.get("DEEPSCAN_PASSES")
        if env_passes:
            config.passes = _parse_passes(
                [p.strip() for p in env_passes.split(",") if p.strip()]
            )

        env_interval = os.environ.get("DEEPSCAN_CONTINUOUS_INTERVAL")
        if env_interval:
            config.continuous_interval = _positive_int(
                "continuous_interval", env_interval
            )

        env_size = os.environ.get("DEEPSCAN_MAX_FILE_SIZE")
        if env_size:
            config.max_file_size = _positive_int("max_file_size", env_size)

        env_cap = os.environ.get("DEEPSCAN_MAX_FINDINGS_PER_PASS")
        if env_cap:
            config.max_findings_per_pass = _positive_int(
                "max_findings_per_pass", env_cap
            )

        env_verbose = os.environ.get("DEEPSCAN_VERBOSE")
        if env_verbose:
            config.verbose = env_verbose.lower() in _TRUE_VALUES

        return config


def _apply(config: ScannerConfig, data: dict[str, Any]) -> None:
    for key, value in data.items():
        if key == "passes":
            value = _parse_passes(value)
        elif key in ("continuous_interval", "max_findings_per_pass", "max_file_size"):
            value = _positive_int(key, value)
        elif key in ("exclude_patterns", "mcp_servers"):
            if not isinstance(value, (list, tuple)):
                raise ConfigError(f"'{key}' must be a list")
            value = [str(v) for v in value]
        elif key in ("enabled", "continuous", "verbose", "cache_enabled"):
            value = bool(value)
        elif key in ("state_file", "repertoire_file"):
            value = str(value)
        setattr(config, key, value)


def _parse_passes(value: Any) -> list[ScanPass]:
    if not isinstance(value, (list, tuple)):
        raise ConfigError("'passes' must be a list")
    passes = []
    for item in value:
        try:
            passes.append(item if isinstance(item, ScanPass) else ScanPass(item))
        except ValueError:
            valid = ", ".join(p.value for p in ALL_SCAN_PASSES)
            raise ConfigError(
                f"Unknown scan pass {item!r} (expected one of {valid})"
            ) from None
    return passes


def _positive_int(key: str, value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"'{key}' must be an integer, got {value!r}") from None
    if number <= 0:
        raise ConfigError(f"'{key}' must be positive, got {number}")
    return number
