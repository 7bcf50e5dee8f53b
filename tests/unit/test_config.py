"""Tests for scanner configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from deepscan.config import DEFAULT_EXCLUDE_PATTERNS, ConfigError, ScannerConfig
from deepscan.scanner.models import ALL_SCAN_PASSES, ScanPass


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "DEEPSCAN_PASSES",
        "DEEPSCAN_CONTINUOUS_INTERVAL",
        "DEEPSCAN_MAX_FILE_SIZE",
        "DEEPSCAN_MAX_FINDINGS_PER_PASS",
        "DEEPSCAN_VERBOSE",
    ):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_defaults(self):
        config = ScannerConfig()
        assert config.passes == list(ALL_SCAN_PASSES)
        assert config.continuous_interval == 60_000
        assert config.state_file == ".framework/scanner-state.md"
        assert config.repertoire_file == ".framework/scanner-repertoire.md"
        assert config.exclude_patterns == list(DEFAULT_EXCLUDE_PATTERNS)
        assert config.max_findings_per_pass == 100
        assert config.max_file_size == 1024 * 1024
        assert config.cache_enabled is True

    def test_load_without_file(self):
        assert ScannerConfig.load() == ScannerConfig()

    def test_copy_is_independent(self):
        config = ScannerConfig()
        clone = config.copy()
        clone.passes.append(ScanPass.SECURITY)
        clone.exclude_patterns.clear()
        assert config.passes == list(ALL_SCAN_PASSES)
        assert config.exclude_patterns == list(DEFAULT_EXCLUDE_PATTERNS)


class TestYaml:
    def test_scanner_section(self, tmp_path: Path):
        path = tmp_path / "deepscan.yaml"
        path.write_text(
            "scanner:\n"
            "  passes: [security, performance]\n"
            "  continuous_interval: 5000\n"
            "  exclude_patterns: ['**/vendor/**']\n"
            "  unknown_option: 1\n"
        )
        config = ScannerConfig.load(path)
        assert config.passes == [ScanPass.SECURITY, ScanPass.PERFORMANCE]
        assert config.continuous_interval == 5000
        assert config.exclude_patterns == ["**/vendor/**"]

    def test_root_level_options(self, tmp_path: Path):
        path = tmp_path / "deepscan.yaml"
        path.write_text("max_findings_per_pass: 5\nverbose: true\n")
        config = ScannerConfig.load(path)
        assert config.max_findings_per_pass == 5
        assert config.verbose is True

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "deepscan.yaml"
        path.write_text("")
        assert ScannerConfig.load(path) == ScannerConfig()

    def test_unknown_pass(self, tmp_path: Path):
        path = tmp_path / "deepscan.yaml"
        path.write_text("passes: [style]\n")
        with pytest.raises(ConfigError, match="style"):
            ScannerConfig.load(path)

    def test_non_mapping(self, tmp_path: Path):
        path = tmp_path / "deepscan.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError):
            ScannerConfig.load(path)

    def test_bad_number(self, tmp_path: Path):
        path = tmp_path / "deepscan.yaml"
        path.write_text("max_file_size: -1\n")
        with pytest.raises(ValueError):
            ScannerConfig.load(path)


class TestEnvOverrides:
    def test_env_wins_over_file(self, tmp_path: Path, monkeypatch):
        path = tmp_path / "deepscan.yaml"
        path.write_text("continuous_interval: 5000\n")
        monkeypatch.setenv("DEEPSCAN_CONTINUOUS_INTERVAL", "1500")
        monkeypatch.setenv("DEEPSCAN_PASSES", "security, architecture")
        monkeypatch.setenv("DEEPSCAN_MAX_FILE_SIZE", "2048")
        monkeypatch.setenv("DEEPSCAN_MAX_FINDINGS_PER_PASS", "7")
        monkeypatch.setenv("DEEPSCAN_VERBOSE", "yes")
        config = ScannerConfig.load(path)
        assert config.continuous_interval == 1500
        assert config.passes == [ScanPass.SECURITY, ScanPass.ARCHITECTURE]
        assert config.max_file_size == 2048
        assert config.max_findings_per_pass == 7
        assert config.verbose is True

    def test_bad_env_value(self, monkeypatch):
        monkeypatch.setenv("DEEPSCAN_MAX_FILE_SIZE", "huge")
        with pytest.raises(ConfigError):
            ScannerConfig.load()


class TestUpdated:
    def test_returns_validated_copy(self):
        config = ScannerConfig()
        changed = config.updated(passes=["security"], max_file_size=10)
        assert changed.passes == [ScanPass.SECURITY]
        assert changed.max_file_size == 10
        assert config.max_file_size == 1024 * 1024

    def test_unknown_option(self):
        with pytest.raises(ConfigError, match="nope"):
            ScannerConfig().updated(nope=1)
