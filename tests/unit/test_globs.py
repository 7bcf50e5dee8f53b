"""Tests for path glob matching."""

from __future__ import annotations

import pytest

from deepscan.scanner.globs import matches_any, matches_glob


class TestMatchesGlob:
    @pytest.mark.parametrize(
        "path",
        ["a.ts", "src/a.ts", "src/deep/nested/a.ts"],
    )
    def test_double_star_matches_any_depth(self, path):
        assert matches_glob(path, "**/*.ts")

    def test_single_star_stays_in_segment(self):
        assert matches_glob("src/a.ts", "src/*.ts")
        assert not matches_glob("src/lib/a.ts", "src/*.ts")

    def test_question_mark_matches_one_character(self):
        assert matches_glob("a1.ts", "a?.ts")
        assert not matches_glob("a12.ts", "a?.ts")
        assert not matches_glob("a/.ts", "a?.ts")

    def test_directory_exclusion_matches_dir_and_contents(self):
        assert matches_glob("node_modules", "**/node_modules/**")
        assert matches_glob("node_modules/lib/index.js", "**/node_modules/**")
        assert matches_glob("pkg/node_modules/x.js", "**/node_modules/**")
        assert not matches_glob("src/node_modules_backup.js", "**/node_modules/**")

    def test_dots_are_literal(self):
        assert matches_glob("app.min.js", "**/*.min.js")
        assert not matches_glob("appxminxjs", "**/*.min.js")

    def test_extension_must_match_whole_path(self):
        assert not matches_glob("a.tsx", "**/*.ts")


def test_matches_any():
    patterns = ("**/dist/**", "**/*.min.css")
    assert matches_any("dist/bundle.js", patterns)
    assert matches_any("styles/site.min.css", patterns)
    assert not matches_any("src/index.ts", patterns)
