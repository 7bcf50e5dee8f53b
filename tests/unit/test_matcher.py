"""Tests for the pattern matcher and its strategies."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import pytest

from deepscan.scanner.errors import PatternMatcherError
from deepscan.scanner.matcher import PatternMatcher, applies_to
from deepscan.scanner.models import MatchType, ScanPass, Severity
from deepscan.scanner.patterns import DEFAULT_PATTERNS
from deepscan.scanner.repertoire import RepertoireStore
from deepscan.scanner.strategies import (
    AstStrategy,
    HybridStrategy,
    RegexStrategy,
    SemanticStrategy,
    resolve_severity,
)
from deepscan.scanner.strategies.base import extract_code_snippet, locate


def run_async(coro):
    """Helper to run async functions in sync tests."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


@pytest.fixture
def matcher(tmp_path: Path) -> PatternMatcher:
    return PatternMatcher(RepertoireStore(tmp_path / "missing.md"))


class TestLocation:
    def test_first_line(self):
        assert locate("abc", 0) == (1, 1)
        assert locate("abc", 2) == (1, 3)

    def test_later_lines(self):
        content = "one\ntwo\nthree danger"
        offset = content.index("danger")
        assert locate(content, offset) == (3, 7)

    def test_location_reslices_to_match(self):
        content = "a\n\n  x = eval(y)\n"
        offset = content.index("eval")
        line, column = locate(content, offset)
        assert content.split("\n")[line - 1][column - 1 :].startswith("eval")


class TestSnippet:
    def test_marks_match_line_with_context(self):
        lines = [f"line{i}" for i in range(1, 8)]
        snippet = extract_code_snippet(lines, 3).split("\n")
        assert len(snippet) == 5
        assert snippet[2].startswith(">")
        assert "line4" in snippet[2]
        assert all(not s.startswith(">") for s in snippet[:2] + snippet[3:])

    def test_clamped_at_file_start(self):
        snippet = extract_code_snippet(["only"], 0)
        assert snippet == ">    1 | only"


class TestSeverity:
    def test_fixed_severity_passes_through(self):
        assert resolve_severity(Severity.LOW, "password") is Severity.LOW

    def test_dynamic_password_is_critical(self):
        assert resolve_severity("dynamic", "db_PASSWORD = 'x'") is Severity.CRITICAL
        assert resolve_severity("dynamic", "client_secret") is Severity.CRITICAL

    def test_dynamic_other_is_high(self):
        assert resolve_severity("dynamic", "token = 'abc'") is Severity.HIGH
        assert resolve_severity("dynamic") is Severity.HIGH


class TestRegexStrategy:
    def test_every_occurrence_reported(self, make_file, make_pattern):
        file = make_file("danger(1)\nok\n  danger(2)")
        findings = RegexStrategy().match(file, make_pattern())
        assert [(f.line, f.column) for f in findings] == [(1, 1), (3, 3)]
        assert findings[0].pattern_id == "test-pattern"
        assert findings[0].pass_ is ScanPass.SECURITY
        assert findings[0].file == "src/app.ts"
        assert ">" in findings[1].code_snippet

    def test_multiline_anchors(self, make_file, make_pattern):
        file = make_file("x\nstart here\n")
        findings = RegexStrategy().match(file, make_pattern(pattern=r"^start"))
        assert [f.line for f in findings] == [2]

    def test_dynamic_severity_per_match(self, make_file, make_pattern):
        file = make_file('password = "a"\ntoken = "b"')
        pattern = make_pattern(
            pattern=r"(password|token)\s*=\s*\"[^\"]+\"", severity="dynamic"
        )
        findings = RegexStrategy().match(file, pattern)
        assert [f.severity for f in findings] == [Severity.CRITICAL, Severity.HIGH]

    def test_invalid_regex_raises_with_pattern_id(self, make_file, make_pattern):
        with pytest.raises(PatternMatcherError) as exc:
            RegexStrategy().match(make_file("x"), make_pattern(id="broken", pattern="("))
        assert exc.value.pattern_id == "broken"

    def test_missing_regex_raises(self, make_file, make_pattern):
        with pytest.raises(PatternMatcherError):
            RegexStrategy().match(make_file("x"), make_pattern(pattern=None))


class TestSemanticStrategy:
    def test_large_file(self, make_file):
        content = "\n".join(["const a = 1;"] * 501)
        findings = SemanticStrategy().match(make_file(content), DEFAULT_PATTERNS["large-file"])
        assert len(findings) == 1
        assert (findings[0].line, findings[0].column) == (1, 1)
        assert findings[0].severity is Severity.INFO
        assert "501" in findings[0].message

    def test_large_file_threshold(self, make_file):
        content = "\n".join(["x"] * 500)
        assert SemanticStrategy().match(make_file(content), DEFAULT_PATTERNS["large-file"]) == []

    def test_nested_loop(self, make_file):
        content = "let a;\nfor (const x of xs) {\n  for (const y of ys) {}\n}\n"
        findings = SemanticStrategy().match(
            make_file(content), DEFAULT_PATTERNS["nested-loop-o2"]
        )
        assert len(findings) == 1
        assert findings[0].line == 2

    def test_unknown_id(self, make_file, make_pattern):
        pattern = make_pattern(id="mystery", match_type=MatchType.SEMANTIC)
        assert SemanticStrategy().match(make_file("x" * 10), pattern) == []


class TestAstAndHybrid:
    def test_ast_is_placeholder(self, make_file, make_pattern, caplog):
        pattern = make_pattern(match_type=MatchType.AST, ast_pattern="CallExpression")
        with caplog.at_level(logging.WARNING):
            assert AstStrategy().match(make_file("danger()"), pattern) == []
        assert "not yet implemented" in caplog.text

    def test_hybrid_is_regex_plus_ast(self, make_file, make_pattern):
        regex = RegexStrategy()
        hybrid = HybridStrategy(regex, AstStrategy())
        pattern = make_pattern(match_type=MatchType.HYBRID)
        assert len(hybrid.match(make_file("danger()\ndanger()"), pattern)) == 2


class TestAppliesTo:
    def test_no_globs_applies_everywhere(self, make_pattern):
        assert applies_to(make_pattern(), "anything/at/all.py")

    def test_file_and_exclude_globs(self, make_pattern):
        pattern = make_pattern(
            file_patterns=("**/*.ts",), exclude_patterns=("**/*.test.ts",)
        )
        assert applies_to(pattern, "src/a.ts")
        assert not applies_to(pattern, "src/a.js")
        assert not applies_to(pattern, "src/a.test.ts")


class TestPatternMatcher:
    def test_no_content_no_findings(self, matcher, make_file, make_pattern):
        file = make_file("")
        assert matcher.match_pattern(file, make_pattern()) == []

    def test_match_file_uses_pass_patterns(self, matcher, make_file):
        file = make_file("const x = eval(input);\nel.innerHTML = html;")
        findings = run_async(matcher.match_file(file, ScanPass.SECURITY))
        assert sorted(f.pattern_id for f in findings) == ["eval-usage", "innerhtml-usage"]
        assert run_async(matcher.match_file(file, ScanPass.PERFORMANCE)) == []

    def test_file_globs_respected(self, matcher, make_file):
        file = make_file("eval(x)", path="scripts/tool.py")
        assert run_async(matcher.match_file(file, ScanPass.SECURITY)) == []

    def test_invalid_regex_is_isolated(self, tmp_path: Path, make_file, caplog):
        path = tmp_path / "rep.json"
        path.write_text(
            json.dumps(
                [
                    {"id": "broken", "name": "Broken", "pass": "security",
                     "severity": "high", "pattern": "("},
                    {"id": "works", "name": "Works", "pass": "security",
                     "severity": "low", "pattern": r"danger\("},
                ]
            )
        )
        matcher = PatternMatcher(RepertoireStore(path))
        with caplog.at_level(logging.WARNING):
            findings = run_async(matcher.match_file(make_file("danger()"), ScanPass.SECURITY))
        assert [f.pattern_id for f in findings] == ["works"]
        assert "broken" in caplog.text
