"""Built-in pattern repertoire — used when no repertoire file exists."""

from __future__ import annotations

from deepscan.scanner.models import (
    MatchType,
    PatternDefinition,
    PatternRepertoire,
    ScanPass,
    Severity,
)

_JS_TS = ("**/*.ts", "**/*.tsx", "**/*.js", "**/*.jsx")
_TS = ("**/*.ts", "**/*.tsx")

DEFAULT_VERSION = "1.0.0"

ANTI_PATTERNS: list[PatternDefinition] = [
    PatternDefinition(
        id="any-type-usage",
        name="Any Type Usage",
        description="Usage of 'any' type reduces type safety",
        pass_=ScanPass.ANTI_PATTERNS,
        severity=Severity.MEDIUM,
        pattern=r":\s*any\b",
        file_patterns=_TS,
        suggestion="Replace 'any' with a specific type or 'unknown'",
    ),
    PatternDefinition(
        id="console-log",
        name="Console Log Statement",
        description="Console log statements should be removed in production",
        pass_=ScanPass.ANTI_PATTERNS,
        severity=Severity.LOW,
        pattern=r"console\.(log|debug|info|warn|error)\s*\(",
        file_patterns=_JS_TS,
        suggestion="Remove console statement or use a proper logging library",
    ),
    PatternDefinition(
        id="empty-catch",
        name="Empty Catch Block",
        description="Empty catch blocks silently swallow errors",
        pass_=ScanPass.ANTI_PATTERNS,
        severity=Severity.HIGH,
        pattern=r"catch\s*\([^)]*\)\s*\{\s*\}",
        file_patterns=_JS_TS,
        suggestion="Handle the error or at least log it",
    ),
    PatternDefinition(
        id="todo-without-issue",
        name="TODO Without Issue Reference",
        description="TODO comments should reference an issue tracker",
        pass_=ScanPass.ANTI_PATTERNS,
        severity=Severity.LOW,
        pattern=r"//\s*TODO(?![^(]*\))",
        file_patterns=_JS_TS,
        suggestion="Add issue reference: TODO(#issue-number) or TODO(@owner)",
    ),
]

ARCHITECTURE_PATTERNS: list[PatternDefinition] = [
    PatternDefinition(
        id="circular-dependency-risk",
        name="Potential Circular Dependency",
        description="Import from relative parent path may indicate circular dependency",
        pass_=ScanPass.ARCHITECTURE,
        severity=Severity.MEDIUM,
        pattern=r"from\s+['\"]\.\./\.\./\.\./\.\./",
        file_patterns=_JS_TS,
        suggestion="Consider restructuring to avoid deep relative imports",
    ),
    PatternDefinition(
        id="large-file",
        name="Large File",
        description="Files over 500 lines may be hard to maintain",
        pass_=ScanPass.ARCHITECTURE,
        severity=Severity.INFO,
        match_type=MatchType.SEMANTIC,
        suggestion="Consider splitting into smaller modules",
    ),
]

PERFORMANCE_PATTERNS: list[PatternDefinition] = [
    PatternDefinition(
        id="sync-recursive",
        name="Synchronous Recursive Call",
        description="Recursive calls without async can cause stack overflow",
        pass_=ScanPass.PERFORMANCE,
        severity=Severity.MEDIUM,
        pattern=r"function\s+(\w+)\s*\([^)]*\)\s*\{[^}]*\1\s*\(",
        file_patterns=_JS_TS,
        suggestion="Consider using iteration or making recursive calls async",
    ),
    PatternDefinition(
        id="nested-loop-o2",
        name="Nested Loop (O(n²))",
        description="Nested loops can cause performance issues with large datasets",
        pass_=ScanPass.PERFORMANCE,
        severity=Severity.LOW,
        match_type=MatchType.SEMANTIC,
        suggestion="Consider using a Map or Set for O(1) lookups",
    ),
]

SECURITY_PATTERNS: list[PatternDefinition] = [
    PatternDefinition(
        id="hardcoded-secret",
        name="Potential Hardcoded Secret",
        description="Hardcoded secrets should be moved to environment variables",
        pass_=ScanPass.SECURITY,
        severity=Severity.CRITICAL,
        pattern=r"(password|secret|api_key|apikey|key|token|auth)\s*[=:]\s*['\"][^'\"]+['\"]",
        file_patterns=_JS_TS,
        suggestion="Move secrets to environment variables or a secrets manager",
    ),
    PatternDefinition(
        id="sql-injection-risk",
        name="SQL Injection Risk",
        description="String concatenation in SQL queries can lead to injection",
        pass_=ScanPass.SECURITY,
        severity=Severity.CRITICAL,
        pattern=r"(query|execute|sql)\s*\(\s*[`'\"]+.*\+",
        file_patterns=_JS_TS,
        suggestion="Use parameterized queries instead of string concatenation",
    ),
    PatternDefinition(
        id="eval-usage",
        name="Eval Usage",
        description="eval() can execute arbitrary code and is a security risk",
        pass_=ScanPass.SECURITY,
        severity=Severity.CRITICAL,
        pattern=r"\beval\s*\(",
        file_patterns=_JS_TS,
        suggestion="Avoid eval() - use safer alternatives like JSON.parse for JSON",
    ),
    PatternDefinition(
        id="innerhtml-usage",
        name="innerHTML Usage",
        description="innerHTML can lead to XSS vulnerabilities",
        pass_=ScanPass.SECURITY,
        severity=Severity.HIGH,
        pattern=r"\.innerHTML\s*=",
        file_patterns=_JS_TS,
        suggestion="Use textContent or DOM APIs instead, or sanitize HTML",
    ),
]

# Built-in patterns by id, in pass order.
DEFAULT_PATTERNS: dict[str, PatternDefinition] = {
    p.id: p
    for p in (
        *ANTI_PATTERNS,
        *ARCHITECTURE_PATTERNS,
        *PERFORMANCE_PATTERNS,
        *SECURITY_PATTERNS,
    )
}


def default_repertoire() -> PatternRepertoire:
    """Build the built-in repertoire, one category per pass."""
    return PatternRepertoire.from_patterns(
        list(DEFAULT_PATTERNS.values()), version=DEFAULT_VERSION
    )
