"""Scanner data models — patterns, findings, file info, and persisted state."""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal


class ScanPass(enum.Enum):
    """Analysis category a pattern belongs to."""

    ANTI_PATTERNS = "anti-patterns"
    ARCHITECTURE = "architecture"
    PERFORMANCE = "performance"
    SECURITY = "security"


ALL_SCAN_PASSES: tuple[ScanPass, ...] = (
    ScanPass.ANTI_PATTERNS,
    ScanPass.ARCHITECTURE,
    ScanPass.PERFORMANCE,
    ScanPass.SECURITY,
)


class Severity(enum.Enum):
    """Finding severity level."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


# Pattern-only sentinel: severity is resolved per match
DYNAMIC_SEVERITY = "dynamic"

PatternSeverity = Severity | Literal["dynamic"]

SEVERITY_ORDER: dict[Severity, int] = {
    Severity.INFO: 0,
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


def severity_at_or_above(severity: Severity, threshold: Severity) -> bool:
    """Return True if *severity* ranks at or above *threshold*."""
    return SEVERITY_ORDER[severity] >= SEVERITY_ORDER[threshold]


class MatchType(enum.Enum):
    """Strategy used to match a pattern against file content."""

    REGEX = "regex"
    AST = "ast"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"


def utc_now() -> str:
    """Current time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def new_finding_id() -> str:
    return f"finding-{uuid.uuid4().hex[:12]}"


def parse_pattern_severity(value: str) -> PatternSeverity:
    if value == DYNAMIC_SEVERITY:
        return DYNAMIC_SEVERITY
    return Severity(value)


def _glob_list(data: dict[str, Any], key: str) -> tuple[str, ...] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"'{key}' must be a list of globs, got {value!r}")
    return tuple(str(v) for v in value)


@dataclass(frozen=True)
class PatternDefinition:
    """A named, versionable detection rule.

    ``pattern`` is kept as the raw regex source so the definition stays
    serialisable; compilation happens on demand in the match strategies.
    """

    id: str
    name: str
    description: str
    pass_: ScanPass
    severity: PatternSeverity
    match_type: MatchType = MatchType.REGEX
    pattern: str | None = None
    ast_pattern: str | None = None
    semantic_pattern: str | None = None
    file_patterns: tuple[str, ...] | None = None
    exclude_patterns: tuple[str, ...] | None = None
    suggestion: str | None = None
    metadata: dict[str, Any] | None = field(default=None, compare=False, hash=False)
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PatternDefinition:
        """Build a pattern from its persisted (camelCase) representation.

        Raises KeyError / ValueError on missing ids, unknown enum values or
        wrongly typed fields.
        """
        enabled = data.get("enabled", True)
        if not isinstance(enabled, bool):
            raise ValueError(f"'enabled' must be a boolean, got {enabled!r}")
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            description=data.get("description", ""),
            pass_=ScanPass(data["pass"]),
            severity=parse_pattern_severity(data.get("severity", "medium")),
            match_type=MatchType(data.get("matchType", "regex")),
            pattern=data.get("pattern"),
            ast_pattern=data.get("astPattern"),
            semantic_pattern=data.get("semanticPattern"),
            file_patterns=_glob_list(data, "filePatterns"),
            exclude_patterns=_glob_list(data, "excludePatterns"),
            suggestion=data.get("suggestion"),
            metadata=data.get("metadata"),
            enabled=enabled,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "pass": self.pass_.value,
            "severity": (
                self.severity.value
                if isinstance(self.severity, Severity)
                else self.severity
            ),
            "matchType": self.match_type.value,
        }
        if self.pattern is not None:
            data["pattern"] = self.pattern
        if self.ast_pattern is not None:
            data["astPattern"] = self.ast_pattern
        if self.semantic_pattern is not None:
            data["semanticPattern"] = self.semantic_pattern
        if self.file_patterns is not None:
            data["filePatterns"] = list(self.file_patterns)
        if self.exclude_patterns is not None:
            data["excludePatterns"] = list(self.exclude_patterns)
        if self.suggestion is not None:
            data["suggestion"] = self.suggestion
        if self.metadata is not None:
            data["metadata"] = self.metadata
        data["enabled"] = self.enabled
        return data


@dataclass(frozen=True)
class PatternCategory:
    """A group of patterns, one per pass in the built-in repertoire."""

    id: str
    name: str
    description: str
    patterns: tuple[PatternDefinition, ...] = ()


_CATEGORY_INFO: dict[ScanPass, tuple[str, str]] = {
    ScanPass.ANTI_PATTERNS: ("Anti-Patterns", "Common code anti-patterns and code smells"),
    ScanPass.ARCHITECTURE: ("Architecture", "Architecture and design issues"),
    ScanPass.PERFORMANCE: ("Performance", "Performance optimization opportunities"),
    ScanPass.SECURITY: ("Security", "Security vulnerabilities and risks"),
}


@dataclass(frozen=True)
class PatternRepertoire:
    """Versioned collection of pattern definitions.

    ``patterns`` is the flattened, authoritative lookup list; ``categories``
    is an organisational view over the same definitions.
    """

    version: str
    updated_at: str
    categories: tuple[PatternCategory, ...] = ()
    patterns: tuple[PatternDefinition, ...] = ()

    @classmethod
    def from_patterns(
        cls,
        patterns: list[PatternDefinition] | tuple[PatternDefinition, ...],
        version: str = "1.0.0",
        updated_at: str | None = None,
    ) -> PatternRepertoire:
        """Build a repertoire whose categories group *patterns* by pass."""
        categories = []
        for scan_pass in ALL_SCAN_PASSES:
            members = tuple(p for p in patterns if p.pass_ is scan_pass)
            if not members:
                continue
            name, description = _CATEGORY_INFO[scan_pass]
            categories.append(
                PatternCategory(
                    id=scan_pass.value,
                    name=name,
                    description=description,
                    patterns=members,
                )
            )
        return cls(
            version=version,
            updated_at=updated_at or utc_now(),
            categories=tuple(categories),
            patterns=tuple(patterns),
        )

    def get(self, pattern_id: str) -> PatternDefinition | None:
        for pattern in self.patterns:
            if pattern.id == pattern_id:
                return pattern
        return None

    def for_pass(self, scan_pass: ScanPass) -> list[PatternDefinition]:
        """Enabled patterns belonging to *scan_pass*."""
        return [p for p in self.patterns if p.pass_ is scan_pass and p.enabled]

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "updated_at": self.updated_at,
            "categories": [
                {
                    "id": c.id,
                    "name": c.name,
                    "description": c.description,
                    "patterns": [p.to_dict() for p in c.patterns],
                }
                for c in self.categories
            ],
            "patterns": [p.to_dict() for p in self.patterns],
        }


@dataclass(frozen=True)
class Finding:
    """One reported occurrence of a pattern match. Never mutated."""

    severity: Severity
    message: str
    file: str
    line: int
    column: int
    pass_: ScanPass
    code_snippet: str | None = None
    suggestion: str | None = None
    pattern_id: str | None = None
    metadata: dict[str, Any] | None = field(default=None, hash=False)
    timestamp: str = field(default_factory=utc_now)
    id: str = field(default_factory=new_finding_id)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Finding:
        return cls(
            id=data["id"],
            severity=Severity(data["severity"]),
            message=data.get("message", ""),
            file=data["file"],
            line=int(data["line"]),
            column=int(data["column"]),
            pass_=ScanPass(data["pass"]),
            code_snippet=data.get("codeSnippet"),
            suggestion=data.get("suggestion"),
            pattern_id=data.get("patternId"),
            metadata=data.get("metadata"),
            timestamp=data.get("timestamp") or utc_now(),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "severity": self.severity.value,
            "message": self.message,
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "pass": self.pass_.value,
        }
        if self.code_snippet is not None:
            data["codeSnippet"] = self.code_snippet
        if self.suggestion is not None:
            data["suggestion"] = self.suggestion
        if self.pattern_id is not None:
            data["patternId"] = self.pattern_id
        if self.metadata is not None:
            data["metadata"] = self.metadata
        data["timestamp"] = self.timestamp
        return data


@dataclass
class FileInfo:
    """A candidate file produced by the directory walk."""

    path: str
    absolute_path: str
    extension: str
    size: int
    content: str | None = None
    is_binary: bool = False


@dataclass
class ScanPassState:
    """Persisted summary of the last run of one pass."""

    name: ScanPass
    enabled: bool = True
    last_run: str | None = None
    findings_count: int = 0
    last_duration: int | None = None
    error: str | None = None

    @classmethod
    def from_dict(cls, name: ScanPass, data: dict[str, Any]) -> ScanPassState:
        duration = data.get("lastDuration")
        return cls(
            name=name,
            enabled=bool(data.get("enabled", True)),
            last_run=data.get("lastRun"),
            findings_count=int(data.get("findingsCount", 0)),
            last_duration=int(duration) if duration is not None else None,
            error=data.get("error"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name.value,
            "enabled": self.enabled,
            "findingsCount": self.findings_count,
        }
        if self.last_run is not None:
            data["lastRun"] = self.last_run
        if self.last_duration is not None:
            data["lastDuration"] = self.last_duration
        if self.error is not None:
            data["error"] = self.error
        return data


def _initial_passes() -> dict[ScanPass, ScanPassState]:
    return {p: ScanPassState(name=p) for p in ALL_SCAN_PASSES}


@dataclass
class ScannerState:
    """Orchestrator state, mutated in place and flushed after every scan."""

    workspace_path: str
    version: str = "1.0.0"
    created_at: str = field(default_factory=utc_now)
    updated_at: str = ""
    total_scans: int = 0
    passes: dict[ScanPass, ScanPassState] = field(default_factory=_initial_passes)
    last_findings: list[Finding] = field(default_factory=list)
    continuous_mode: bool = False

    def __post_init__(self) -> None:
        if not self.updated_at:
            self.updated_at = self.created_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "totalScans": self.total_scans,
            "passes": {p.value: s.to_dict() for p, s in self.passes.items()},
            "lastFindings": [f.to_dict() for f in self.last_findings],
            "continuousMode": self.continuous_mode,
            "workspacePath": self.workspace_path,
        }


@dataclass
class ScanPassResult:
    """Outcome of a single pass within one scan."""

    pass_: ScanPass
    success: bool
    started_at: str
    completed_at: str
    findings: list[Finding] = field(default_factory=list)
    duration: int = 0
    files_scanned: int = 0
    error: str | None = None


@dataclass
class ScanResult:
    """Aggregate result of one ``run``."""

    started_at: str
    completed_at: str = ""
    pass_results: list[ScanPassResult] = field(default_factory=list)
    findings: list[Finding] = field(default_factory=list)
    total_duration: int = 0

    @property
    def success(self) -> bool:
        return all(r.success for r in self.pass_results)

    @property
    def total_files_scanned(self) -> int:
        return sum(r.files_scanned for r in self.pass_results)
