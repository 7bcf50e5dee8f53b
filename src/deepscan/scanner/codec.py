"""Scanner state persistence — markdown headers plus an embedded JSON block.

The document looks like::

    # Scanner State

    **Version:** 1.0.0
    **Total Scans:** 3
    ...

    ## Pass States

    ### security

    - **Enabled:** true
    - **Findings:** 2
    ...

    ## Last Findings

    ```json
    [ ...findings... ]
    ```

Decoding is best effort: every section that is missing or cannot be parsed
keeps the initial-state default instead of failing the load. The JSON block
may hold either the findings array or a full state object.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Protocol

from deepscan.scanner.models import (
    ALL_SCAN_PASSES,
    Finding,
    ScannerState,
    ScanPass,
    ScanPassState,
)

logger = logging.getLogger(__name__)

_JSON_BLOCK = re.compile(r"```json\n(.*?)\n```", re.DOTALL)
_PASS_SECTION = re.compile(r"^### (\S+)[ \t]*$", re.MULTILINE)


class StateCodec(Protocol):
    def encode(self, state: ScannerState) -> str: ...

    def decode(self, text: str, workspace_path: str) -> ScannerState: ...


def _header(label: str, text: str) -> str | None:
    m = re.search(rf"^\*\*{re.escape(label)}:\*\*[ \t]*(.*?)[ \t]*$", text, re.MULTILINE)
    return m.group(1) if m else None


def _bullet(label: str, text: str) -> str | None:
    m = re.search(
        rf"^- \*\*{re.escape(label)}:\*\*[ \t]*(.*?)[ \t]*$", text, re.MULTILINE
    )
    return m.group(1) if m else None


def _bool(value: str) -> bool | None:
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def _one_line(value: str) -> str:
    return " ".join(value.splitlines())


class HeaderSerializer:
    """Human-readable part: scalar headers and per-pass summaries."""

    def encode(self, state: ScannerState) -> list[str]:
        lines = [
            "# Scanner State",
            "",
            f"**Version:** {state.version}",
            f"**Created:** {state.created_at}",
            f"**Updated:** {state.updated_at}",
            f"**Total Scans:** {state.total_scans}",
            f"**Continuous Mode:** {'true' if state.continuous_mode else 'false'}",
            f"**Workspace:** {state.workspace_path}",
            "",
            "## Pass States",
            "",
        ]
        for scan_pass in ALL_SCAN_PASSES:
            ps = state.passes.get(scan_pass) or ScanPassState(name=scan_pass)
            duration = f"{ps.last_duration}ms" if ps.last_duration is not None else "N/A"
            lines.append(f"### {scan_pass.value}")
            lines.append("")
            lines.append(f"- **Enabled:** {'true' if ps.enabled else 'false'}")
            lines.append(f"- **Last Run:** {ps.last_run or 'Never'}")
            lines.append(f"- **Findings:** {ps.findings_count}")
            lines.append(f"- **Duration:** {duration}")
            if ps.error:
                lines.append(f"- **Error:** {_one_line(ps.error)}")
            lines.append("")
        return lines

    def decode_into(self, text: str, state: ScannerState) -> None:
        if (version := _header("Version", text)):
            state.version = version
        if (created := _header("Created", text)):
            state.created_at = created
        if (updated := _header("Updated", text)):
            state.updated_at = updated
        if (workspace := _header("Workspace", text)):
            state.workspace_path = workspace

        total = _header("Total Scans", text)
        if total is not None and total.isdigit():
            state.total_scans = int(total)

        continuous = _bool(_header("Continuous Mode", text) or "")
        if continuous is not None:
            state.continuous_mode = continuous

        for scan_pass, body in self._pass_sections(text):
            state.passes[scan_pass] = self._decode_pass(scan_pass, body)

    def _pass_sections(self, text: str) -> list[tuple[ScanPass, str]]:
        sections = []
        matches = list(_PASS_SECTION.finditer(text))
        for i, m in enumerate(matches):
            end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
            body = text[m.end() : end].split("\n## ", 1)[0]
            try:
                sections.append((ScanPass(m.group(1)), body))
            except ValueError:
                logger.debug("Ignoring unknown pass section %r", m.group(1))
        return sections

    def _decode_pass(self, scan_pass: ScanPass, body: str) -> ScanPassState:
        ps = ScanPassState(name=scan_pass)

        enabled = _bool(_bullet("Enabled", body) or "")
        if enabled is not None:
            ps.enabled = enabled

        last_run = _bullet("Last Run", body)
        if last_run and last_run != "Never":
            ps.last_run = last_run

        count = _bullet("Findings", body)
        if count is not None and count.isdigit():
            ps.findings_count = int(count)

        duration = (_bullet("Duration", body) or "").removesuffix("ms")
        if duration.isdigit():
            ps.last_duration = int(duration)

        ps.error = _bullet("Error", body) or None
        return ps


class FindingsSerializer:
    """Machine-readable part: the terminal fenced JSON block."""

    def encode(self, findings: list[Finding]) -> list[str]:
        return [
            "## Last Findings",
            "",
            "```json",
            json.dumps([f.to_dict() for f in findings], indent=2, ensure_ascii=False),
            "```",
        ]

    def decode(self, data: list[Any]) -> list[Finding]:
        findings = []
        for entry in data:
            try:
                findings.append(Finding.from_dict(entry))
            except (KeyError, ValueError, TypeError) as e:
                logger.debug("Dropping unreadable finding: %s", e)
        return findings


class MarkdownStateCodec:
    """Combines the header and findings serializers into one document."""

    def __init__(self) -> None:
        self.headers = HeaderSerializer()
        self.findings = FindingsSerializer()

    def encode(self, state: ScannerState) -> str:
        lines = self.headers.encode(state)
        lines.extend(self.findings.encode(state.last_findings))
        return "\n".join(lines) + "\n"

    def decode(self, text: str, workspace_path: str) -> ScannerState:
        state = ScannerState(workspace_path=workspace_path)

        blocks = list(_JSON_BLOCK.finditer(text))
        header_text = text[: blocks[0].start()] if blocks else text
        self.headers.decode_into(header_text, state)

        if not blocks:
            return state

        try:
            data = json.loads(blocks[-1].group(1))
        except json.JSONDecodeError:
            logger.warning("State file JSON block is corrupt; keeping defaults")
            return state

        if isinstance(data, list):
            state.last_findings = self.findings.decode(data)
        elif isinstance(data, dict):
            self._apply_full_state(data, state)
        return state

    def _apply_full_state(self, data: dict[str, Any], state: ScannerState) -> None:
        if isinstance(data.get("version"), str):
            state.version = data["version"]
        if isinstance(data.get("created_at"), str):
            state.created_at = data["created_at"]
        if isinstance(data.get("updated_at"), str):
            state.updated_at = data["updated_at"]
        if isinstance(data.get("workspacePath"), str):
            state.workspace_path = data["workspacePath"]
        total = data.get("totalScans")
        if isinstance(total, int) and not isinstance(total, bool) and total >= 0:
            state.total_scans = total
        if isinstance(data.get("continuousMode"), bool):
            state.continuous_mode = data["continuousMode"]
        if isinstance(data.get("lastFindings"), list):
            state.last_findings = self.findings.decode(data["lastFindings"])

        passes = data.get("passes")
        if isinstance(passes, dict):
            for key, value in passes.items():
                try:
                    scan_pass = ScanPass(key)
                    state.passes[scan_pass] = ScanPassState.from_dict(scan_pass, value)
                except (ValueError, TypeError, AttributeError) as e:
                    logger.debug("Ignoring unreadable pass state %r: %s", key, e)


_DEFAULT_CODEC = MarkdownStateCodec()


def state_to_markdown(state: ScannerState) -> str:
    return _DEFAULT_CODEC.encode(state)


def markdown_to_state(text: str, workspace_path: str = ".") -> ScannerState:
    return _DEFAULT_CODEC.decode(text, workspace_path)
