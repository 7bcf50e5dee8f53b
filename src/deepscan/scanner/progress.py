"""Progress event stream emitted by the scan orchestrator."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Protocol

from deepscan.scanner.models import Finding, ScanPass, utc_now

logger = logging.getLogger(__name__)


class ProgressEventType(enum.Enum):
    SCAN_STARTED = "scan_started"
    PASS_STARTED = "pass_started"
    PASS_PROGRESS = "pass_progress"
    PASS_COMPLETED = "pass_completed"
    SCAN_COMPLETED = "scan_completed"
    SCAN_ERROR = "scan_error"


@dataclass(frozen=True)
class ScanProgressEvent:
    """One entry of the append-only progress stream."""

    type: ProgressEventType
    message: str
    pass_: ScanPass | None = None
    progress: float | None = None
    files_processed: int | None = None
    total_files: int | None = None
    findings: tuple[Finding, ...] | None = None
    error: BaseException | None = None
    timestamp: str = field(default_factory=utc_now)


class ProgressCallback(Protocol):
    """Receives progress events synchronously, in emission order."""

    def __call__(self, event: ScanProgressEvent) -> None: ...


class ProgressEmitter:
    """Delivers events to an optional callback; callback errors never reach the scan."""

    def __init__(self, callback: ProgressCallback | None = None) -> None:
        self.callback = callback

    def emit(self, event: ScanProgressEvent) -> None:
        if self.callback is None:
            return
        try:
            self.callback(event)
        except Exception:
            logger.exception("Progress callback failed for %s event", event.type.value)
