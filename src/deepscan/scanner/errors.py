"""Scanner exceptions — lifecycle, pass and pattern failures."""

from __future__ import annotations

from deepscan.scanner.models import ScanPass


class ScannerError(Exception):
    """Raised by the scan orchestrator.

    ``code`` identifies the failure (``INIT_FAILED``, ``NOT_INITIALIZED``,
    ``SCAN_IN_PROGRESS``, ``ALREADY_RUNNING``, ``NO_STATE``, ``SAVE_FAILED``,
    ``LOAD_FAILED``) so callers can branch without parsing messages.
    """

    def __init__(
        self,
        message: str,
        code: str,
        cause: BaseException | None = None,
        pass_: ScanPass | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.cause = cause
        self.pass_ = pass_


class PatternMatcherError(Exception):
    """Raised when a single pattern cannot be applied (e.g. invalid regex)."""

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        pattern_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.cause = cause
        self.pattern_id = pattern_id


class RepertoireLoadError(PatternMatcherError):
    """The repertoire file exists but could not be read or parsed."""
