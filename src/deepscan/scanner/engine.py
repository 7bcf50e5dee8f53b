"""Scan engine — orchestrates scan passes and continuous scanning."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from pathlib import Path

from deepscan.config import ConfigError, ScannerConfig
from deepscan.scanner.codec import MarkdownStateCodec, StateCodec
from deepscan.scanner.errors import ScannerError
from deepscan.scanner.matcher import PatternMatcher
from deepscan.scanner.models import (
    FileInfo,
    Finding,
    ScannerState,
    ScanPass,
    ScanPassResult,
    ScanPassState,
    ScanResult,
    utc_now,
)
from deepscan.scanner.progress import (
    ProgressCallback,
    ProgressEmitter,
    ProgressEventType,
    ScanProgressEvent,
)
from deepscan.scanner.repertoire import RepertoireStore
from deepscan.scanner.scheduler import ContinuousScheduler
from deepscan.scanner.walker import WorkspaceWalker, load_content

logger = logging.getLogger(__name__)

# Bound in __init__ / initialize(); update_config rejects them.
_FIXED_CONFIG_KEYS = frozenset({"state_file", "repertoire_file", "cache_enabled"})


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class DeepScanner:
    """Runs scan passes over a workspace and keeps persistent scanner state.

    Lifecycle: construct, ``await initialize()``, then ``run()`` any number of
    times or ``continuous_scan()`` until ``stop()``. Only one scan runs at a
    time per instance.
    """

    def __init__(
        self,
        config: ScannerConfig | None = None,
        workspace_path: str | Path | None = None,
        state_path: str | Path | None = None,
        on_progress: ProgressCallback | None = None,
        codec: StateCodec | None = None,
    ) -> None:
        self._config = config.copy() if config is not None else ScannerConfig()
        self.workspace_path = os.path.abspath(workspace_path or os.getcwd())
        self.state_path = (
            Path(state_path)
            if state_path is not None
            else Path(self.workspace_path) / self._config.state_file
        )
        self._emitter = ProgressEmitter(on_progress)
        self._codec = codec or MarkdownStateCodec()
        self._state: ScannerState | None = None
        self._matcher: PatternMatcher | None = None
        self._scheduler: ContinuousScheduler | None = None
        self._stopped_scheduler: ContinuousScheduler | None = None
        self._is_scanning = False
        self._stop_requested = False

    async def initialize(self) -> None:
        """Load (or create) state and validate the pattern repertoire.

        Raises ScannerError(code="INIT_FAILED") wrapping the underlying error.
        """
        try:
            self._state = await self._load_state()
            store = RepertoireStore(
                Path(self.workspace_path) / self._config.repertoire_file,
                cache_enabled=self._config.cache_enabled,
            )
            self._matcher = PatternMatcher(store)
            await self._matcher.load_repertoire()
        except Exception as e:
            self._state = None
            self._matcher = None
            raise ScannerError(
                f"Failed to initialize scanner: {e}", "INIT_FAILED", cause=e
            ) from e

        logger.info("Scanner initialized for %s", self.workspace_path)
        self._emit(ProgressEventType.SCAN_STARTED, "Scanner initialized successfully")

    async def run(self, pass_: ScanPass | None = None) -> list[Finding]:
        """Run one pass, or every configured pass, and return the findings."""
        result = await self.run_detailed(pass_)
        return result.findings

    async def run_detailed(self, pass_: ScanPass | None = None) -> ScanResult:
        """Like ``run`` but returns per-pass results."""
        if self._state is None or self._matcher is None:
            raise ScannerError(
                "Scanner not initialized. Call initialize() first.",
                "NOT_INITIALIZED",
            )
        if self._is_scanning:
            raise ScannerError("Scan already in progress", "SCAN_IN_PROGRESS")

        self._is_scanning = True
        self._stop_requested = False
        try:
            passes = [pass_] if pass_ is not None else list(self._config.passes)
            result = await self._run_passes(passes)

            self._state.last_findings = list(result.findings)
            self._state.total_scans += 1
            self._state.updated_at = utc_now()
            await self.save_state()
        finally:
            self._is_scanning = False

        return result

    async def run_anti_pattern_pass(self) -> list[Finding]:
        return await self.run(ScanPass.ANTI_PATTERNS)

    async def run_architecture_pass(self) -> list[Finding]:
        return await self.run(ScanPass.ARCHITECTURE)

    async def run_performance_pass(self) -> list[Finding]:
        return await self.run(ScanPass.PERFORMANCE)

    async def run_security_pass(self) -> list[Finding]:
        return await self.run(ScanPass.SECURITY)

    async def get_files_to_scan(self, pass_: ScanPass) -> list[FileInfo]:
        """Candidate files for *pass_*, with exclusions and size limits applied."""
        walker = WorkspaceWalker(
            self.workspace_path,
            exclude_patterns=self._config.exclude_patterns,
            max_file_size=self._config.max_file_size,
        )
        own_files = {
            os.path.abspath(self.state_path),
            os.path.abspath(Path(self.workspace_path) / self._config.repertoire_file),
        }
        files = [f for f in await walker.walk() if f.absolute_path not in own_files]
        logger.debug("%d file(s) to scan for %s", len(files), pass_.value)
        return files

    async def save_state(self) -> None:
        if self._state is None:
            raise ScannerError("No state to save", "NO_STATE")

        text = self._codec.encode(self._state)
        try:
            await asyncio.to_thread(self._write_state, text)
        except OSError as e:
            raise ScannerError(f"Failed to save state: {e}", "SAVE_FAILED", cause=e) from e

    async def continuous_scan(self) -> None:
        """Scan now, then keep rescanning every ``continuous_interval`` ms.

        Returns once the schedule is armed; ``stop()`` ends it.
        """
        if self._state is None:
            raise ScannerError(
                "Scanner not initialized. Call initialize() first.",
                "NOT_INITIALIZED",
            )
        if self._scheduler is not None:
            raise ScannerError("Continuous scan already running", "ALREADY_RUNNING")

        interval = self._config.continuous_interval
        scheduler = ContinuousScheduler(
            self.run, interval / 1000, on_error=self._on_continuous_error
        )
        self._scheduler = scheduler

        try:
            self._state.continuous_mode = True
            await self.save_state()

            self._emit(
                ProgressEventType.SCAN_STARTED,
                f"Starting continuous scan with {interval}ms interval",
            )
            logger.info("Continuous scan started (interval %dms)", interval)

            await self.run()
        except Exception:
            if self._scheduler is scheduler:
                self._scheduler = None
            self._state.continuous_mode = False
            raise

        # stop() may have been called during the initial scan
        if not scheduler.token.cancelled:
            scheduler.start()

    def stop(self) -> None:
        """Stop continuous mode and ask a running scan to wind down. Idempotent."""
        self._stop_requested = True
        if self._scheduler is not None:
            self._scheduler.cancel()
            self._stopped_scheduler = self._scheduler
            self._scheduler = None
            logger.info("Continuous scan stopped")
        if self._state is not None:
            self._state.continuous_mode = False

    async def wait_stopped(self) -> None:
        """Wait until the continuous schedule has finished.

        After ``stop()`` this waits for an in-flight scheduled scan to complete.
        """
        scheduler = self._scheduler or self._stopped_scheduler
        if scheduler is not None:
            await scheduler.wait_closed()

    def get_state(self) -> ScannerState:
        if self._state is None:
            raise ScannerError("Scanner not initialized", "NOT_INITIALIZED")
        return self._state

    def get_config(self) -> ScannerConfig:
        return self._config.copy()

    def update_config(self, **changes: object) -> None:
        """Merge *changes* into the config; later scans use the new values.

        The state file, repertoire file and cache mode are bound when the
        scanner is built and cannot be changed here; create a new DeepScanner
        for those.
        """
        fixed = _FIXED_CONFIG_KEYS.intersection(changes)
        if fixed:
            raise ConfigError(
                f"Config option(s) fixed at construction: {', '.join(sorted(fixed))}"
            )
        self._config = self._config.updated(**changes)

    def get_last_findings(self) -> list[Finding]:
        if self._state is None:
            return []
        return list(self._state.last_findings)

    def is_currently_scanning(self) -> bool:
        return self._is_scanning

    def is_continuous(self) -> bool:
        return self._scheduler is not None

    # -- internals --

    def _emit(
        self,
        event_type: ProgressEventType,
        message: str,
        **fields: object,
    ) -> None:
        self._emitter.emit(ScanProgressEvent(type=event_type, message=message, **fields))

    def _write_state(self, text: str) -> None:
        self.state_path.parent.mkdir(parents=True, exist_ok=True)
        self.state_path.write_text(text, encoding="utf-8")

    async def _load_state(self) -> ScannerState:
        try:
            text = await asyncio.to_thread(self.state_path.read_text, encoding="utf-8")
        except FileNotFoundError:
            state = ScannerState(workspace_path=self.workspace_path)
            for scan_pass, pass_state in state.passes.items():
                pass_state.enabled = scan_pass in self._config.passes
            return state
        except OSError as e:
            raise ScannerError(f"Failed to load state: {e}", "LOAD_FAILED", cause=e) from e

        logger.debug("Loaded scanner state from %s", self.state_path)
        return self._codec.decode(text, self.workspace_path)

    def _on_continuous_error(self, error: Exception) -> None:
        logger.warning("Continuous scan error: %s", error)
        self._emit(
            ProgressEventType.SCAN_ERROR,
            f"Continuous scan error: {error}",
            error=error,
        )

    async def _run_passes(self, passes: list[ScanPass]) -> ScanResult:
        start = time.monotonic()
        result = ScanResult(started_at=utc_now())

        logger.info("Starting scan with %d pass(es)", len(passes))
        self._emit(
            ProgressEventType.SCAN_STARTED,
            f"Starting scan with {len(passes)} pass(es)",
        )

        for scan_pass in passes:
            if self._stop_requested:
                logger.info("Stop requested, skipping remaining passes")
                break
            pass_result = await self._run_single_pass(scan_pass)
            result.pass_results.append(pass_result)
            result.findings.extend(pass_result.findings)

        result.completed_at = utc_now()
        result.total_duration = _elapsed_ms(start)

        logger.info(
            "Scan completed: %d finding(s) in %dms",
            len(result.findings),
            result.total_duration,
        )
        self._emit(
            ProgressEventType.SCAN_COMPLETED,
            f"Scan completed with {len(result.findings)} finding(s)",
            findings=tuple(result.findings),
        )
        return result

    async def _run_single_pass(self, scan_pass: ScanPass) -> ScanPassResult:
        if self._state is None or self._matcher is None:
            raise ScannerError("Scanner not initialized", "NOT_INITIALIZED")
        start = time.monotonic()
        started_at = utc_now()
        pass_state = self._state.passes.setdefault(
            scan_pass, ScanPassState(name=scan_pass)
        )

        self._emit(
            ProgressEventType.PASS_STARTED,
            f"Starting {scan_pass.value} scan pass",
            pass_=scan_pass,
        )

        try:
            files = await self.get_files_to_scan(scan_pass)
            findings: list[Finding] = []
            files_scanned = 0

            for file in files:
                if self._stop_requested:
                    break

                try:
                    file.content = await load_content(file)
                except OSError as e:
                    logger.debug("Skipping unreadable file %s: %s", file.path, e)
                    continue

                try:
                    findings.extend(await self._matcher.match_file(file, scan_pass))
                finally:
                    file.content = None
                files_scanned += 1

                self._emit(
                    ProgressEventType.PASS_PROGRESS,
                    f"Scanned {files_scanned}/{len(files)} files",
                    pass_=scan_pass,
                    progress=files_scanned / len(files) * 100,
                    files_processed=files_scanned,
                    total_files=len(files),
                    findings=tuple(findings),
                )

            limited = findings[: self._config.max_findings_per_pass]
            duration = _elapsed_ms(start)

            pass_state.last_run = started_at
            pass_state.findings_count = len(limited)
            pass_state.last_duration = duration
            pass_state.error = None

            self._emit(
                ProgressEventType.PASS_COMPLETED,
                f"{scan_pass.value} pass completed with {len(limited)} finding(s)",
                pass_=scan_pass,
                findings=tuple(limited),
            )
            return ScanPassResult(
                pass_=scan_pass,
                success=True,
                started_at=started_at,
                completed_at=utc_now(),
                findings=limited,
                duration=duration,
                files_scanned=files_scanned,
            )
        except Exception as e:
            duration = _elapsed_ms(start)
            logger.warning("%s pass failed: %s", scan_pass.value, e)

            pass_state.last_run = started_at
            pass_state.findings_count = 0
            pass_state.last_duration = duration
            pass_state.error = str(e)

            self._emit(
                ProgressEventType.SCAN_ERROR,
                f"{scan_pass.value} pass failed: {e}",
                pass_=scan_pass,
                error=e,
            )
            return ScanPassResult(
                pass_=scan_pass,
                success=False,
                started_at=started_at,
                completed_at=utc_now(),
                duration=duration,
                error=str(e),
            )


async def create_deep_scanner(
    config: ScannerConfig | None = None,
    workspace_path: str | Path | None = None,
    state_path: str | Path | None = None,
    on_progress: ProgressCallback | None = None,
) -> DeepScanner:
    """Construct and initialize a scanner in one step."""
    scanner = DeepScanner(
        config=config,
        workspace_path=workspace_path,
        state_path=state_path,
        on_progress=on_progress,
    )
    await scanner.initialize()
    return scanner
