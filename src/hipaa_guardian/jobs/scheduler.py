"""
Background scan orchestrator for HIPAA Guardian.

One long-lived asyncio task per orchestrator waits on three things: the
periodic timer, a manual trigger and the stop signal, and services them one
at a time. Scans therefore never overlap:
- ticks that fall due while a scan runs are dropped
- at most one manual trigger is kept pending (capacity-1 queue)

The blocking engine work runs in a worker thread via ``asyncio.to_thread``
so ``cancel_active_scan()`` and ``stop()`` stay responsive. Cancellation is
cooperative: the active ScanTask's event is polled before each root and at
every walk entry.

Events sent to the notification sink:
- log:info                  human-readable status line
- scan:scheduled:start      {"paths", "total"}
- scan:scheduled:progress   {"current", "total", "file"}, once per file
- scan:scheduled:complete   {"status", "total_files", "risk_score",
                             "critical_count", "risky_files", "certificate"}
- scan:scheduled:cancelled  {"error": "Scan cancelled by user"}
- scan:scheduled:error      {"error"} when the audit entry cannot be saved
"""

import asyncio
import logging
import os
import threading
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Sequence

from ..core.engine import RiskEngine
from ..core.filesystem import count_scannable_files
from ..exceptions import (
    CertificateError,
    ConfigLoadError,
    GuardianError,
    ScanCancelledError,
    StorageError,
)
from ..identity import get_username
from ..logging import scan_id_var
from ..reporting.engine import CertificateIssuer
from ..storage.schemas import AuditEntry, ScheduleConfig
from ..storage.store import Store

logger = logging.getLogger(__name__)

DEFAULT_STOP_TIMEOUT = 30.0

NotifySink = Callable[[str, Any], None]


class OrchestratorState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"     # Idle, waiting on timer/trigger/stop
    SCANNING = "scanning"   # One ScanTask active


@dataclass
class ScanTask:
    """One in-flight scan."""

    paths: list[str]
    scan_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    scanned_count: int = 0
    total_to_scan: int = 0
    _cancel_event: threading.Event = field(default_factory=threading.Event, repr=False)

    def cancel(self) -> None:
        self._cancel_event.set()

    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def check_cancelled(self) -> None:
        if self._cancel_event.is_set():
            raise ScanCancelledError()


@dataclass
class ScanSummary:
    """Outcome of one ``execute_scan`` call."""

    status: str = "PASSED"
    total_files: int = 0
    risk_score: int = 0
    risky_files: list[dict[str, Any]] = field(default_factory=list)
    certificate: Optional[str] = None
    cancelled: bool = False
    critical_count: int = 0
    liability: int = 0

    def to_event(self) -> dict[str, Any]:
        """Payload of the scan:scheduled:complete event."""
        return {
            "status": self.status,
            "total_files": self.total_files,
            "risk_score": self.risk_score,
            "critical_count": self.critical_count,
            "risky_files": self.risky_files,
            "certificate": self.certificate,
        }


class ScanOrchestrator:
    """
    Runs scheduled and manual directory scans.

    Usage:
        orchestrator = ScanOrchestrator(store, notify=print)
        await orchestrator.start()

        orchestrator.trigger_now()
        # ... later ...
        await orchestrator.stop()

    ``trigger_now`` and the state-changing coroutines must be called from
    the event loop thread. ``cancel_active_scan`` is safe from any thread.
    """

    def __init__(
        self,
        store: Store,
        engine: Optional[RiskEngine] = None,
        issuer: Optional[CertificateIssuer] = None,
        notify: Optional[NotifySink] = None,
        stop_timeout: float = DEFAULT_STOP_TIMEOUT,
        user_provider: Callable[[], str] = get_username,
    ):
        self._store = store
        self._engine = engine or RiskEngine()
        self._issuer = issuer
        self._sink = notify
        self._stop_timeout = stop_timeout
        self._user_provider = user_provider

        self._state = OrchestratorState.STOPPED
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()
        self._trigger: asyncio.Queue[None] = asyncio.Queue(maxsize=1)

        self._active_lock = threading.Lock()
        self._active_scan: Optional[ScanTask] = None

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is not OrchestratorState.STOPPED

    @property
    def active_scan(self) -> Optional[ScanTask]:
        with self._active_lock:
            return self._active_scan

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """
        Load the schedule and start the background loop.

        When the schedule is enabled, one scan runs immediately inside the
        loop; the periodic timer is armed only if the interval is non-zero.

        Raises:
            ConfigLoadError: The schedule could not be loaded
        """
        if self.is_running:
            logger.warning("Orchestrator already running")
            return

        config = await self._load_config()

        self._stop_event.clear()
        self._state = OrchestratorState.RUNNING
        self._task = asyncio.create_task(self._run_loop(config))

        interval = config.interval_seconds()
        if config.is_schedulable:
            logger.info(f"Scan orchestrator started (interval: {interval}s, paths: {len(config.scan_paths)})")
        else:
            logger.info("Scan orchestrator started (periodic scans disabled, manual triggers only)")

    async def stop(self) -> None:
        """Cancel any active scan and stop the loop. Safe to call repeatedly."""
        if not self.is_running:
            return

        logger.info("Stopping scan orchestrator...")
        self._state = OrchestratorState.STOPPED
        self.cancel_active_scan()
        self._stop_event.set()

        if self._task:
            try:
                await asyncio.wait_for(self._task, timeout=self._stop_timeout)
            except asyncio.TimeoutError:
                logger.warning("Orchestrator loop did not stop cleanly, cancelling")
                self._task.cancel()
                try:
                    await self._task
                except asyncio.CancelledError:
                    pass
            self._task = None

        logger.info("Scan orchestrator stopped")

    def trigger_now(self) -> bool:
        """
        Request an out-of-band scan.

        Returns:
            False if a trigger was already pending and this one was dropped
        """
        try:
            self._trigger.put_nowait(None)
        except asyncio.QueueFull:
            logger.debug("Manual trigger dropped (one already pending)")
            return False
        return True

    def cancel_active_scan(self) -> bool:
        """Cancel the in-flight scan. Returns False when idle."""
        with self._active_lock:
            task = self._active_scan
            if task is None:
                return False
            task.cancel()
        logger.info(f"Cancellation requested for scan {task.scan_id[:8]}")
        return True

    # -------------------------------------------------------------------------
    # Scheduling loop
    # -------------------------------------------------------------------------

    async def _load_config(self) -> ScheduleConfig:
        try:
            return await asyncio.to_thread(self._store.load)
        except GuardianError as e:
            raise ConfigLoadError(f"Cannot load schedule configuration: {e.message}", source="store") from e

    async def _run_loop(self, config: ScheduleConfig) -> None:
        loop = asyncio.get_running_loop()
        interval = config.interval_seconds() if config.enabled else 0
        next_tick: Optional[float] = loop.time() + interval if interval > 0 else None

        logger.debug("Orchestrator loop started")

        if config.enabled:
            await self._run_scan(config.scan_paths)

        while not self._stop_event.is_set():
            if next_tick is not None:
                next_tick = _next_deadline(next_tick, interval, loop.time())
                timeout: Optional[float] = next_tick - loop.time()
            else:
                timeout = None

            trigger_wait = asyncio.ensure_future(self._trigger.get())
            stop_wait = asyncio.ensure_future(self._stop_event.wait())
            done, pending = await asyncio.wait(
                {trigger_wait, stop_wait},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
            for waiter in pending:
                waiter.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

            if stop_wait in done:
                break
            if trigger_wait in done:
                await self._handle_trigger()
            else:
                next_tick += interval
                await self._handle_tick()

        logger.debug("Orchestrator loop exited")

    async def _handle_tick(self) -> None:
        try:
            config = await self._load_config()
        except ConfigLoadError as e:
            logger.error(f"Skipping scheduled scan: {e}")
            return
        if not config.enabled:
            logger.debug("Scheduled tick skipped: scanning disabled")
            return
        await self._run_scan(config.scan_paths)

    async def _handle_trigger(self) -> None:
        # Manual triggers ignore the enabled flag
        try:
            config = await self._load_config()
        except ConfigLoadError as e:
            logger.error(f"Cannot run manual scan: {e}")
            return
        logger.info("Executing manual scan")
        await self._run_scan(config.scan_paths)

    async def _run_scan(self, paths: Sequence[str]) -> None:
        """Run a scan from the loop. Unexpected errors never end the loop."""
        try:
            await self.execute_scan(paths)
        except Exception as e:  # Intentionally broad: the loop must survive any scan failure
            logger.error(f"Scan failed: {e}", exc_info=True)
            self._notify("scan:scheduled:error", {"error": str(e)})

    # -------------------------------------------------------------------------
    # Scan execution
    # -------------------------------------------------------------------------

    async def execute_scan(self, paths: Sequence[str]) -> Optional[ScanSummary]:
        """
        Run one full scan over ``paths``.

        Returns:
            The summary, or None when there was nothing to scan
        """
        if not paths:
            logger.info("No scan paths configured")
            return None

        task = ScanTask(paths=list(paths))
        with self._active_lock:
            previous, self._active_scan = self._active_scan, task
        if previous is not None:
            previous.cancel()

        token = scan_id_var.set(task.scan_id)
        if self._state is OrchestratorState.RUNNING:
            self._state = OrchestratorState.SCANNING
        try:
            return await self._execute(task)
        finally:
            with self._active_lock:
                if self._active_scan is task:
                    self._active_scan = None
            if self._state is OrchestratorState.SCANNING:
                self._state = OrchestratorState.RUNNING
            scan_id_var.reset(token)

    async def _execute(self, task: ScanTask) -> ScanSummary:
        loop = asyncio.get_running_loop()
        self._notify("log:info", f"Starting scan of {len(task.paths)} directories...")

        # Phase 1: count
        try:
            task.total_to_scan = await asyncio.to_thread(self._count_files, task)
        except ScanCancelledError:
            return self._cancelled(task)

        logger.info(f"Total files to scan: {task.total_to_scan}")
        self._notify("scan:scheduled:start", {"paths": task.paths, "total": task.total_to_scan})

        def on_file(path: str) -> None:
            task.scanned_count += 1
            payload = {
                "current": task.scanned_count,
                "total": task.total_to_scan,
                "file": os.path.basename(path),
            }
            loop.call_soon_threadsafe(self._notify, "scan:scheduled:progress", payload)

        # Phase 2: analyze
        summary = ScanSummary()
        for root in task.paths:
            if task.is_cancelled():
                return self._cancelled(task)
            try:
                report = await asyncio.to_thread(
                    self._engine.analyze_directory, root, on_file, task.is_cancelled
                )
            except ScanCancelledError:
                return self._cancelled(task)
            except (GuardianError, OSError) as e:
                logger.error(f"Error analyzing {root}: {e}")
                continue

            summary.total_files += report.total_files
            summary.risk_score += report.total_risk_score
            summary.critical_count += report.critical_count
            summary.liability += report.potential_liability
            summary.risky_files.extend(
                {"path": p.file_path, "riskScore": p.risk_score, "findings": list(p.findings)}
                for p in report.top_offenders
                if p.risk_score > 0
            )

        summary.status = "FAILED" if summary.risk_score > 0 else "PASSED"
        user = self._user_provider()

        if summary.status == "PASSED" and summary.total_files > 0:
            summary.certificate = await self._issue_certificate(summary.total_files, user)

        entry = AuditEntry.now(summary.total_files, summary.risk_score, user)
        try:
            await asyncio.to_thread(self._store.add_audit_entry, entry)
            await asyncio.to_thread(
                self._store.update_stats,
                summary.total_files,
                len(summary.risky_files),
                summary.liability,
            )
        except StorageError as e:
            logger.error(f"Failed to record audit entry: {e}")
            self._notify("scan:scheduled:error", {"error": str(e)})

        logger.info(
            f"Scan complete. Status: {summary.status}, Files: {summary.total_files}, "
            f"Risk: {summary.risk_score}"
        )
        self._notify("scan:scheduled:complete", summary.to_event())
        return summary

    def _count_files(self, task: ScanTask) -> int:
        total = 0
        for root in task.paths:
            task.check_cancelled()
            total += count_scannable_files(root, task.is_cancelled)
        return total

    async def _issue_certificate(self, total_files: int, user: str) -> Optional[str]:
        if self._issuer is None:
            return None
        try:
            history = await asyncio.to_thread(self._store.get_audit_history)
            path = await asyncio.to_thread(
                self._issuer.issue_compliance_certificate, total_files, user, history
            )
        except (CertificateError, StorageError) as e:
            logger.warning(f"Failed to generate certificate: {e}")
            return None
        logger.info(f"Certificate generated: {path}")
        return str(path)

    def _cancelled(self, task: ScanTask) -> ScanSummary:
        logger.info(f"Scan cancelled after {task.scanned_count} files")
        self._notify("scan:scheduled:cancelled", {"error": ScanCancelledError().message})
        return ScanSummary(status="CANCELLED", cancelled=True)

    def _notify(self, event: str, payload: Any) -> None:
        if self._sink is None:
            return
        try:
            self._sink(event, payload)
        except Exception as e:  # Intentionally broad: a faulty sink must not break the scan
            logger.warning(f"Notification sink failed on {event}: {e}")


def _next_deadline(deadline: float, interval: float, now: float) -> float:
    """Advance a tick deadline past ``now``, dropping ticks missed while busy."""
    while deadline <= now:
        deadline += interval
    return deadline
