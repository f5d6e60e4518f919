"""Scheduled and manual scan orchestration."""

from .scheduler import OrchestratorState, ScanOrchestrator, ScanSummary, ScanTask

__all__ = ["OrchestratorState", "ScanOrchestrator", "ScanSummary", "ScanTask"]
