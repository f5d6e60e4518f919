"""Persistent schedule configuration, cumulative stats and audit trail."""

from .schemas import AuditEntry, ScheduleConfig
from .store import Store

__all__ = ["AuditEntry", "ScheduleConfig", "Store"]
