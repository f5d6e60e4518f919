"""
Pydantic models for the persisted schedule configuration and audit trail.
"""

from datetime import datetime, time, timedelta
from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

IntervalUnit = Literal["hours", "days", "weeks", "months"]
AuditStatus = Literal["PASSED", "FAILED"]

# Months are approximated as 30 days
UNIT_SECONDS: dict[str, int] = {
    "hours": 3600,
    "days": 86400,
    "weeks": 7 * 86400,
    "months": 30 * 86400,
}


class AuditEntry(BaseModel):
    """One completed scan. Append-only."""

    timestamp: str  # RFC 3339, local offset
    total_files: int = Field(ge=0)
    risk_score: int = Field(ge=0)
    user: str
    status: AuditStatus

    @classmethod
    def now(cls, total_files: int, risk_score: int, user: str) -> "AuditEntry":
        """Build an entry stamped with the current local time."""
        return cls(
            timestamp=datetime.now().astimezone().isoformat(timespec="seconds"),
            total_files=total_files,
            risk_score=risk_score,
            user=user,
            status="FAILED" if risk_score > 0 else "PASSED",
        )


class ScheduleConfig(BaseModel):
    """
    Scan schedule plus cumulative statistics.

    ``audit_history`` is read-only here: it is filled by the store on load
    (most recent first) and appended through ``Store.add_audit_entry``.
    """

    enabled: bool = False
    interval_hours: int = Field(default=0, ge=0)  # Legacy single-unit interval
    interval_value: int = Field(default=0, ge=0)
    interval_unit: IntervalUnit = "hours"
    time_of_day: str = ""  # "HH:MM", 24-hour
    timezone: str = ""     # IANA name; empty means local time
    scan_paths: list[str] = Field(default_factory=list)
    audit_history: list[AuditEntry] = Field(default_factory=list)
    last_notification: Optional[datetime] = None

    total_files_scanned: int = 0
    total_risks_found: int = 0
    total_liability: int = 0

    @field_validator("time_of_day")
    @classmethod
    def validate_time_of_day(cls, v: str) -> str:
        v = v.strip()
        if v:
            try:
                time.fromisoformat(v)
            except ValueError:
                raise ValueError(f"time_of_day must be HH:MM, got {v!r}")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        v = v.strip()
        if v:
            try:
                ZoneInfo(v)
            except (ZoneInfoNotFoundError, ValueError):
                raise ValueError(f"Unknown timezone: {v!r}")
        return v

    def interval_seconds(self) -> int:
        """
        Periodic interval in seconds; 0 means no periodic timer.

        ``interval_value``/``interval_unit`` win when set, otherwise the
        legacy ``interval_hours`` applies.
        """
        if self.interval_value > 0:
            return self.interval_value * UNIT_SECONDS[self.interval_unit]
        return self.interval_hours * 3600

    @property
    def is_schedulable(self) -> bool:
        return self.enabled and self.interval_seconds() > 0

    def next_run_after(self, now: datetime) -> Optional[datetime]:
        """
        Next aligned run time after ``now``, for display.

        With ``time_of_day`` set, runs land on that wall-clock time in the
        configured timezone; otherwise they are ``now + interval``.
        Returns None when the schedule has no periodic timer.
        """
        seconds = self.interval_seconds()
        if not self.enabled or seconds <= 0:
            return None

        tz = ZoneInfo(self.timezone) if self.timezone else None
        local_now = now.astimezone(tz)

        if not self.time_of_day:
            return local_now + timedelta(seconds=seconds)

        at = time.fromisoformat(self.time_of_day)
        candidate = local_now.replace(hour=at.hour, minute=at.minute, second=0, microsecond=0)
        if candidate <= local_now:
            candidate += timedelta(days=1)
        if seconds > 86400:
            # Multi-day intervals keep the time of day but skip whole days
            candidate += timedelta(days=seconds // 86400 - 1)
        return candidate
