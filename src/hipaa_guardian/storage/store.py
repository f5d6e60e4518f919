"""
Local persistent store for the schedule configuration and audit trail.

SQLite through the SQLAlchemy ORM. Every public method opens its own short
session, so one Store can be shared between the CLI and the orchestrator's
worker threads. Reading before any write returns defaults.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy import create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..exceptions import StorageError
from .models import AuditRecord, Base, ConfigSetting, ScanStats
from .schemas import AuditEntry, ScheduleConfig

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50

# ScheduleConfig field -> config table key (keys match the legacy JSON file)
_SETTING_KEYS = {
    "enabled": "schedule_enabled",
    "interval_hours": "scan_interval_hours",
    "interval_value": "interval_value",
    "interval_unit": "interval_unit",
    "time_of_day": "time_of_day",
    "timezone": "timezone",
    "scan_paths": "scan_paths",
    "last_notification": "last_notification",
}

_STATS_FIELDS = ("total_files_scanned", "total_risks_found", "total_liability")


def _encode_setting(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return json.dumps(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if value is None:
        return ""
    return str(value)


def _decode_settings(rows: dict[str, str]) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for field_name, key in _SETTING_KEYS.items():
        if key not in rows:
            continue
        raw = rows[key]
        if field_name == "enabled":
            data[field_name] = raw == "true"
        elif field_name == "scan_paths":
            data[field_name] = json.loads(raw) if raw else []
        elif field_name in ("interval_hours", "interval_value"):
            data[field_name] = int(raw or 0)
        elif field_name == "last_notification":
            data[field_name] = raw or None
        elif field_name == "interval_unit":
            if raw:
                data[field_name] = raw
        else:
            data[field_name] = raw
    return data


class Store:
    """
    Configuration, cumulative stats and audit history.

    Usage:
        store = Store(Path("~/.hipaa_guardian/guardian.db").expanduser())
        config = store.load()
        config.enabled = True
        store.save(config)
        store.close()
    """

    def __init__(
        self,
        db_path: Path,
        legacy_json_path: Optional[Path] = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self.db_path = Path(db_path)
        self.history_limit = history_limit

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._engine = create_engine(f"sqlite:///{self.db_path}", echo=False)
            Base.metadata.create_all(self._engine)
        except (OSError, SQLAlchemyError) as e:
            raise StorageError(f"Cannot open database {self.db_path}: {e}", operation="open") from e

        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

        with self._session("init") as session:
            if session.get(ScanStats, 1) is None:
                session.add(ScanStats(id=1))

        if legacy_json_path is not None:
            self._migrate_from_json(Path(legacy_json_path))

    @classmethod
    def from_settings(cls, settings) -> "Store":
        """Open the store described by ``Settings``."""
        return cls(
            settings.storage.db_path,
            legacy_json_path=settings.storage.legacy_json_path,
            history_limit=settings.scheduler.history_limit,
        )

    @contextmanager
    def _session(self, operation: str) -> Generator[Session, None, None]:
        """Session that commits on success and rolls back on any error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(f"Database {operation} failed: {e}", operation=operation) from e
        except Exception:  # Intentionally broad: must rollback on any error before re-raising
            session.rollback()
            raise
        finally:
            session.close()

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def load(self) -> ScheduleConfig:
        """
        Read the full configuration with stats and recent audit history.

        Raises:
            StorageError: Database failure or unparseable stored settings
        """
        with self._session("load") as session:
            rows = {s.key: s.value for s in session.scalars(select(ConfigSetting))}
            stats = session.get(ScanStats, 1)

            try:
                data = _decode_settings(rows)
            except (ValueError, TypeError) as e:
                raise StorageError(f"Corrupt configuration value: {e}", operation="load") from e

            if stats is not None:
                for name in _STATS_FIELDS:
                    data[name] = getattr(stats, name)

        data["audit_history"] = self.get_audit_history()
        try:
            return ScheduleConfig(**data)
        except ValidationError as e:
            raise StorageError(f"Invalid stored configuration: {e}", operation="load") from e

    def save(self, config: ScheduleConfig) -> None:
        """
        Persist settings.

        Audit history and cumulative stats are not written; they change only
        through add_audit_entry and update_stats.
        """
        with self._session("save") as session:
            for field_name, key in _SETTING_KEYS.items():
                session.merge(ConfigSetting(key=key, value=_encode_setting(getattr(config, field_name))))

        logger.debug("Schedule configuration saved")

    def add_scan_path(self, path: str) -> bool:
        """Add a scan root. Returns False if it was already configured."""
        config = self.load()
        if path in config.scan_paths:
            return False
        config.scan_paths.append(path)
        self.save(config)
        return True

    def remove_scan_path(self, path: str) -> bool:
        """Remove a scan root. Returns False if it was not configured."""
        config = self.load()
        if path not in config.scan_paths:
            return False
        config.scan_paths = [p for p in config.scan_paths if p != path]
        self.save(config)
        return True

    # -------------------------------------------------------------------------
    # Audit trail and stats
    # -------------------------------------------------------------------------

    def add_audit_entry(self, entry: AuditEntry) -> None:
        with self._session("add_audit_entry") as session:
            session.add(AuditRecord(**entry.model_dump()))

    def get_audit_history(self, limit: Optional[int] = None) -> list[AuditEntry]:
        """Most recent entries first."""
        limit = limit or self.history_limit
        with self._session("get_audit_history") as session:
            records = session.scalars(
                select(AuditRecord).order_by(AuditRecord.id.desc()).limit(limit)
            ).all()
            return [
                AuditEntry(
                    timestamp=r.timestamp,
                    total_files=r.total_files,
                    risk_score=r.risk_score,
                    user=r.user,
                    status=r.status,
                )
                for r in records
            ]

    def update_stats(self, files: int, risks: int, liability: int) -> ScanStats:
        """Add one scan's totals to the cumulative counters."""
        with self._session("update_stats") as session:
            stats = session.get(ScanStats, 1)
            if stats is None:
                stats = ScanStats(id=1, total_files_scanned=0, total_risks_found=0, total_liability=0)
                session.add(stats)
            stats.total_files_scanned += files
            stats.total_risks_found += risks
            stats.total_liability += liability
            return stats

    # -------------------------------------------------------------------------
    # Migration
    # -------------------------------------------------------------------------

    def _migrate_from_json(self, json_path: Path) -> None:
        """
        Import a pre-database config.json, then rename it to ``.backup``.

        Best effort: a failed migration is logged and the file left in place.
        """
        if not json_path.exists():
            return

        try:
            raw = json.loads(json_path.read_text(encoding="utf-8"))
            legacy = {
                field_name: raw[key]
                for field_name, key in _SETTING_KEYS.items()
                if key in raw and raw[key] is not None
            }
            for name in _STATS_FIELDS:
                if name in raw:
                    legacy[name] = raw[name]
            if legacy.get("interval_unit") == "":
                legacy.pop("interval_unit")
            config = ScheduleConfig(**legacy)
            history = [AuditEntry(**e) for e in raw.get("audit_history") or []]
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Legacy configuration migration failed: {e}")
            return

        self.save(config)
        self.update_stats(
            config.total_files_scanned, config.total_risks_found, config.total_liability
        )
        # Legacy file stores oldest first
        for entry in history:
            self.add_audit_entry(entry)

        try:
            json_path.rename(json_path.with_name(json_path.name + ".backup"))
        except OSError as e:
            logger.warning(f"Migrated {json_path} but could not rename it: {e}")
        logger.info(f"Migrated legacy configuration from {json_path}")

    def close(self) -> None:
        self._engine.dispose()
