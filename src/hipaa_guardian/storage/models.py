"""
SQLAlchemy models for the local HIPAA Guardian database.

Three tables:
- config: key/value schedule settings (values stored as text)
- stats: single row of cumulative scan totals
- audit_history: append-only log of completed scans
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class ConfigSetting(Base):
    """One schedule setting."""

    __tablename__ = "config"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)


class ScanStats(Base):
    """Cumulative totals across every completed scan. Always exactly one row."""

    __tablename__ = "stats"
    __table_args__ = (CheckConstraint("id = 1", name="single_row"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    total_files_scanned: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_risks_found: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_liability: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class AuditRecord(Base):
    """A completed scan."""

    __tablename__ = "audit_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[str] = mapped_column(String(40), nullable=False)
    total_files: Mapped[int] = mapped_column(Integer, nullable=False)
    risk_score: Mapped[int] = mapped_column(Integer, nullable=False)
    user: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
