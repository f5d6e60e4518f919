"""
Certificate and audit report rendering: Jinja2 HTML templates to HTML or PDF.

Uses ``weasyprint`` for PDF generation (optional dependency).
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Literal, Sequence

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from ..core.types import RiskProfile
from ..exceptions import CertificateError
from ..storage.schemas import AuditEntry

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"

REPORT_TYPES = (
    "compliance_certificate",
    "audit_report",
)

# Number of past audits listed on a certificate
CERTIFICATE_HISTORY_ROWS = 10

FormatType = Literal["html", "pdf"]


class ReportRenderer:
    """Render reports from Jinja2 templates.

    Parameters
    ----------
    template_dir:
        Override the default template directory (for testing).
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        self._template_dir = template_dir or TEMPLATE_DIR
        self._env = Environment(
            loader=FileSystemLoader(str(self._template_dir)),
            autoescape=select_autoescape(["html"]),
        )
        self._env.filters["commafy"] = lambda v: f"{v:,}"
        self._env.filters["dollars"] = lambda v: f"${v:,}"

    def _validate_report_type(self, report_type: str) -> None:
        if report_type not in REPORT_TYPES:
            raise ValueError(
                f"Unknown report_type {report_type!r}. "
                f"Must be one of: {', '.join(REPORT_TYPES)}"
            )

    def render_html(self, report_type: str, data: dict[str, Any]) -> str:
        """Render a report to HTML."""
        self._validate_report_type(report_type)
        template = self._env.get_template(f"{report_type}.html")
        return template.render(
            generated_at=datetime.now().astimezone().strftime("%Y-%m-%d %H:%M %Z"),
            **data,
        )

    def render_pdf(self, report_type: str, data: dict[str, Any]) -> bytes:
        """Render a report to PDF via weasyprint.

        Requires ``pip install hipaa-guardian[reports]``.
        """
        try:
            from weasyprint import HTML as WeasyprintHTML  # type: ignore[import-untyped]
        except ImportError:
            raise ImportError(
                "PDF generation requires weasyprint. "
                "Install with: pip install hipaa-guardian[reports]"
            ) from None

        html_str = self.render_html(report_type, data)
        return WeasyprintHTML(string=html_str).write_pdf()

    def render(
        self, report_type: str, data: dict[str, Any], fmt: FormatType = "html"
    ) -> str | bytes:
        """Render a report in the requested format."""
        if fmt == "pdf":
            return self.render_pdf(report_type, data)
        return self.render_html(report_type, data)


class CertificateIssuer:
    """Issues compliance certificates (clean scans) and audit reports (risky scans).

    Parameters
    ----------
    output_dir:
        Directory the documents are written to when no explicit path is given.
    fmt:
        ``html`` or ``pdf``.
    organization:
        Name printed on the documents.
    """

    def __init__(
        self,
        output_dir: Path,
        fmt: FormatType = "html",
        renderer: ReportRenderer | None = None,
        organization: str = "HIPAA Guardian",
    ) -> None:
        self.renderer = renderer or ReportRenderer()
        self.output_dir = Path(output_dir)
        self.fmt = fmt
        self.organization = organization

    @classmethod
    def from_settings(cls, settings) -> "CertificateIssuer":
        return cls(
            settings.reports.output_dir,
            fmt=settings.reports.format,
            organization=settings.reports.organization,
        )

    def _default_path(self, prefix: str) -> Path:
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        return self.output_dir / f"{prefix}_{ts}.{self.fmt}"

    def _write(self, report_type: str, data: dict[str, Any], dest: Path) -> Path:
        try:
            content = self.renderer.render(report_type, data, self.fmt)
            dest.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                dest.write_bytes(content)
            else:
                dest.write_text(content, encoding="utf-8")
        except (OSError, TemplateError, ImportError, ValueError) as e:
            raise CertificateError(
                f"Failed to issue {report_type.replace('_', ' ')}: {e}",
                report_type=report_type,
                output_path=str(dest),
            ) from e

        logger.info(f"Generated {report_type}: {dest} ({self.fmt})")
        return dest

    def issue_compliance_certificate(
        self,
        total_files: int,
        user: str,
        audit_history: Sequence[AuditEntry],
        output_path: Path | None = None,
    ) -> Path:
        """
        Certify a clean scan.

        Raises:
            CertificateError: Rendering or writing failed
        """
        dest = Path(output_path) if output_path else self._default_path("HIPAA_Compliance_Certificate")
        history = list(audit_history)[:CERTIFICATE_HISTORY_ROWS]
        data = {
            "organization": self.organization,
            "total_files": total_files,
            "user": user,
            "audit_history": [entry.model_dump() for entry in history],
            "consecutive_passes": _consecutive_passes(history),
        }
        return self._write("compliance_certificate", data, dest)

    def issue_audit_report(
        self,
        total_files: int,
        critical_count: int,
        liability: int,
        offenders: Sequence[RiskProfile],
        output_path: Path | None = None,
    ) -> Path:
        """
        Summarise a risky scan, worst files first.

        Raises:
            CertificateError: Rendering or writing failed
        """
        dest = Path(output_path) if output_path else self._default_path("HIPAA_Audit_Report")
        ranked = sorted(offenders, key=lambda p: p.risk_score, reverse=True)
        data = {
            "organization": self.organization,
            "total_files": total_files,
            "critical_count": critical_count,
            "liability": liability,
            "offenders": [
                {
                    "label": p.risk_label.value,
                    "path": p.file_path,
                    "score": p.risk_score,
                    "fine": p.estimated_fine,
                    "findings": list(p.findings),
                }
                for p in ranked
            ],
        }
        return self._write("audit_report", data, dest)


def _consecutive_passes(history: Sequence[AuditEntry]) -> int:
    """Count PASSED entries at the head of a most-recent-first history."""
    count = 0
    for entry in history:
        if entry.status != "PASSED":
            break
        count += 1
    return count
