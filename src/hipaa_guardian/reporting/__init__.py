"""
Reporting for HIPAA Guardian.

- ReportRenderer: renders HTML/PDF documents from Jinja2 templates
- CertificateIssuer: writes compliance certificates and audit reports
"""

from .engine import CertificateIssuer, ReportRenderer

__all__ = ["CertificateIssuer", "ReportRenderer"]
