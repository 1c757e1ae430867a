"""Reporting sub-package for the workforce-scoring project.

- ``compose_wellness_report`` -- build the HTML digest from DB data.
- ``send_email`` -- deliver it via SMTP.

Usage::

    from workforce_scoring.reporting import compose_wellness_report, send_email

    report = compose_wellness_report(conn, teams=["Team Alpha"])
    send_email("lead@example.com", report["subject"], report["html_body"])
"""

from workforce_scoring.reporting.composer import compose_wellness_report
from workforce_scoring.reporting.sender import send_email

__all__ = ["compose_wellness_report", "send_email"]
