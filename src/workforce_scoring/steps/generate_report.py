"""pypyr step: render the weekly wellness digest.

Renders the digest from the team scores left by ``score_team`` (scoring
the team itself when run alone), stores the result in
``context['report']``, and persists a record to the ``reports`` table.

Context keys consumed:
    conn (sqlite3.Connection): An initialised database connection.
    teams (list[str], optional): Restrict the digest to these teams.
    team_metrics (list[dict], optional): Output of ``score_team``.
    recipient_email (str, optional): Falls back to ``RECIPIENT_EMAIL``.

Context keys produced:
    report (dict): ``subject``, ``html_body`` and the status counts.
"""

import datetime
import logging
import os
import sqlite3

from workforce_scoring.db.manager import save_report
from workforce_scoring.reporting.composer import compose_wellness_report

logger = logging.getLogger(__name__)


def run_step(context: dict) -> None:
    """pypyr entry-point: compose the digest and persist it to the DB."""
    conn = context["conn"]

    report = compose_wellness_report(
        conn,
        teams=context.get("teams") or None,
        members=context.get("team_metrics"),
    )
    context["report"] = report

    recipient = context.get(
        "recipient_email",
        os.environ.get("RECIPIENT_EMAIL", ""),
    )

    try:
        save_report(conn, {
            "report_date": datetime.date.today().isoformat(),
            "report_type": "weekly_wellness",
            "recipient_email": recipient,
            "red_count": report["red_count"],
            "yellow_count": report["yellow_count"],
            "green_count": report["green_count"],
            "email_subject": report["subject"],
            "email_body": report["html_body"],
        })
    except sqlite3.Error:
        logger.exception("Could not persist the wellness digest; sending anyway")

    logger.info(
        "Wellness digest generated: %d red, %d yellow",
        report["red_count"], report["yellow_count"],
    )
