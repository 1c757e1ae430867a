"""pypyr step: send the wellness digest email.

Reads the composed digest from ``context['report']`` and the recipient
from context or ``RECIPIENT_EMAIL``.  On success the latest unsent
``reports`` row gets its ``sent_at`` timestamp and the connection is
closed.

Context keys consumed:
    report (dict): Must contain ``subject`` and ``html_body``.
    conn (sqlite3.Connection, optional): Database connection.
    recipient_email (str, optional): Override recipient.

Context keys produced:
    email_sent (bool): Whether the email was dispatched successfully.
"""

import datetime
import logging
import os
import sqlite3

from workforce_scoring.reporting.sender import send_email

logger = logging.getLogger(__name__)


def run_step(context: dict) -> None:
    """pypyr entry-point: send the wellness digest."""
    report = context.get("report")
    recipient = context.get(
        "recipient_email",
        os.environ.get("RECIPIENT_EMAIL", ""),
    )

    if not report:
        logger.warning("No report found in context; skipping email send.")
        context["email_sent"] = False
    elif not recipient:
        logger.warning(
            "No recipient email configured. Set recipient_email in "
            "context or RECIPIENT_EMAIL environment variable."
        )
        context["email_sent"] = False
    else:
        context["email_sent"] = send_email(
            recipient, report["subject"], report["html_body"]
        )

    conn = context.get("conn")
    if conn is None:
        return

    if context["email_sent"]:
        try:
            conn.execute(
                "UPDATE reports SET sent_at = :sent_at "
                "WHERE id = (SELECT id FROM reports WHERE sent_at IS NULL "
                "ORDER BY id DESC LIMIT 1)",
                {"sent_at": datetime.datetime.now().isoformat()},
            )
            conn.commit()
        except sqlite3.Error as exc:
            logger.error("Failed to update reports.sent_at: %s", exc)

    conn.close()
    logger.info("Database connection closed by send_email step.")
