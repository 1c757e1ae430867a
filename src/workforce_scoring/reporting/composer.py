"""Compose the weekly team wellness digest.

Loads workers, work items and leave requests from the database, runs the
stress scorer over every team member, and renders an HTML email body
using the Jinja2 template at ``templates/wellness_report.html``.
"""

import datetime
import logging
import pathlib
import sqlite3

from jinja2 import Environment, FileSystemLoader

from workforce_scoring.db.manager import (
    get_leave_requests,
    get_work_items,
    get_workers,
)
from workforce_scoring.scoring.dates import parse_date
from workforce_scoring.scoring.team import (
    group_items_by_worker,
    summarize_statuses,
    team_metrics,
)

logger = logging.getLogger(__name__)

_TEMPLATE_DIR = pathlib.Path(__file__).parent / "templates"

# How far ahead the "upcoming leave" section looks.
LEAVE_LOOKAHEAD_DAYS = 14


def _get_week_range(today: datetime.date) -> str:
    """Return a human-readable week range string for *today*'s week."""
    monday = today - datetime.timedelta(days=today.weekday())
    sunday = monday + datetime.timedelta(days=6)
    return f"Week of {monday.strftime('%B %d')} - {sunday.strftime('%B %d, %Y')}"


def _upcoming_leave(
    conn: sqlite3.Connection,
    names: dict[str, str],
    today: datetime.date,
) -> list[dict]:
    """Return non-rejected leave overlapping the next two weeks."""
    horizon = today + datetime.timedelta(days=LEAVE_LOOKAHEAD_DAYS)
    upcoming = []
    for window in get_leave_requests(conn):
        if window["worker_id"] not in names or window["status"] == "REJECTED":
            continue
        start = parse_date(window["start_date"])
        end = parse_date(window["end_date"])
        if start is None or end is None:
            continue
        if start <= horizon and end >= today:
            upcoming.append({
                "worker_name": names[window["worker_id"]],
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
                "leave_type": window.get("leave_type"),
                "status": window["status"],
                "burnout_flag": window["burnout_flag"],
            })
    return upcoming


def compose_wellness_report(
    conn: sqlite3.Connection,
    teams: list[str] | None = None,
    today: datetime.date | None = None,
    members: list[dict] | None = None,
) -> dict:
    """Build the weekly team wellness report.

    Args:
        conn: An open SQLite connection (with ``sqlite3.Row`` row factory).
        teams: Restrict the report to these team names.  All employees
               are included when empty.
        today: Reference date for stress scores and the week range.
        members: Precomputed ``team_metrics`` entries, e.g. from the
                 ``score_team`` pipeline step.  The team is loaded and
                 scored here when omitted.

    Returns:
        A dict with keys:
            - ``subject`` (str): The email subject line.
            - ``html_body`` (str): The rendered HTML report.
            - ``red_count`` / ``yellow_count`` / ``green_count`` (int).
    """
    if today is None:
        today = datetime.date.today()

    if members is None:
        workers = get_workers(conn, role="EMPLOYEE", teams=teams)
        items_by_worker = group_items_by_worker(get_work_items(conn), workers)
        members = team_metrics(workers, items_by_worker, today=today)
    counts = summarize_statuses(members)

    names = {m["id"]: m["name"] for m in members}
    upcoming_leave = _upcoming_leave(conn, names, today)

    env = Environment(
        loader=FileSystemLoader(str(_TEMPLATE_DIR)),
        autoescape=True,
    )
    template = env.get_template("wellness_report.html")

    html_body = template.render(
        week_range=_get_week_range(today),
        at_risk=[m for m in members if m["status"] == "RED"],
        at_capacity=[m for m in members if m["status"] == "YELLOW"],
        members=members,
        upcoming_leave=upcoming_leave,
        counts=counts,
        teams=teams or [],
    )

    subject = (
        f"{counts['RED']} Team Members at Burnout Risk This Week "
        "| Workforce Wellness Digest"
    )

    logger.info(
        "Composed wellness report: %d red, %d yellow, %d green members",
        counts["RED"], counts["YELLOW"], counts["GREEN"],
    )

    return {
        "subject": subject,
        "html_body": html_body,
        "red_count": counts["RED"],
        "yellow_count": counts["YELLOW"],
        "green_count": counts["GREEN"],
    }
