"""pypyr step: compute stress metrics for every employee.

Context keys consumed:
    conn (sqlite3.Connection): An initialised database connection.
    teams (list[str], optional): Restrict scoring to these teams.

Context keys produced:
    team_metrics (list[dict]): One entry per employee, highest stress first.
    status_counts (dict): RED / YELLOW / GREEN head counts.
"""

import logging
import sqlite3

from workforce_scoring.db.manager import get_work_items, get_workers
from workforce_scoring.scoring.team import (
    group_items_by_worker,
    summarize_statuses,
    team_metrics,
)

logger = logging.getLogger(__name__)


def run_step(context: dict) -> None:
    """pypyr entry-point."""
    conn: sqlite3.Connection = context["conn"]
    teams: list[str] | None = context.get("teams") or None

    workers = get_workers(conn, role="EMPLOYEE", teams=teams)
    items_by_worker = group_items_by_worker(get_work_items(conn), workers)
    members = team_metrics(workers, items_by_worker)
    counts = summarize_statuses(members)

    context["team_metrics"] = members
    context["status_counts"] = counts

    for member in members:
        if member["status"] == "RED":
            logger.warning(
                "Burnout risk: %s (%s) stress=%d, %d active items",
                member["name"], member["id"], member["stress_score"],
                member["active_item_count"],
            )

    logger.info(
        "Scored %d employees (%d red, %d yellow, %d green)",
        len(members), counts["RED"], counts["YELLOW"], counts["GREEN"],
    )
