"""Team-level helpers built on top of the stress scorer.

Joins work items and leave windows to workers and produces the per-member
metrics shown on a manager's team view, plus the handover rules used
when approved leave needs a colleague to cover open work.
"""

import datetime
import logging

from workforce_scoring.scoring.stress import compute_stress

logger = logging.getLogger(__name__)

EMPLOYEE_ROLE = "EMPLOYEE"

# Handover limits for covering a colleague on leave.
CRITICAL_STRESS_SCORE = 95
HIGH_STRESS_SCORE = 75
HIGH_WORKLOAD_ITEMS = 5


def group_items_by_worker(
    items: list[dict],
    workers: list[dict],
    match_names: bool = False,
) -> dict[str, list[dict]]:
    """Attach work items to workers by ``assignee == worker id``.

    Args:
        items: ``work_item_dict`` records.
        workers: ``worker_dict`` records.  Every worker gets a key, even
                 with no items.
        match_names: Also attach items whose ``assignee`` holds the
                     worker's display name.  Only for legacy data that
                     was stored by name.

    Returns:
        A dict mapping worker id to that worker's items, in input order.
    """
    grouped: dict[str, list[dict]] = {w["id"]: [] for w in workers}
    names: dict[str, str] = {}
    if match_names:
        for worker in workers:
            if worker.get("name"):
                names.setdefault(worker["name"], worker["id"])

    unmatched = 0
    for item in items:
        assignee = item.get("assignee")
        if assignee in grouped:
            grouped[assignee].append(item)
        elif assignee in names:
            grouped[names[assignee]].append(item)
        else:
            unmatched += 1

    if unmatched:
        logger.debug("%d work items did not match any worker", unmatched)
    return grouped


def group_leave_windows(windows: list[dict]) -> dict[str, list[dict]]:
    """Group ``leave_window_dict`` records by ``worker_id``."""
    grouped: dict[str, list[dict]] = {}
    for window in windows:
        grouped.setdefault(window.get("worker_id"), []).append(window)
    return grouped


def filter_team(workers: list[dict], teams: list[str] | None) -> list[dict]:
    """Keep workers whose ``team`` is in *teams* (no filter when empty)."""
    if not teams:
        return list(workers)
    wanted = set(teams)
    return [w for w in workers if w.get("team") in wanted]


def eligible_candidates(
    workers: list[dict],
    teams: list[str] | None = None,
) -> list[dict]:
    """Return the employees a manager may assign work to."""
    employees = [w for w in workers if w.get("role") == EMPLOYEE_ROLE]
    return filter_team(employees, teams)


def team_metrics(
    workers: list[dict],
    items_by_worker: dict[str, list[dict]],
    today: datetime.date | None = None,
) -> list[dict]:
    """Compute stress metrics for every worker, highest score first.

    Each entry is a copy of the ``worker_dict`` extended with
    ``stress_score``, ``active_item_count`` and ``status``.
    """
    members: list[dict] = []
    for worker in workers:
        metrics = compute_stress(items_by_worker.get(worker["id"], []), today=today)
        members.append({
            **worker,
            "stress_score": metrics["score"],
            "active_item_count": metrics["active_item_count"],
            "status": metrics["status"],
        })

    members.sort(key=lambda m: m["stress_score"], reverse=True)
    return members


def summarize_statuses(members: list[dict]) -> dict[str, int]:
    """Count team members per traffic-light status."""
    counts = {"RED": 0, "YELLOW": 0, "GREEN": 0}
    for member in members:
        counts[member["status"]] = counts.get(member["status"], 0) + 1
    return counts


def check_cover_load(member: dict) -> dict | None:
    """Judge whether *member* can take over a colleague's open work.

    *member* is a ``team_metrics`` entry.  Returns ``None`` when the
    handover is safe, otherwise ``{"level", "message"}`` where level is:

        - ``"RED"``    stress above 95; the handover must be refused
        - ``"YELLOW"`` stress above 75, or 5+ active items; allowed with
                       a warning
    """
    name = member.get("name") or member.get("id")
    score = member["stress_score"]
    if score > CRITICAL_STRESS_SCORE:
        return {
            "level": "RED",
            "message": f"CRITICAL: {name} is at critical burnout risk "
                       f"(score {score}). Cannot assign.",
        }
    if score > HIGH_STRESS_SCORE:
        return {
            "level": "YELLOW",
            "message": f"Warning: {name} is at high stress (score {score}). "
                       "Risk of burnout.",
        }
    if member["active_item_count"] >= HIGH_WORKLOAD_ITEMS:
        return {
            "level": "YELLOW",
            "message": f"Warning: {name} has a high workload "
                       f"({member['active_item_count']} items).",
        }
    return None


def suggest_cover(members: list[dict], exclude_id: str | None = None) -> dict | None:
    """Pick the safest teammate to cover for *exclude_id*.

    Members are ordered by stress score, then active item count; the first
    one under both handover limits wins.  ``None`` means nobody is safe
    and the manager has to choose.
    """
    ordered = sorted(
        (m for m in members if m["id"] != exclude_id),
        key=lambda m: (m["stress_score"], m["active_item_count"]),
    )
    for member in ordered:
        if (member["stress_score"] < HIGH_STRESS_SCORE
                and member["active_item_count"] < HIGH_WORKLOAD_ITEMS):
            return member
    logger.info("No safe cover found among %d members", len(ordered))
    return None
