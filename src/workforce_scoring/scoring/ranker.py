"""Smart task-assignment ranking for the workforce-scoring project.

Ranks candidate workers for a new work item by combining three signals:

- Skill match against the task title and description
- Current stress score (least loaded first)
- Leave windows overlapping the task deadline (warning only)
"""

import datetime
import logging

from workforce_scoring.scoring.conflicts import deadline_in_window
from workforce_scoring.scoring.dates import parse_date
from workforce_scoring.scoring.stress import compute_stress

logger = logging.getLogger(__name__)

GENERAL_AVAILABILITY = "General Availability"


def find_matching_skill(skills: list[str] | None, search_text: str) -> str | None:
    """Return the first skill (in the worker's own order) found in *search_text*.

    Matching is a case-insensitive substring test.  *search_text* is
    expected to be lowercase already.
    """
    for skill in skills or []:
        if skill and skill.lower() in search_text:
            return skill
    return None


def _conflict_warning(
    worker: dict,
    deadline: datetime.date | None,
    leave_windows: list[dict],
) -> str | None:
    """Return the leave-conflict message for *worker*, if any.

    Every window is checked and the last conflicting one wins; messages
    are not accumulated.
    """
    if deadline is None:
        return None

    warning = None
    for window in leave_windows:
        if deadline_in_window(
            deadline, window.get("start_date"), window.get("end_date")
        ):
            warning = (
                "Alert: High-priority conflict detected. "
                f"{worker.get('name')} is scheduled for leave during this period."
            )
    return warning


def rank_candidates(
    title: str,
    description: str,
    deadline,
    candidates: list[dict],
    items_by_worker: dict[str, list[dict]],
    leave_windows_by_worker: dict[str, list[dict]],
    today: datetime.date | None = None,
) -> list[dict]:
    """Rank *candidates* for a new work item.

    Sort order (stable):
        1. Workers with a matching skill before "General Availability".
        2. Ascending stress score within each group.

    Leave conflicts never remove or demote a candidate; they are reported
    in ``conflict_warning`` so the manager can decide.

    Args:
        title: Draft task title.
        description: Draft task description.
        deadline: Draft task deadline (date or ISO string).  Unparseable
                  values disable the leave-conflict check.
        candidates: ``worker_dict`` records to rank.
        items_by_worker: Work items keyed by worker id.
        leave_windows_by_worker: Leave windows keyed by worker id.
        today: Reference date for the stress scorer.

    Returns:
        A list of ``assignment_suggestion_dict`` objects, one per
        candidate, best first.  Callers truncate as needed.
    """
    search_text = f"{title or ''} {description or ''}".lower()
    task_deadline = parse_date(deadline)

    suggestions: list[dict] = []
    for worker in candidates:
        worker_id = worker.get("id")

        skill = find_matching_skill(worker.get("skills"), search_text)
        if skill is not None:
            match_reason = f"Matches skill: {skill}"
        else:
            match_reason = GENERAL_AVAILABILITY

        metrics = compute_stress(items_by_worker.get(worker_id, []), today=today)

        warning = _conflict_warning(
            worker, task_deadline, leave_windows_by_worker.get(worker_id, []),
        )

        suggestions.append({
            "worker": worker,
            "match_reason": match_reason,
            "matched_skill": skill,
            "stress_score": metrics["score"],
            "conflict_warning": warning,
        })

    suggestions.sort(
        key=lambda s: (s["matched_skill"] is None, s["stress_score"])
    )

    logger.info(
        "Ranked %d candidates for %r (%d skill matches, %d leave conflicts)",
        len(suggestions),
        title,
        sum(1 for s in suggestions if s["matched_skill"] is not None),
        sum(1 for s in suggestions if s["conflict_warning"]),
    )
    return suggestions


def top_suggestions(suggestions: list[dict], limit: int = 3) -> list[dict]:
    """Return the first *limit* suggestions from a ranked list."""
    return suggestions[:max(limit, 0)]
