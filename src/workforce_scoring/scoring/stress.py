"""Burnout / stress scoring for the workforce-scoring project.

Turns the work items assigned to one worker into a stress score between
0 and 100 and classifies it as GREEN, YELLOW, or RED.
"""

import datetime
import logging

from workforce_scoring.scoring.dates import days_until, parse_date

logger = logging.getLogger(__name__)

DONE_STATUS = "DONE"

# Ceiling for the nearest-deadline day count, also used when no active
# item carries a deadline.
DEFAULT_DEADLINE_BUFFER_DAYS = 30

MIN_SCORE = 0
MAX_SCORE = 100

RED_THRESHOLD = 50
YELLOW_THRESHOLD = 30


def is_active(item: dict) -> bool:
    """Return True unless the item has reached the terminal DONE status."""
    return str(item.get("status") or "").upper() != DONE_STATUS


def classify_stress(score: int) -> str:
    """Map a clamped stress score to its traffic-light status.

    Thresholds:
        - >  50 -> RED    (burnout risk)
        - >= 30 -> YELLOW (at capacity)
        - <  30 -> GREEN  (healthy)
    """
    if score > RED_THRESHOLD:
        return "RED"
    if score >= YELLOW_THRESHOLD:
        return "YELLOW"
    return "GREEN"


def compute_stress(
    items: list[dict],
    today: datetime.date | None = None,
) -> dict:
    """Compute the stress metrics for a set of work items.

    Formula::

        score = active_items * 10 + sum(priority) - days_to_nearest_deadline

    A nearer (or already missed) deadline raises the score because the day
    count is subtracted.  The day count is capped at 30, so deadlines
    further out than that all weigh the same.  The raw score is clamped
    to ``[0, 100]``.

    Items with status ``DONE`` are ignored.  Deadlines that cannot be
    parsed count as "no deadline".

    Args:
        items: ``work_item_dict`` records, usually everything assigned to
               one worker.  Order does not matter.
        today: Reference date for deadline distances.  Defaults to
               ``datetime.date.today()``.

    Returns:
        A ``stress_metrics_dict`` with keys ``score``, ``status``,
        ``active_item_count``, ``sum_priority`` and
        ``days_to_nearest_deadline``.
    """
    if today is None:
        today = datetime.date.today()

    active = [item for item in items if is_active(item)]
    active_item_count = len(active)
    sum_priority = sum(item.get("priority") or 0 for item in active)

    day_counts = []
    for item in active:
        deadline = parse_date(item.get("deadline"))
        if deadline is not None:
            day_counts.append(days_until(deadline, today))

    days_to_nearest_deadline = min([DEFAULT_DEADLINE_BUFFER_DAYS, *day_counts])

    raw_score = active_item_count * 10 + sum_priority - days_to_nearest_deadline
    score = max(MIN_SCORE, min(MAX_SCORE, raw_score))
    status = classify_stress(score)

    logger.debug(
        "Stress score: %d (%s) [raw=%d, active=%d, priority=%d, days=%d]",
        score, status, raw_score, active_item_count, sum_priority,
        days_to_nearest_deadline,
    )
    return {
        "score": score,
        "status": status,
        "active_item_count": active_item_count,
        "sum_priority": sum_priority,
        "days_to_nearest_deadline": days_to_nearest_deadline,
    }
