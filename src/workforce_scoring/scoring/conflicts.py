"""Leave-conflict detection for the workforce-scoring project.

Warns a worker when a proposed absence overlaps the deadline of one of
their open work items.
"""

import logging

from workforce_scoring.scoring.dates import parse_date
from workforce_scoring.scoring.stress import is_active

logger = logging.getLogger(__name__)


def deadline_in_window(deadline, window_start, window_end) -> bool:
    """Return True if *deadline* lies inside the inclusive window.

    Any value that does not parse as a date makes the check fail.
    """
    deadline = parse_date(deadline)
    start = parse_date(window_start)
    end = parse_date(window_end)
    if deadline is None or start is None or end is None:
        return False
    return start <= deadline <= end


def check_leave_conflicts(items: list[dict], window_start, window_end) -> list[str]:
    """List the active work items due during a proposed leave window.

    Args:
        items: The worker's ``work_item_dict`` records.
        window_start: First day of the absence (inclusive).
        window_end: Last day of the absence (inclusive).

    Returns:
        One message per conflicting item, in input order.  An empty list
        means no conflict, or a window boundary that could not be parsed.
    """
    start = parse_date(window_start)
    end = parse_date(window_end)
    if start is None or end is None:
        logger.warning(
            "Leave window %r - %r is not a valid date range; "
            "skipping conflict check", window_start, window_end,
        )
        return []

    conflicts: list[str] = []
    for item in items:
        if not is_active(item):
            continue
        deadline = parse_date(item.get("deadline"))
        if deadline is None:
            continue
        if start <= deadline <= end:
            conflicts.append(
                f"High Priority Task: '{item.get('title')}' "
                "is due during these dates."
            )

    logger.debug(
        "Leave window %s - %s: %d conflicting items", start, end, len(conflicts),
    )
    return conflicts
