"""Date helpers shared by the scoring modules.

Deadlines and leave boundaries arrive from whatever store the caller uses:
``datetime.date`` objects, ISO strings, or full timestamps.  Anything that
cannot be read as a calendar date is treated as absent.
"""

import datetime
import logging

logger = logging.getLogger(__name__)


def parse_date(value) -> datetime.date | None:
    """Coerce *value* into a ``datetime.date``.

    Recognised inputs:

    * ``datetime.datetime`` -- its date part
    * ``datetime.date``
    * ISO format ``YYYY-MM-DD``
    * ISO timestamps such as ``2026-03-01T09:30:00Z`` (time is dropped)

    Returns ``None`` for empty or unparseable input.

    Examples::

        >>> parse_date("2026-03-01")
        datetime.date(2026, 3, 1)
        >>> parse_date("next tuesday") is None
        True
    """
    if value is None:
        return None

    # datetime is a subclass of date, so check it first.
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value

    text = str(value).strip()
    if not text:
        return None

    try:
        return datetime.date.fromisoformat(text)
    except ValueError:
        pass

    try:
        return datetime.datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    logger.warning("Could not parse date value: %r", value)
    return None


def days_until(deadline: datetime.date, today: datetime.date) -> int:
    """Return whole days from *today* to *deadline* (negative if overdue)."""
    return (deadline - today).days
