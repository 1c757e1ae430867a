"""Shared pytest fixtures for the workforce-scoring test suite.

Provides:
    TODAY        -- fixed reference date used by all date-sensitive tests
    tmp_db       -- in-memory SQLite connection with full schema applied
    roster       -- three employees, one manager, their items and leave
    seeded_db    -- tmp_db with ``roster`` written to it
"""

import datetime
import pathlib
import sqlite3

import pytest

from workforce_scoring.db.manager import (
    insert_work_items,
    submit_leave_request,
    update_leave_status,
    upsert_worker,
)

TODAY = datetime.date(2026, 3, 2)


def day(offset: int) -> datetime.date:
    """Return ``TODAY`` shifted by *offset* days."""
    return TODAY + datetime.timedelta(days=offset)


def make_item(
    item_id: str,
    priority: int = 3,
    deadline_offset: int | None = None,
    status: str = "TODO",
    assignee: str = "EMP_1",
    title: str | None = None,
) -> dict:
    """Build a single work_item_dict for fixture use."""
    return {
        "id": item_id,
        "title": title or f"Task {item_id}",
        "status": status,
        "priority": priority,
        "deadline": day(deadline_offset) if deadline_offset is not None else None,
        "assignee": assignee,
    }


# ---------------------------------------------------------------------------
# tmp_db fixture
# ---------------------------------------------------------------------------

@pytest.fixture()
def tmp_db():
    """Create an in-memory SQLite connection with the full schema applied.

    Yields the connection and closes it after the test.
    """
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    schema_path = (
        pathlib.Path(__file__).resolve().parent.parent
        / "src" / "workforce_scoring" / "db" / "schema.sql"
    )
    conn.executescript(schema_path.read_text(encoding="utf-8"))

    yield conn
    conn.close()


# ---------------------------------------------------------------------------
# roster fixture
# ---------------------------------------------------------------------------

@pytest.fixture()
def roster() -> dict:
    """Return a small team with known workloads.

    * Sarah Chen  (EMP_1, Team Alpha) -- Java/React, light load, on leave
      from day+1 to day+5.
    * Marcus Thorne (EMP_2, Team Alpha) -- React/UI/UX, heavy load.
    * Alex Rivera (EMP_3, Team Beta) -- Node.js/PostgreSQL, no items.
    * James Wilson (MGR_1) -- manager, never a candidate.
    """
    workers = [
        {
            "id": "EMP_1", "name": "Sarah Chen", "role": "EMPLOYEE",
            "team": "Team Alpha", "position": "Lead Dev",
            "skills": ["Java", "React", "Architecture"],
        },
        {
            "id": "EMP_2", "name": "Marcus Thorne", "role": "EMPLOYEE",
            "team": "Team Alpha", "position": "Frontend Dev",
            "skills": ["React", "UI/UX", "Tailwind"],
        },
        {
            "id": "EMP_3", "name": "Alex Rivera", "role": "EMPLOYEE",
            "team": "Team Beta", "position": "Backend Dev",
            "skills": ["Node.js", "PostgreSQL"],
        },
        {
            "id": "MGR_1", "name": "James Wilson", "role": "MANAGER",
            "skills": ["Management", "Agile"],
        },
    ]
    items = [
        make_item("T1", priority=5, deadline_offset=2, assignee="EMP_1",
                  title="Q4 Architecture Review", status="IN_PROGRESS"),
        make_item("T2", priority=2, deadline_offset=8, assignee="EMP_1"),
        make_item("T3", priority=5, deadline_offset=1, assignee="EMP_2"),
        make_item("T4", priority=5, deadline_offset=1, assignee="EMP_2"),
        make_item("T5", priority=4, deadline_offset=3, assignee="EMP_2"),
        make_item("T6", priority=4, deadline_offset=6, assignee="EMP_2"),
        make_item("T7", priority=3, deadline_offset=4, assignee="EMP_2",
                  status="DONE"),
    ]
    leave = [
        {"worker_id": "EMP_1", "start_date": day(1), "end_date": day(5),
         "status": "APPROVED"},
    ]
    return {"workers": workers, "items": items, "leave": leave}


@pytest.fixture()
def seeded_db(tmp_db, roster):
    """``tmp_db`` with the ``roster`` fixture written to it."""
    for worker in roster["workers"]:
        upsert_worker(tmp_db, worker)
    insert_work_items(tmp_db, roster["items"])
    for window in roster["leave"]:
        request_id = submit_leave_request(
            tmp_db, window["worker_id"], window["start_date"], window["end_date"],
            reason="Vacation",
        )
        update_leave_status(tmp_db, request_id, window["status"])
    return tmp_db
