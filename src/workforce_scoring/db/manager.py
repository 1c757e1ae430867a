"""Database manager for the workforce-scoring project.

Provides connection management, schema initialization, and query helpers
for the SQLite store that feeds the scoring engine.  All functions take a
connection object as their first parameter and do not manage global state.
Rows are returned as plain dicts so they can be passed straight to the
scoring functions.
"""

import datetime
import json
import logging
import pathlib
import sqlite3
import uuid

from workforce_scoring.scoring.dates import parse_date

logger = logging.getLogger(__name__)

ITEM_STATUSES = ("TODO", "OPEN", "IN_PROGRESS", "DONE")
LEAVE_DECISIONS = ("APPROVED", "REJECTED")
DEFAULT_LEAVE_TYPE = "Vacation"
BURNOUT_LEAVE_TYPE = "Burnout"


def get_connection(db_path: str) -> sqlite3.Connection:
    """Open a SQLite connection with Row factory enabled.

    Args:
        db_path: Filesystem path to the SQLite database file, or ":memory:"
                 for an in-memory database.

    Returns:
        A ``sqlite3.Connection`` configured with ``sqlite3.Row`` as
        ``row_factory`` and foreign-key enforcement turned on.
    """
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes by executing ``schema.sql``.

    Args:
        conn: An open SQLite connection.
    """
    schema_path = pathlib.Path(__file__).with_name("schema.sql")
    schema_sql = schema_path.read_text(encoding="utf-8")
    conn.executescript(schema_sql)
    logger.info("Database schema initialized from %s", schema_path)


# ---------------------------------------------------------------------------
# Workers
# ---------------------------------------------------------------------------

def upsert_worker(conn: sqlite3.Connection, worker: dict) -> str:
    """Insert a worker or update the existing row with the same id.

    Args:
        conn: An open SQLite connection.
        worker: A ``worker_dict``.  ``id`` and ``name`` are required;
                ``skills`` is an ordered list of tags.

    Returns:
        The worker id.
    """
    if not worker.get("id") or not worker.get("name"):
        raise ValueError("worker requires both 'id' and 'name'")

    sql = """
        INSERT INTO workers
            (id, name, email, role, department, team, position, skills)
        VALUES
            (:id, :name, :email, :role, :department, :team, :position, :skills)
        ON CONFLICT (id) DO UPDATE SET
            name = excluded.name,
            email = excluded.email,
            role = excluded.role,
            department = excluded.department,
            team = excluded.team,
            position = excluded.position,
            skills = excluded.skills
    """
    params = {
        "id": worker["id"],
        "name": worker["name"],
        "email": worker.get("email"),
        "role": worker.get("role") or "EMPLOYEE",
        "department": worker.get("department"),
        "team": worker.get("team"),
        "position": worker.get("position"),
        "skills": json.dumps(list(worker.get("skills") or [])),
    }
    conn.execute(sql, params)
    conn.commit()
    logger.debug("Upserted worker id=%s (%s)", params["id"], params["name"])
    return params["id"]


def get_worker(conn: sqlite3.Connection, worker_id: str) -> dict | None:
    """Return a single ``worker_dict`` or ``None`` if the id is unknown."""
    row = conn.execute(
        "SELECT * FROM workers WHERE id = ?", (worker_id,)
    ).fetchone()
    return _worker_from_row(row) if row else None


def get_workers(
    conn: sqlite3.Connection,
    role: str | None = None,
    teams: list[str] | None = None,
) -> list[dict]:
    """Return workers, optionally filtered by role and team names.

    Args:
        conn: An open SQLite connection.
        role: Only return workers with this role (e.g. ``"EMPLOYEE"``).
        teams: Only return workers whose ``team`` is in this list.

    Returns:
        A list of ``worker_dict`` records ordered by id.
    """
    clauses: list[str] = []
    params: list = []
    if role:
        clauses.append("role = ?")
        params.append(role)
    if teams:
        clauses.append(f"team IN ({', '.join('?' for _ in teams)})")
        params.extend(teams)

    sql = "SELECT * FROM workers"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY id"

    return [_worker_from_row(row) for row in conn.execute(sql, params).fetchall()]


# ---------------------------------------------------------------------------
# Work items
# ---------------------------------------------------------------------------

def insert_work_items(conn: sqlite3.Connection, items: list[dict]) -> int:
    """Insert ``work_item_dict`` records into the ``work_items`` table.

    Duplicates (identified by ``id``) are silently ignored via
    ``INSERT OR IGNORE``.  Items without an id get a generated one.
    Every item is validated before anything is written.

    Returns:
        The number of rows actually inserted.

    Raises:
        ValueError: If an item has no title or an unknown status.
    """
    if not items:
        return 0

    sql = """
        INSERT OR IGNORE INTO work_items
            (id, title, description, status, priority, deadline, assignee)
        VALUES
            (:id, :title, :description, :status, :priority, :deadline, :assignee)
    """

    rows = []
    for item in items:
        title = (item.get("title") or "").strip()
        if not title:
            raise ValueError(f"Work item {item.get('id')!r} has no title")
        status = (item.get("status") or "TODO").upper()
        if status not in ITEM_STATUSES:
            raise ValueError(
                f"Work item {item.get('id')!r} has unknown status {status!r}; "
                f"expected one of {', '.join(ITEM_STATUSES)}"
            )
        deadline = parse_date(item.get("deadline"))
        rows.append({
            "id": item.get("id") or _new_id(),
            "title": title,
            "description": item.get("description"),
            "status": status,
            "priority": 3 if item.get("priority") is None else item["priority"],
            "deadline": deadline.isoformat() if deadline else None,
            "assignee": item.get("assignee"),
        })

    count_before = _row_count(conn, "work_items")
    conn.executemany(sql, rows)
    conn.commit()

    inserted = _row_count(conn, "work_items") - count_before
    logger.info("Inserted %d new work items (%d duplicates skipped)",
                inserted, len(rows) - inserted)
    return inserted


def get_work_items(
    conn: sqlite3.Connection,
    assignee: str | None = None,
) -> list[dict]:
    """Return work items, optionally only those of one assignee."""
    if assignee is None:
        rows = conn.execute(
            "SELECT * FROM work_items ORDER BY rowid"
        ).fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM work_items WHERE assignee = ? ORDER BY rowid",
            (assignee,),
        ).fetchall()
    return [_item_from_row(row) for row in rows]


def update_item_status(
    conn: sqlite3.Connection,
    item_id: str,
    status: str,
) -> None:
    """Move a work item to a new status.

    Raises:
        ValueError: If *status* is unknown or the item does not exist.
    """
    status = (status or "").upper()
    if status not in ITEM_STATUSES:
        raise ValueError(
            f"Unknown status {status!r}; expected one of {', '.join(ITEM_STATUSES)}"
        )
    _update_item(conn, item_id, "status", status)
    logger.info("Work item %s moved to %s", item_id, status)


def reassign_item(conn: sqlite3.Connection, item_id: str, worker_id: str) -> None:
    """Hand a work item over to another worker.

    Raises:
        ValueError: If the worker or the item does not exist.
    """
    if get_worker(conn, worker_id) is None:
        raise ValueError(f"Unknown worker {worker_id!r}")
    _update_item(conn, item_id, "assignee", worker_id)
    logger.info("Work item %s reassigned to %s", item_id, worker_id)


def reassign_open_items(
    conn: sqlite3.Connection,
    from_worker_id: str,
    to_worker_id: str,
) -> list[str]:
    """Hand every active work item of one worker over to another.

    Used when leave is approved with a cover.  DONE items stay with their
    original owner.

    Returns:
        The ids of the reassigned items, in store order.

    Raises:
        ValueError: If *to_worker_id* is unknown or equals *from_worker_id*.
    """
    if from_worker_id == to_worker_id:
        raise ValueError("Cannot hand work over to the same worker")
    if get_worker(conn, to_worker_id) is None:
        raise ValueError(f"Unknown worker {to_worker_id!r}")

    moved = []
    for item in get_work_items(conn, assignee=from_worker_id):
        if (item["status"] or "").upper() == "DONE":
            continue
        reassign_item(conn, item["id"], to_worker_id)
        moved.append(item["id"])

    logger.info("Handed %d open items from %s to %s",
                len(moved), from_worker_id, to_worker_id)
    return moved


# ---------------------------------------------------------------------------
# Leave requests
# ---------------------------------------------------------------------------

def submit_leave_request(
    conn: sqlite3.Connection,
    worker_id: str,
    start_date,
    end_date,
    reason: str | None = None,
    burnout_flag: bool = False,
    leave_type: str | None = None,
) -> str:
    """Record a new PENDING leave request.

    Args:
        conn: An open SQLite connection.
        worker_id: The requesting worker.
        start_date: First day of leave (date or ISO string).
        end_date: Last day of leave, inclusive.
        reason: Free-text reason.
        burnout_flag: Set when the request is driven by a RED stress status.
        leave_type: Free-text category such as ``"Sick Leave"``.  Defaults
                    to ``"Burnout"`` for flagged requests and ``"Vacation"``
                    otherwise.

    Returns:
        The id of the new leave request.

    Raises:
        ValueError: If a boundary cannot be parsed or ``start > end``.
    """
    start = parse_date(start_date)
    end = parse_date(end_date)
    if start is None or end is None:
        raise ValueError(f"Invalid leave dates: {start_date!r} - {end_date!r}")
    if start > end:
        raise ValueError(f"Leave starts after it ends: {start} > {end}")

    if not leave_type:
        leave_type = BURNOUT_LEAVE_TYPE if burnout_flag else DEFAULT_LEAVE_TYPE

    request_id = _new_id()
    conn.execute(
        """
        INSERT INTO leave_requests
            (id, worker_id, start_date, end_date, leave_type, reason, status,
             burnout_flag)
        VALUES
            (:id, :worker_id, :start_date, :end_date, :leave_type, :reason,
             'PENDING', :burnout_flag)
        """,
        {
            "id": request_id,
            "worker_id": worker_id,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "leave_type": leave_type,
            "reason": reason,
            "burnout_flag": int(bool(burnout_flag)),
        },
    )
    conn.commit()
    logger.info("Leave request %s submitted for %s (%s, %s - %s, burnout=%s)",
                request_id, worker_id, leave_type, start, end, bool(burnout_flag))
    return request_id


def get_leave_request(conn: sqlite3.Connection, request_id: str) -> dict | None:
    """Return one ``leave_window_dict`` or ``None`` if the id is unknown."""
    row = conn.execute(
        "SELECT * FROM leave_requests WHERE id = ?", (request_id,)
    ).fetchone()
    return _leave_from_row(row) if row else None


def update_leave_status(
    conn: sqlite3.Connection,
    request_id: str,
    status: str,
    manager_reason: str | None = None,
) -> None:
    """Approve or reject a leave request.

    A rejection must carry a manager reason, which is appended to the
    stored reason as ``"<reason> [Refusal: <manager_reason>]"``.

    Raises:
        ValueError: If *status* is not a decision, a rejection has no
            reason, or the request is unknown.
    """
    status = (status or "").upper()
    if status not in LEAVE_DECISIONS:
        raise ValueError(
            f"Unknown decision {status!r}; expected APPROVED or REJECTED"
        )
    manager_reason = (manager_reason or "").strip()
    if status == "REJECTED" and not manager_reason:
        raise ValueError("A reason is required to reject a leave request")

    request = get_leave_request(conn, request_id)
    if request is None:
        raise ValueError(f"Unknown leave request {request_id!r}")

    reason = request["reason"]
    if status == "REJECTED":
        reason = f"{reason or ''} [Refusal: {manager_reason}]".strip()

    conn.execute(
        """
        UPDATE leave_requests
        SET status = :status, reason = :reason, decided_at = :decided_at
        WHERE id = :id
        """,
        {
            "status": status,
            "reason": reason,
            "decided_at": datetime.datetime.now().isoformat(timespec="seconds"),
            "id": request_id,
        },
    )
    conn.commit()
    logger.info("Leave request %s marked %s", request_id, status)


def get_leave_requests(
    conn: sqlite3.Connection,
    worker_id: str | None = None,
) -> list[dict]:
    """Return leave requests as ``leave_window_dict`` records."""
    if worker_id is None:
        rows = conn.execute(
            "SELECT * FROM leave_requests ORDER BY start_date, id"
        ).fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM leave_requests WHERE worker_id = ? "
            "ORDER BY start_date, id",
            (worker_id,),
        ).fetchall()
    return [_leave_from_row(row) for row in rows]


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

def save_report(conn: sqlite3.Connection, report_dict: dict) -> int:
    """Persist a report record to the ``reports`` table.

    Returns:
        The ``id`` of the newly inserted report row.
    """
    sql = """
        INSERT INTO reports
            (report_date, report_type, recipient_email, red_count,
             yellow_count, green_count, sent_at, email_subject, email_body)
        VALUES
            (:report_date, :report_type, :recipient_email, :red_count,
             :yellow_count, :green_count, :sent_at, :email_subject, :email_body)
    """
    params = {
        "report_date": report_dict.get("report_date",
                                       datetime.date.today().isoformat()),
        "report_type": report_dict.get("report_type", "weekly_wellness"),
        "recipient_email": report_dict.get("recipient_email"),
        "red_count": report_dict.get("red_count"),
        "yellow_count": report_dict.get("yellow_count"),
        "green_count": report_dict.get("green_count"),
        "sent_at": report_dict.get("sent_at"),
        "email_subject": report_dict.get("email_subject"),
        "email_body": report_dict.get("email_body"),
    }
    cursor = conn.execute(sql, params)
    conn.commit()
    logger.info("Saved report id=%d (type=%s, date=%s)",
                cursor.lastrowid, params["report_type"],
                params["report_date"])
    return cursor.lastrowid


def get_item_count(conn: sqlite3.Connection) -> int:
    """Return the total number of rows in the ``work_items`` table."""
    return _row_count(conn, "work_items")


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _new_id() -> str:
    """Return a short random identifier."""
    return uuid.uuid4().hex[:9]


def _row_count(conn: sqlite3.Connection, table: str) -> int:
    """Return the row count of *table* (internal helper)."""
    row = conn.execute(f"SELECT COUNT(*) AS cnt FROM {table}").fetchone()
    return row["cnt"]


def _update_item(
    conn: sqlite3.Connection,
    item_id: str,
    column: str,
    value: str,
) -> None:
    """Set one column on a work item, failing loudly on unknown ids."""
    cursor = conn.execute(
        f"UPDATE work_items SET {column} = :value, updated_at = :now "
        "WHERE id = :id",
        {
            "value": value,
            "now": datetime.datetime.now().isoformat(timespec="seconds"),
            "id": item_id,
        },
    )
    if cursor.rowcount == 0:
        conn.rollback()
        raise ValueError(f"Unknown work item {item_id!r}")
    conn.commit()


def _worker_from_row(row: sqlite3.Row) -> dict:
    """Convert a ``workers`` row into a ``worker_dict``."""
    worker = dict(row)
    try:
        worker["skills"] = json.loads(worker.get("skills") or "[]")
    except json.JSONDecodeError:
        logger.warning("Worker %s has malformed skills JSON", worker.get("id"))
        worker["skills"] = []
    return worker


def _item_from_row(row: sqlite3.Row) -> dict:
    """Convert a ``work_items`` row into a ``work_item_dict``."""
    return dict(row)


def _leave_from_row(row: sqlite3.Row) -> dict:
    """Convert a ``leave_requests`` row into a ``leave_window_dict``."""
    window = dict(row)
    window["burnout_flag"] = bool(window["burnout_flag"])
    return window
