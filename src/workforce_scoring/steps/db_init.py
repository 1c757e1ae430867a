"""pypyr step: open the workforce store for the weekly pipeline.

The database path is taken from, in order, ``context['db_path']``, the
``WORKFORCE_DB`` environment variable and the per-user default used by
the CLI, so ``workforce-scoring pipeline weekly`` and a bare
``pypyr`` run read the same roster.  A connection that a caller already
placed in the context is reused as-is after the schema is applied.

Context keys consumed:
    db_path (str, optional): Path to the SQLite database file.
    conn (sqlite3.Connection, optional): An open connection to reuse.

Context keys produced:
    conn (sqlite3.Connection): The initialised database connection.
    db_path (str): The resolved database path.
"""

import logging
import os
import pathlib

from workforce_scoring import DEFAULT_DB_PATH
from workforce_scoring.db.manager import get_connection, get_workers, init_db

logger = logging.getLogger(__name__)


def resolve_db_path(context: dict) -> str:
    """Return the database path the pipeline should use."""
    return (
        context.get("db_path")
        or os.environ.get("WORKFORCE_DB")
        or DEFAULT_DB_PATH
    )


def run_step(context: dict) -> None:
    """pypyr entry-point: make ``context['conn']`` ready for scoring."""
    db_path = resolve_db_path(context)

    conn = context.get("conn")
    if conn is None:
        if db_path != ":memory:":
            pathlib.Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = get_connection(db_path)

    init_db(conn)

    employees = get_workers(conn, role="EMPLOYEE")
    if not employees:
        logger.warning(
            "No employees in %s; run `workforce-scoring seed` or import a "
            "roster before sending the digest", db_path,
        )

    context["conn"] = conn
    context["db_path"] = db_path

    logger.info("Workforce store ready at %s (%d employees)",
                db_path, len(employees))
