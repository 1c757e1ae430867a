"""Database sub-package for the workforce-scoring project.

Exports the core database functions so that other modules can import
them directly from ``workforce_scoring.db``:

    from workforce_scoring.db import get_connection, init_db, get_workers
"""

from workforce_scoring.db.manager import (
    get_connection,
    get_leave_requests,
    get_work_items,
    get_workers,
    init_db,
)

__all__ = [
    "get_connection",
    "get_leave_requests",
    "get_work_items",
    "get_workers",
    "init_db",
]
