"""Tests for the workforce-scoring Click CLI."""

import pytest
from click.testing import CliRunner

from workforce_scoring.cli import main
from workforce_scoring.db.manager import (
    get_connection,
    get_leave_request,
    get_leave_requests,
    get_work_items,
    init_db,
    insert_work_items,
    submit_leave_request,
    upsert_worker,
)


@pytest.fixture()
def db_file(tmp_path, roster):
    """Write the ``roster`` fixture to an on-disk database and return its path."""
    path = tmp_path / "workforce.db"
    conn = get_connection(str(path))
    init_db(conn)
    for worker in roster["workers"]:
        upsert_worker(conn, worker)
    insert_work_items(conn, roster["items"])
    conn.close()
    return str(path)


def invoke(*args):
    runner = CliRunner()
    return runner.invoke(main, list(args))


def _read(db_path, query, *args, **kwargs):
    """Run one store query against *db_path* on a fresh connection."""
    conn = get_connection(db_path)
    try:
        return query(conn, *args, **kwargs)
    finally:
        conn.close()


def _pending_request(db_path, worker_id):
    return _read(db_path, submit_leave_request, worker_id,
                 "2026-12-01", "2026-12-03", reason="Trip")


# ---------------------------------------------------------------------------
# Help output
# ---------------------------------------------------------------------------

def test_cli_help():
    """workforce-scoring --help should exit 0 and show usage text."""
    result = invoke("--help")
    assert result.exit_code == 0
    assert "Usage" in result.output


def test_suggest_help():
    """suggest --help should list the task options."""
    result = invoke("suggest", "--help")
    assert result.exit_code == 0
    assert "--title" in result.output
    assert "--deadline" in result.output


def test_leave_help():
    """leave --help should list the request/approve/reject subcommands."""
    result = invoke("leave", "--help")
    assert result.exit_code == 0
    for sub in ("request", "approve", "reject"):
        assert sub in result.output


def test_report_help():
    """report --help should list the --recipient option."""
    result = invoke("report", "--help")
    assert result.exit_code == 0
    assert "--recipient" in result.output


def test_pipeline_help():
    """pipeline --help should list the weekly choice."""
    result = invoke("pipeline", "--help")
    assert result.exit_code == 0
    assert "weekly" in result.output


# ---------------------------------------------------------------------------
# Commands against a real database file
# ---------------------------------------------------------------------------

class TestSeedCommand:

    def test_seed_then_stress(self, tmp_path):
        db = str(tmp_path / "nested" / "demo.db")
        result = invoke("--db", db, "seed", "--seed", "3")
        assert result.exit_code == 0, result.output
        assert "Seeded 30 workers" in result.output

        result = invoke("--db", db, "stress", "EMP_Alpha_1")
        assert result.exit_code == 0, result.output
        assert "Active items" in result.output
        assert "Nearest deadline" in result.output


class TestStressCommand:

    def test_known_worker(self, db_file):
        result = invoke("--db", db_file, "stress", "EMP_3")
        assert result.exit_code == 0, result.output
        assert "Alex Rivera: 0/100" in result.output
        assert "GREEN" in result.output

    def test_unknown_worker_exits_1(self, db_file):
        result = invoke("--db", db_file, "stress", "EMP_404")
        assert result.exit_code == 1
        assert "unknown worker" in result.output


class TestConflictsCommand:

    def test_reports_items_due_during_leave(self, db_file):
        result = invoke("--db", db_file, "conflicts", "EMP_1",
                        "--start", "2026-03-03", "--end", "2026-03-07")
        assert result.exit_code == 0, result.output
        assert "Task conflict detected" in result.output
        assert "'Q4 Architecture Review' is due during these dates." in result.output

    def test_no_conflicts(self, db_file):
        result = invoke("--db", db_file, "conflicts", "EMP_3",
                        "--start", "2026-03-03", "--end", "2026-03-07")
        assert result.exit_code == 0
        assert "No conflicts with open work items." in result.output

    def test_unknown_worker_exits_1(self, db_file):
        result = invoke("--db", db_file, "conflicts", "NOPE",
                        "--start", "2026-03-01", "--end", "2026-03-05")
        assert result.exit_code == 1
        assert "unknown worker" in result.output
        assert "No conflicts" not in result.output

    def test_invalid_dates_exit_1(self, db_file):
        result = invoke("--db", db_file, "conflicts", "EMP_1",
                        "--start", "next week", "--end", "2026-03-07")
        assert result.exit_code == 1


class TestSuggestCommand:

    def test_skill_match_listed_first(self, db_file):
        result = invoke("--db", db_file, "suggest",
                        "--title", "Postgres migration",
                        "--description", "Tune postgresql indexes",
                        "--deadline", "2026-12-01")
        assert result.exit_code == 0, result.output
        first_line = result.output.splitlines()[0]
        assert first_line.startswith("1. Alex Rivera (EMP_3)")
        assert "Matches skill: PostgreSQL" in first_line
        assert "James Wilson" not in result.output

    def test_team_filter_with_no_members(self, db_file):
        result = invoke("--db", db_file, "suggest", "--title", "x",
                        "--deadline", "2026-12-01", "--team", "Team Omega")
        assert result.exit_code == 0
        assert "No eligible employees found." in result.output


class TestTeamCommand:

    def test_lists_employees_only(self, db_file):
        result = invoke("--db", db_file, "team")
        assert result.exit_code == 0, result.output
        assert "Marcus Thorne" in result.output
        assert "Alex Rivera" in result.output
        assert "James Wilson" not in result.output
        assert "Red:" in result.output


class TestLeaveCommands:

    def test_request_then_reject(self, db_file):
        result = invoke("--db", db_file, "leave", "request", "EMP_3",
                        "--start", "2026-12-01", "--end", "2026-12-03",
                        "--reason", "Family trip")
        assert result.exit_code == 0, result.output
        assert "submitted" in result.output

        conn = get_connection(db_file)
        request_id = get_leave_requests(conn, worker_id="EMP_3")[0]["id"]
        conn.close()

        result = invoke("--db", db_file, "leave", "reject", request_id,
                        "--reason", "Release freeze")
        assert result.exit_code == 0, result.output
        assert "rejected" in result.output

        conn = get_connection(db_file)
        request = get_leave_requests(conn, worker_id="EMP_3")[0]
        conn.close()
        assert request["status"] == "REJECTED"
        assert request["reason"] == "Family trip [Refusal: Release freeze]"

    def test_request_warns_about_conflicts(self, db_file):
        result = invoke("--db", db_file, "leave", "request", "EMP_1",
                        "--start", "2026-03-03", "--end", "2026-03-07")
        assert result.exit_code == 0, result.output
        assert "Warning: High Priority Task: 'Q4 Architecture Review'" in result.output

    def test_reversed_range_exits_1(self, db_file):
        result = invoke("--db", db_file, "leave", "request", "EMP_3",
                        "--start", "2026-12-05", "--end", "2026-12-01")
        assert result.exit_code == 1

    def test_approve_unknown_request_exits_1(self, db_file):
        result = invoke("--db", db_file, "leave", "approve", "missing")
        assert result.exit_code == 1

    def test_request_with_leave_type(self, db_file):
        result = invoke("--db", db_file, "leave", "request", "EMP_3",
                        "--start", "2026-12-01", "--end", "2026-12-02",
                        "--type", "Sick Leave")
        assert result.exit_code == 0, result.output
        request = _read(db_file, get_leave_requests, worker_id="EMP_3")[0]
        assert request["leave_type"] == "Sick Leave"

    def test_reject_requires_reason(self, db_file):
        request_id = _pending_request(db_file, "EMP_3")

        result = invoke("--db", db_file, "leave", "reject", request_id)
        assert result.exit_code == 2
        assert "--reason" in result.output

        result = invoke("--db", db_file, "leave", "reject", request_id,
                        "--reason", "   ")
        assert result.exit_code == 1
        assert _read(db_file, get_leave_request, request_id)["status"] == "PENDING"


class TestLeaveHandover:

    def test_approve_hands_open_work_to_cover(self, db_file):
        request_id = _pending_request(db_file, "EMP_1")

        result = invoke("--db", db_file, "leave", "approve", request_id,
                        "--reassign-to", "EMP_3")
        assert result.exit_code == 0, result.output
        assert "approved" in result.output
        assert "Handed 2 open items to Alex Rivera (EMP_3)." in result.output

        moved = _read(db_file, get_work_items, assignee="EMP_3")
        assert [i["id"] for i in moved] == ["T1", "T2"]
        assert _read(db_file, get_leave_request, request_id)["status"] == "APPROVED"

    def test_critically_stressed_cover_blocks_approval(self, db_file):
        # Marcus's four open items are all overdue, so his score is 100.
        request_id = _pending_request(db_file, "EMP_1")

        result = invoke("--db", db_file, "leave", "approve", request_id,
                        "--reassign-to", "EMP_2")
        assert result.exit_code == 1
        assert "CRITICAL: Marcus Thorne is at critical burnout risk" in result.output
        assert "approved" not in result.output
        assert _read(db_file, get_leave_request, request_id)["status"] == "PENDING"
        assert len(_read(db_file, get_work_items, assignee="EMP_1")) == 2

    def test_requester_cannot_cover_themselves(self, db_file):
        request_id = _pending_request(db_file, "EMP_1")
        result = invoke("--db", db_file, "leave", "approve", request_id,
                        "--reassign-to", "EMP_1")
        assert result.exit_code == 1

    def test_suggested_cover_is_safe_teammate(self, db_file):
        conn = get_connection(db_file)
        upsert_worker(conn, {"id": "EMP_4", "name": "Priya Nair",
                             "role": "EMPLOYEE", "team": "Team Alpha"})
        conn.close()
        request_id = _pending_request(db_file, "EMP_1")

        result = invoke("--db", db_file, "leave", "approve", request_id,
                        "--suggest-cover")
        assert result.exit_code == 0, result.output
        assert "Handed 2 open items to Priya Nair (EMP_4)." in result.output

    def test_no_safe_teammate_exits_1(self, db_file):
        request_id = _pending_request(db_file, "EMP_1")
        result = invoke("--db", db_file, "leave", "approve", request_id,
                        "--suggest-cover")
        assert result.exit_code == 1
        assert "no safe cover" in result.output
        assert _read(db_file, get_leave_request, request_id)["status"] == "PENDING"


class TestReportCommand:

    def test_without_smtp_reports_failure(self, db_file, monkeypatch):
        monkeypatch.delenv("SMTP_EMAIL", raising=False)
        monkeypatch.delenv("SMTP_PASSWORD", raising=False)
        monkeypatch.setattr("workforce_scoring.cli.load_dotenv", lambda: None)

        result = invoke("--db", db_file, "report",
                        "--recipient", "lead@example.com")
        assert result.exit_code == 0, result.output
        assert "Failed to send email" in result.output
