"""Tests for the pypyr steps and the weekly pipeline."""

import sqlite3
from unittest.mock import patch

import pytest

from workforce_scoring import PACKAGE_DIR
from workforce_scoring.db.manager import (
    get_connection,
    get_workers,
    init_db,
    insert_work_items,
    upsert_worker,
)
from workforce_scoring.steps import (
    db_init,
    generate_report,
    score_team,
    send_email,
)


def _write_roster(conn, roster):
    for worker in roster["workers"]:
        upsert_worker(conn, worker)
    insert_work_items(conn, roster["items"])


@pytest.fixture(autouse=True)
def no_recipient(monkeypatch):
    monkeypatch.delenv("RECIPIENT_EMAIL", raising=False)


class TestDbInitStep:

    def test_sets_connection(self, tmp_path):
        db_path = str(tmp_path / "data" / "workforce.db")
        context = {"db_path": db_path}
        db_init.run_step(context)
        assert context["db_path"] == db_path
        assert isinstance(context["conn"], sqlite3.Connection)
        assert (tmp_path / "data" / "workforce.db").exists()
        context["conn"].close()

    def test_reuses_existing_connection(self, roster):
        conn = get_connection(":memory:")
        init_db(conn)
        _write_roster(conn, roster)
        context = {"conn": conn, "db_path": ":memory:"}

        db_init.run_step(context)
        assert context["conn"] is conn
        assert len(get_workers(conn, role="EMPLOYEE")) == 3
        conn.close()

    def test_path_from_environment(self, tmp_path, monkeypatch):
        db_path = str(tmp_path / "env" / "workforce.db")
        monkeypatch.setenv("WORKFORCE_DB", db_path)
        context = {}

        db_init.run_step(context)
        assert context["db_path"] == db_path
        assert (tmp_path / "env" / "workforce.db").exists()
        context["conn"].close()

    def test_context_path_beats_environment(self, monkeypatch):
        monkeypatch.setenv("WORKFORCE_DB", "/nonexistent/workforce.db")
        assert db_init.resolve_db_path({"db_path": ":memory:"}) == ":memory:"


class TestWeeklySteps:

    def test_full_chain_without_recipient(self, roster):
        context = {"db_path": ":memory:"}
        db_init.run_step(context)
        _write_roster(context["conn"], roster)

        score_team.run_step(context)
        members = {m["id"]: m for m in context["team_metrics"]}
        assert set(members) == {"EMP_1", "EMP_2", "EMP_3"}
        assert members["EMP_2"]["status"] == "RED"
        assert members["EMP_3"]["status"] == "GREEN"
        assert sum(context["status_counts"].values()) == 3

        generate_report.run_step(context)
        assert context["report"]["red_count"] >= 1
        row = context["conn"].execute("SELECT COUNT(*) AS n FROM reports").fetchone()
        assert row["n"] == 1

        conn = context["conn"]
        send_email.run_step(context)
        assert context["email_sent"] is False
        with pytest.raises(sqlite3.ProgrammingError):
            conn.execute("SELECT 1")

    def test_report_reuses_scores_from_score_team(self, roster):
        context = {"db_path": ":memory:"}
        db_init.run_step(context)
        _write_roster(context["conn"], roster)
        score_team.run_step(context)

        with patch("workforce_scoring.reporting.composer.team_metrics",
                   side_effect=AssertionError("team scored twice")):
            generate_report.run_step(context)

        report = context["report"]
        assert report["red_count"] == context["status_counts"]["RED"]
        assert report["yellow_count"] == context["status_counts"]["YELLOW"]
        assert report["green_count"] == context["status_counts"]["GREEN"]
        assert "Marcus Thorne" in report["html_body"]
        context["conn"].close()

    def test_team_filter(self, roster):
        context = {"db_path": ":memory:", "teams": ["Team Beta"]}
        db_init.run_step(context)
        _write_roster(context["conn"], roster)

        score_team.run_step(context)
        assert [m["id"] for m in context["team_metrics"]] == ["EMP_3"]
        context["conn"].close()

    def test_successful_send_marks_report(self, tmp_path, roster):
        db_path = str(tmp_path / "workforce.db")
        context = {"db_path": db_path, "recipient_email": "lead@example.com"}
        db_init.run_step(context)
        _write_roster(context["conn"], roster)
        generate_report.run_step(context)

        with patch("workforce_scoring.steps.send_email.send_email",
                   return_value=True) as mock_send:
            send_email.run_step(context)

        assert context["email_sent"] is True
        assert mock_send.call_args[0][0] == "lead@example.com"

        conn = get_connection(db_path)
        row = conn.execute("SELECT sent_at FROM reports").fetchone()
        conn.close()
        assert row["sent_at"] is not None

    def test_send_without_report(self):
        context = {}
        send_email.run_step(context)
        assert context["email_sent"] is False


class TestWeeklyPipeline:

    def test_runs_through_pypyr(self, tmp_path, roster):
        from pypyr import pipelinerunner

        db_path = str(tmp_path / "workforce.db")
        conn = get_connection(db_path)
        init_db(conn)
        _write_roster(conn, roster)
        conn.close()

        context = pipelinerunner.run(
            pipeline_name=str(PACKAGE_DIR / "pipelines" / "weekly_wellness"),
            dict_in={"db_path": db_path, "teams": []},
        )
        assert context["email_sent"] is False

        conn = get_connection(db_path)
        row = conn.execute("SELECT COUNT(*) AS n FROM reports").fetchone()
        conn.close()
        assert row["n"] == 1
