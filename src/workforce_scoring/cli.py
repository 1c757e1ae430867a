"""Click CLI for workforce-scoring.

Commands:
    seed      -- Populate the database with a demo organisation.
    stress    -- Show one worker's stress score and breakdown.
    conflicts -- Check a proposed leave window against open work items.
    suggest   -- Rank employees for a new task.
    team      -- Stress overview for one or more teams.
    leave     -- Request, approve or reject leave.
    report    -- Generate and send the weekly wellness digest.
    pipeline  -- Invoke the pypyr weekly pipeline.
"""

from __future__ import annotations

import logging
import os

import click
from dotenv import load_dotenv

from workforce_scoring import DEFAULT_DB_PATH

logger = logging.getLogger("workforce_scoring.cli")

_STATUS_COLOURS = {"RED": "red", "YELLOW": "yellow", "GREEN": "green"}


def _resolve_db_path(ctx_db: str | None) -> str:
    """Return the database path from --db flag, env var, or default."""
    if ctx_db:
        return ctx_db
    env_path = os.environ.get("WORKFORCE_DB")
    if env_path:
        return env_path
    return DEFAULT_DB_PATH


def _ensure_db_dir(db_path: str) -> None:
    """Create parent directory for the database file if it does not exist."""
    parent = os.path.dirname(db_path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def _open_db(ctx: click.Context):
    """Open and initialise the database configured on the group."""
    from workforce_scoring.db.manager import get_connection, init_db

    db_path = ctx.obj["db_path"]
    _ensure_db_dir(db_path)
    conn = get_connection(db_path)
    init_db(conn)
    return conn


def _fail(message: str) -> None:
    """Print an error in red and exit with status 1."""
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    raise SystemExit(1)


def _styled_status(status: str) -> str:
    return click.style(status, fg=_STATUS_COLOURS.get(status, "white"), bold=True)


@click.group()
@click.option(
    "--db",
    default=None,
    envvar="WORKFORCE_DB",
    help="Path to the SQLite database file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, db: str | None, verbose: bool) -> None:
    """workforce-scoring: burnout scores, leave conflicts, smart assignment."""
    load_dotenv()
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = _resolve_db_path(db)


@main.command()
@click.option("--seed", "seed_value", default=None, type=int,
              help="Random seed for a reproducible organisation.")
@click.pass_context
def seed(ctx: click.Context, seed_value: int | None) -> None:
    """Populate the database with demo workers, tasks and leave."""
    from workforce_scoring.db.seed import seed_demo_data

    conn = _open_db(ctx)
    try:
        counts = seed_demo_data(conn, seed=seed_value)
    finally:
        conn.close()

    click.echo(
        click.style(
            f"Seeded {counts['workers']} workers, {counts['work_items']} "
            f"work items, {counts['leave_requests']} leave requests.",
            fg="green",
        )
    )


@main.command()
@click.argument("worker_id")
@click.pass_context
def stress(ctx: click.Context, worker_id: str) -> None:
    """Show the stress score for WORKER_ID."""
    from workforce_scoring.db.manager import get_work_items, get_worker
    from workforce_scoring.scoring.stress import compute_stress

    conn = _open_db(ctx)
    try:
        worker = get_worker(conn, worker_id)
        if worker is None:
            _fail(f"unknown worker {worker_id!r}")
        items = get_work_items(conn, assignee=worker_id)
    finally:
        conn.close()

    metrics = compute_stress(items)
    click.echo(
        f"{worker['name']}: {metrics['score']}/100 "
        + _styled_status(metrics["status"])
    )
    click.echo(f"  Active items      : {metrics['active_item_count']}")
    click.echo(f"  Priority sum      : {metrics['sum_priority']}")
    click.echo(f"  Nearest deadline  : {metrics['days_to_nearest_deadline']} days")


@main.command()
@click.argument("worker_id")
@click.option("--start", required=True, help="First day of leave (YYYY-MM-DD).")
@click.option("--end", required=True, help="Last day of leave (YYYY-MM-DD).")
@click.pass_context
def conflicts(ctx: click.Context, worker_id: str, start: str, end: str) -> None:
    """Check a proposed leave window for WORKER_ID against due work."""
    from workforce_scoring.db.manager import get_work_items, get_worker
    from workforce_scoring.scoring.conflicts import check_leave_conflicts
    from workforce_scoring.scoring.dates import parse_date

    if parse_date(start) is None or parse_date(end) is None:
        _fail(f"invalid date range {start!r} - {end!r}")

    conn = _open_db(ctx)
    try:
        if get_worker(conn, worker_id) is None:
            _fail(f"unknown worker {worker_id!r}")
        items = get_work_items(conn, assignee=worker_id)
    finally:
        conn.close()

    found = check_leave_conflicts(items, start, end)
    if not found:
        click.echo(click.style("No conflicts with open work items.", fg="green"))
        return

    click.echo(click.style("Task conflict detected:", fg="yellow", bold=True))
    for message in found:
        click.echo(f"  - {message}")


@main.command()
@click.option("--title", required=True, help="Task title.")
@click.option("--description", default="", help="Task description.")
@click.option("--deadline", required=True, help="Task deadline (YYYY-MM-DD).")
@click.option("--team", "teams", multiple=True,
              help="Only consider employees of this team (repeatable).")
@click.option("--top", default=3, show_default=True, type=int,
              help="Number of suggestions to show.")
@click.pass_context
def suggest(
    ctx: click.Context,
    title: str,
    description: str,
    deadline: str,
    teams: tuple[str, ...],
    top: int,
) -> None:
    """Suggest the best employees for a new task."""
    from workforce_scoring.db.manager import (
        get_leave_requests,
        get_work_items,
        get_workers,
    )
    from workforce_scoring.scoring.ranker import rank_candidates, top_suggestions
    from workforce_scoring.scoring.team import (
        eligible_candidates,
        group_items_by_worker,
        group_leave_windows,
    )

    conn = _open_db(ctx)
    try:
        candidates = eligible_candidates(get_workers(conn), list(teams))
        items_by_worker = group_items_by_worker(get_work_items(conn), candidates)
        leave_by_worker = group_leave_windows(get_leave_requests(conn))
    finally:
        conn.close()

    if not candidates:
        click.echo(click.style("No eligible employees found.", fg="yellow"))
        return

    ranked = rank_candidates(
        title, description, deadline, candidates,
        items_by_worker, leave_by_worker,
    )
    for idx, suggestion in enumerate(top_suggestions(ranked, top), start=1):
        worker = suggestion["worker"]
        click.echo(
            f"{idx}. {worker['name']} ({worker['id']}) - "
            f"{suggestion['match_reason']}, stress {suggestion['stress_score']}"
        )
        if suggestion["conflict_warning"]:
            click.echo(click.style(f"   {suggestion['conflict_warning']}", fg="red"))


@main.command()
@click.option("--team", "teams", multiple=True,
              help="Team name to include (repeatable). Defaults to all teams.")
@click.pass_context
def team(ctx: click.Context, teams: tuple[str, ...]) -> None:
    """Show stress scores for every employee, highest first."""
    from workforce_scoring.db.manager import get_work_items, get_workers
    from workforce_scoring.scoring.team import (
        group_items_by_worker,
        summarize_statuses,
        team_metrics,
    )

    conn = _open_db(ctx)
    try:
        workers = get_workers(conn, role="EMPLOYEE", teams=list(teams))
        items_by_worker = group_items_by_worker(get_work_items(conn), workers)
    finally:
        conn.close()

    members = team_metrics(workers, items_by_worker)
    for member in members:
        name = member["name"]
        if len(name) > 28:
            name = name[:25] + "..."
        click.echo(
            f"  {name:<28} {member.get('team') or '':<14} "
            f"{member['active_item_count']:>3} items  "
            f"{member['stress_score']:>3}  " + _styled_status(member["status"])
        )

    counts = summarize_statuses(members)
    click.echo(
        click.style(f"Red: {counts['RED']}", fg="red")
        + " | "
        + click.style(f"Yellow: {counts['YELLOW']}", fg="yellow")
        + " | "
        + click.style(f"Green: {counts['GREEN']}", fg="green")
    )


@main.group()
def leave() -> None:
    """Request and decide on leave."""


@leave.command("request")
@click.argument("worker_id")
@click.option("--start", required=True, help="First day of leave (YYYY-MM-DD).")
@click.option("--end", required=True, help="Last day of leave (YYYY-MM-DD).")
@click.option("--type", "leave_type", default=None,
              help="Leave category, e.g. 'Sick Leave'. Defaults to Vacation, "
                   "or Burnout for workers in the red zone.")
@click.option("--reason", default=None, help="Reason for the absence.")
@click.pass_context
def leave_request(
    ctx: click.Context,
    worker_id: str,
    start: str,
    end: str,
    leave_type: str | None,
    reason: str | None,
) -> None:
    """Submit a leave request for WORKER_ID."""
    from workforce_scoring.db.manager import (
        get_work_items,
        get_worker,
        submit_leave_request,
    )
    from workforce_scoring.scoring.conflicts import check_leave_conflicts
    from workforce_scoring.scoring.stress import compute_stress

    conn = _open_db(ctx)
    try:
        if get_worker(conn, worker_id) is None:
            _fail(f"unknown worker {worker_id!r}")

        items = get_work_items(conn, assignee=worker_id)
        metrics = compute_stress(items)
        burnout = metrics["status"] == "RED"
        if burnout and not reason:
            reason = "Wellness break due to high stress load."

        for message in check_leave_conflicts(items, start, end):
            click.echo(click.style(f"Warning: {message}", fg="yellow"))

        try:
            request_id = submit_leave_request(
                conn, worker_id, start, end, reason=reason,
                burnout_flag=burnout, leave_type=leave_type,
            )
        except ValueError as exc:
            _fail(str(exc))
    finally:
        conn.close()

    click.echo(click.style(f"Leave request {request_id} submitted.", fg="green"))
    if burnout:
        click.echo(click.style("Flagged as burnout-related.", fg="red"))


def _team_members_for(conn, worker: dict) -> list[dict]:
    """Score the employees sharing *worker*'s team (everyone if teamless)."""
    from workforce_scoring.db.manager import get_work_items, get_workers
    from workforce_scoring.scoring.team import group_items_by_worker, team_metrics

    teams = [worker["team"]] if worker.get("team") else None
    workers = get_workers(conn, role="EMPLOYEE", teams=teams)
    return team_metrics(workers, group_items_by_worker(get_work_items(conn), workers))


def _choose_cover(conn, requester_id: str, cover_id: str | None) -> dict:
    """Return the metrics of the worker taking over, or exit on a refusal."""
    from workforce_scoring.db.manager import get_work_items, get_worker
    from workforce_scoring.scoring.team import (
        check_cover_load,
        group_items_by_worker,
        suggest_cover,
        team_metrics,
    )

    if cover_id is None:
        requester = get_worker(conn, requester_id) or {"id": requester_id}
        cover = suggest_cover(_team_members_for(conn, requester),
                              exclude_id=requester_id)
        if cover is None:
            _fail("no safe cover found in the team; choose one with --reassign-to")
    else:
        if cover_id == requester_id:
            _fail("cannot hand work over to the worker going on leave")
        worker = get_worker(conn, cover_id)
        if worker is None:
            _fail(f"unknown worker {cover_id!r}")
        items = group_items_by_worker(get_work_items(conn), [worker])
        cover = team_metrics([worker], items)[0]

    warning = check_cover_load(cover)
    if warning and warning["level"] == "RED":
        _fail(warning["message"])
    if warning:
        click.echo(click.style(warning["message"], fg="yellow"))
    return cover


@leave.command("approve")
@click.argument("request_id")
@click.option("--reassign-to", "cover_id", default=None,
              help="Hand the requester's open work to this worker.")
@click.option("--suggest-cover", is_flag=True,
              help="Hand open work to the least-loaded safe teammate.")
@click.pass_context
def leave_approve(
    ctx: click.Context,
    request_id: str,
    cover_id: str | None,
    suggest_cover: bool,
) -> None:
    """Approve leave request REQUEST_ID, optionally with a work handover.

    A cover whose stress score is above 95 blocks the approval.
    """
    from workforce_scoring.db.manager import (
        get_leave_request,
        reassign_open_items,
        update_leave_status,
    )

    conn = _open_db(ctx)
    try:
        request = get_leave_request(conn, request_id)
        if request is None:
            _fail(f"unknown leave request {request_id!r}")

        cover = None
        if cover_id or suggest_cover:
            cover = _choose_cover(conn, request["worker_id"], cover_id)

        update_leave_status(conn, request_id, "APPROVED")
        moved = []
        if cover is not None:
            moved = reassign_open_items(conn, request["worker_id"], cover["id"])
    except ValueError as exc:
        _fail(str(exc))
    finally:
        conn.close()

    click.echo(click.style(f"Leave request {request_id} approved.", fg="green"))
    if cover is not None:
        click.echo(f"Handed {len(moved)} open items to {cover['name']} "
                   f"({cover['id']}).")


@leave.command("reject")
@click.argument("request_id")
@click.option("--reason", required=True, help="Why the request was refused.")
@click.pass_context
def leave_reject(ctx: click.Context, request_id: str, reason: str) -> None:
    """Reject leave request REQUEST_ID with a reason."""
    from workforce_scoring.db.manager import update_leave_status

    conn = _open_db(ctx)
    try:
        update_leave_status(conn, request_id, "REJECTED", manager_reason=reason)
    except ValueError as exc:
        _fail(str(exc))
    finally:
        conn.close()
    click.echo(click.style(f"Leave request {request_id} rejected.", fg="green"))


@main.command()
@click.option(
    "--recipient",
    default=None,
    envvar="RECIPIENT_EMAIL",
    help="Email address of the digest recipient.",
)
@click.option("--team", "teams", multiple=True,
              help="Restrict the digest to this team (repeatable).")
@click.pass_context
def report(ctx: click.Context, recipient: str | None,
           teams: tuple[str, ...]) -> None:
    """Generate and send the weekly wellness digest."""
    import datetime

    from workforce_scoring.db.manager import save_report
    from workforce_scoring.reporting.composer import compose_wellness_report
    from workforce_scoring.reporting.sender import send_email

    if not recipient:
        recipient = os.environ.get("RECIPIENT_EMAIL")
    if not recipient:
        _fail("--recipient or RECIPIENT_EMAIL env var required.")

    conn = _open_db(ctx)
    try:
        report_data = compose_wellness_report(conn, teams=list(teams))
        click.echo(
            f"Digest: {report_data['red_count']} red, "
            f"{report_data['yellow_count']} yellow members."
        )

        success = send_email(
            recipient=recipient,
            subject=report_data["subject"],
            html_body=report_data["html_body"],
        )
        save_report(conn, {
            "recipient_email": recipient,
            "red_count": report_data["red_count"],
            "yellow_count": report_data["yellow_count"],
            "green_count": report_data["green_count"],
            "sent_at": datetime.datetime.now().isoformat() if success else None,
            "email_subject": report_data["subject"],
            "email_body": report_data["html_body"],
        })
    finally:
        conn.close()

    if success:
        click.echo(click.style(f"Digest sent to {recipient}.", fg="green"))
    else:
        click.echo(
            click.style("Failed to send email. Check SMTP credentials.", fg="red")
        )


@main.command()
@click.argument("name", type=click.Choice(["weekly"]))
@click.option("--team", "teams", multiple=True,
              help="Restrict the pipeline to this team (repeatable).")
@click.pass_context
def pipeline(ctx: click.Context, name: str, teams: tuple[str, ...]) -> None:
    """Run a full pypyr pipeline."""
    from pypyr import pipelinerunner
    from workforce_scoring import PACKAGE_DIR

    db_path = ctx.obj["db_path"]
    _ensure_db_dir(db_path)

    pipeline_map = {
        "weekly": "weekly_wellness",
    }
    pipeline_path = str(PACKAGE_DIR / "pipelines" / pipeline_map[name])

    click.echo(click.style(f"Running pipeline: {pipeline_map[name]}", fg="cyan"))

    try:
        pipelinerunner.run(
            pipeline_name=pipeline_path,
            dict_in={"db_path": db_path, "teams": list(teams)},
        )
    except Exception as exc:
        logger.error("Pipeline failed: %s", exc)
        _fail(f"pipeline failed: {exc}")

    click.echo(click.style(f"Pipeline '{pipeline_map[name]}' completed.",
                           fg="green"))
