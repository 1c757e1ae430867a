"""Populate the store with a demo organisation.

Creates managers, HR specialists, six four-person engineering teams, a
handful of open work items per employee, and one approved leave window
that overlaps the coming week so the conflict warnings have something to
show.
"""

import datetime
import logging
import random
import sqlite3

from workforce_scoring.db.manager import (
    get_leave_requests,
    insert_work_items,
    submit_leave_request,
    update_leave_status,
    upsert_worker,
)

logger = logging.getLogger(__name__)

FIRST_NAMES: list[str] = [
    "Emma", "Liam", "Olivia", "Noah", "Ava", "Oliver", "Isabella", "William",
    "Sophia", "Elijah", "Charlotte", "James", "Amelia", "Benjamin", "Mia",
    "Lucas", "Harper", "Henry", "Evelyn", "Alexander", "Abigail", "Michael",
    "Emily", "Daniel", "Elizabeth", "Jacob", "Mila", "Logan", "Ella", "Jackson",
]

LAST_NAMES: list[str] = [
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller",
    "Davis", "Rodriguez", "Martinez", "Hernandez", "Lopez", "Gonzalez",
    "Wilson", "Anderson", "Thomas", "Taylor", "Moore", "Jackson", "Martin",
]

SKILLS: list[str] = [
    "React", "Node.js", "TypeScript", "Python", "Go", "AWS", "Docker",
    "Kubernetes", "Figma", "UI/UX", "Product Strategy", "Agile", "Scrum",
    "Data Analysis", "Machine Learning", "SQL", "NoSQL", "GraphQL", "DevOps",
    "CI/CD", "Java", "C++", "Rust", "Mobile Dev", "Flutter", "Swift", "Kotlin",
]

TEAM_NAMES: list[str] = ["Alpha", "Beta", "Gamma", "Delta", "Epsilon", "Zeta"]

TASK_VERBS: list[str] = ["Fix", "Update", "Refactor", "Design", "Review"]
TASK_OBJECTS: list[str] = ["API", "Frontend", "Database", "Styles", "Docs"]

EMPLOYEES_PER_TEAM = 4


def seed_demo_data(
    conn: sqlite3.Connection,
    seed: int | None = None,
    today: datetime.date | None = None,
) -> dict:
    """Insert a demo organisation into an initialised database.

    Args:
        conn: An open SQLite connection with the schema applied.
        seed: Seed for the random generator; the same seed always yields
              the same organisation.
        today: Anchor date for deadlines and leave windows.

    Returns:
        A dict with ``workers``, ``work_items`` and ``leave_requests``
        counts.
    """
    rng = random.Random(seed)
    if today is None:
        today = datetime.date.today()

    def make_name() -> str:
        return f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"

    workers: list[dict] = []

    for i in range(1, 4):
        workers.append({
            "id": f"MGR_{i}",
            "name": make_name(),
            "email": f"manager{i}@example.com",
            "role": "MANAGER",
            "department": "Engineering",
            "position": "Engineering Manager",
            "skills": ["Leadership", "Strategy", "Agile"]
                      + rng.sample(SKILLS, 3),
        })

    for i in range(1, 4):
        workers.append({
            "id": f"HR_{i}",
            "name": make_name(),
            "email": f"hr{i}@example.com",
            "role": "HR",
            "department": "People Ops",
            "position": "HR Specialist",
            "skills": ["Recruitment", "Conflict Resolution", "Compliance"],
        })

    employees: list[dict] = []
    for team_name in TEAM_NAMES:
        for i in range(1, EMPLOYEES_PER_TEAM + 1):
            employees.append({
                "id": f"EMP_{team_name}_{i}",
                "name": make_name(),
                "email": f"emp.{team_name.lower()}{i}@example.com",
                "role": "EMPLOYEE",
                "department": "Engineering",
                "team": f"Team {team_name}",
                "position": "Software Engineer",
                "skills": rng.sample(SKILLS, 4),
            })
    workers.extend(employees)

    for worker in workers:
        upsert_worker(conn, worker)

    items: list[dict] = []
    for employee in employees:
        for i in range(rng.randint(2, 3)):
            items.append({
                "id": f"{employee['id']}_T{i + 1}",
                "title": f"{rng.choice(TASK_VERBS)} {rng.choice(TASK_OBJECTS)}",
                "status": rng.choice(["TODO", "IN_PROGRESS"]),
                "priority": rng.randint(1, 5),
                "deadline": today + datetime.timedelta(days=rng.randint(0, 10)),
                "assignee": employee["id"],
            })
    inserted = insert_work_items(conn, items)

    # One approved vacation starting tomorrow for the first employee,
    # unless an earlier seed run already booked it.
    first = employees[0]
    leave_start = today + datetime.timedelta(days=1)
    already_booked = any(
        window["start_date"] == leave_start.isoformat()
        for window in get_leave_requests(conn, worker_id=first["id"])
    )
    leave_created = 0
    if not already_booked:
        request_id = submit_leave_request(
            conn,
            first["id"],
            leave_start,
            today + datetime.timedelta(days=5),
            reason="Vacation",
        )
        update_leave_status(conn, request_id, "APPROVED")
        leave_created = 1

    counts = {
        "workers": len(workers),
        "work_items": inserted,
        "leave_requests": leave_created,
    }
    logger.info(
        "Seeded demo data: %d workers, %d work items, %d leave requests",
        counts["workers"], counts["work_items"], counts["leave_requests"],
    )
    return counts
