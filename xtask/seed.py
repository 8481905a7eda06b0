"""Demo users and a small task tree for local development."""

from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .constants import CATEGORIES, STATUS_COMPLETED
from .models import Task, User, UserCategory
from .models.base import utcnow
from .security.auth import hash_password_async

DEMO_PASSWORD = "password123"

DEMO_USERS = [
    # (email, name, seniority_level, categories)
    ("ceo@example.com", "Alice Chen", 1, list(CATEGORIES)),
    ("manager1@example.com", "Bob Martinez", 2, ["Projects", "Pre-Sales"]),
    ("manager2@example.com", "Carol Johnson", 2, ["Admin", "Miscellaneous"]),
    ("dev1@example.com", "David Kim", 3, ["Projects", "Admin"]),
    ("dev2@example.com", "Emma Wilson", 3, ["Projects", "Pre-Sales", "Miscellaneous"]),
]

# Each entry: title, description, start offset, due offset, priority, status,
# creator, assignee, category (roots only), subtasks.
DEMO_TASKS = [
    {
        "title": "Q1 Product Launch",
        "description": "Complete all preparations for the Q1 product launch.",
        "start": -10, "due": 30, "priority": "high", "status": "in progress",
        "creator": "Alice Chen", "assignee": "Bob Martinez", "category": "Projects",
        "subtasks": [
            {
                "title": "Backend API Development",
                "description": "Develop the REST APIs for the new product features.",
                "start": -8, "due": 14, "priority": "high", "status": "in progress",
                "creator": "Bob Martinez", "assignee": "David Kim",
                "subtasks": [
                    {
                        "title": "User Authentication API",
                        "description": "Implement token-based authentication endpoints.",
                        "start": -7, "due": 5, "priority": "high", "status": "completed",
                        "creator": "David Kim", "assignee": "David Kim",
                    },
                    {
                        "title": "Product Catalog API",
                        "description": "Build CRUD endpoints for product management.",
                        "start": -5, "due": -2, "priority": "high", "status": "in progress",
                        "creator": "David Kim", "assignee": "David Kim",
                    },
                ],
            },
            {
                "title": "Frontend Development",
                "description": "Build UI components for the new product pages.",
                "start": -5, "due": 20, "priority": "high", "status": "in progress",
                "creator": "Bob Martinez", "assignee": "Emma Wilson",
                "subtasks": [
                    {
                        "title": "Product List Page",
                        "description": "Responsive product listing with filters and search.",
                        "start": 0, "due": 10, "priority": "medium", "status": "not started",
                        "creator": "Emma Wilson", "assignee": "Emma Wilson",
                    },
                ],
            },
        ],
    },
    {
        "title": "Security Audit",
        "description": "Conduct a security review of all systems.",
        "start": -15, "due": -5, "priority": "high", "status": "in progress",
        "creator": "Alice Chen", "assignee": "Carol Johnson", "category": "Admin",
        "subtasks": [
            {
                "title": "Penetration Testing",
                "description": "Perform penetration testing on production systems.",
                "start": -14, "due": -3, "priority": "high", "status": "completed",
                "creator": "Carol Johnson", "assignee": "David Kim",
            },
            {
                "title": "Code Review",
                "description": "Review the codebase for security vulnerabilities.",
                "start": -10, "due": 3, "priority": "medium", "status": "not started",
                "creator": "Carol Johnson", "assignee": "Emma Wilson",
            },
        ],
    },
    {
        "title": "Documentation Update",
        "description": "Update technical documentation for the new release.",
        "start": 5, "due": 25, "priority": "low", "status": "not started",
        "creator": "Bob Martinez", "assignee": "Emma Wilson", "category": "Miscellaneous",
    },
    {
        "title": "Database Optimization",
        "description": "Optimize database queries and indexes for better performance.",
        "start": -3, "due": 15, "priority": "medium", "status": "not started",
        "creator": "Alice Chen", "assignee": "Carol Johnson", "category": "Admin",
        "subtasks": [
            {
                "title": "Query Analysis",
                "description": "Analyze slow queries and identify optimization opportunities.",
                "start": -2, "due": 7, "priority": "medium", "status": "in progress",
                "creator": "Carol Johnson", "assignee": "David Kim",
            },
        ],
    },
    {
        "title": "Client Demo Preparation",
        "description": "Prepare demo environment and materials for a client presentation.",
        "start": -2, "due": 10, "priority": "high", "status": "in progress",
        "creator": "Alice Chen", "assignee": "Bob Martinez", "category": "Pre-Sales",
        "subtasks": [
            {
                "title": "Demo Environment Setup",
                "description": "Set up an isolated demo environment with sample data.",
                "start": 0, "due": 5, "priority": "high", "status": "not started",
                "creator": "Bob Martinez", "assignee": "David Kim",
            },
        ],
    },
]


async def seed_demo_data(db: AsyncSession, today: date | None = None) -> dict[str, int]:
    """Insert demo users and tasks. Refuses to run against a non-empty store."""
    existing = (await db.execute(select(func.count(User.id)))).scalar_one()
    if existing:
        raise RuntimeError("Database already contains users; seed only runs on an empty store")

    today = today or date.today()
    users: dict[str, User] = {}
    for email, name, level, categories in DEMO_USERS:
        user = User(
            email=email,
            name=name,
            seniority_level=level,
            password_hash=await hash_password_async(DEMO_PASSWORD),
            categories=[UserCategory(category=c) for c in categories],
        )
        db.add(user)
        users[name] = user
    await db.flush()

    count = 0
    stack = [(entry, None) for entry in reversed(DEMO_TASKS)]
    while stack:
        entry, parent = stack.pop()
        task = Task(
            title=entry["title"],
            description=entry["description"],
            start_date=today + timedelta(days=entry["start"]),
            due_date=today + timedelta(days=entry["due"]),
            priority=entry["priority"],
            status=entry["status"],
            completed_at=utcnow() if entry["status"] == STATUS_COMPLETED else None,
            category=None if parent else entry.get("category"),
            created_by=users[entry["creator"]].id,
            assigned_to=users[entry["assignee"]].id,
            parent_task_id=parent.id if parent else None,
        )
        db.add(task)
        await db.flush()
        count += 1
        stack.extend((child, task) for child in reversed(entry.get("subtasks", [])))

    await db.commit()
    return {"users": len(users), "tasks": count}
