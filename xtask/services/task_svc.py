"""Task service: visibility, hierarchy, status lifecycle and authorization."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from sqlalchemy import and_, case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..constants import CATEGORIES, DEFAULT_PRIORITY, PRIORITIES, STATUS_COMPLETED, STATUSES
from ..errors import BadRequestError, NotFoundError
from ..models import Task, User
from ..models.base import utcnow
from ..security.auth import AuthUser
from . import policy, user_svc
from .task_tree import (
    TaskNode,
    all_descendants_completed,
    ancestor_chain,
    breadcrumb_from_chain,
    build_forest,
)

logger = logging.getLogger(__name__)

_PRIORITY_RANK = case(
    {"high": 0, "medium": 1, "low": 2},
    value=Task.priority,
    else_=3,
)


@dataclass
class TaskDetail:
    task: Task
    breadcrumb: list[dict] = field(default_factory=list)
    subtasks: list[Task] = field(default_factory=list)


def _coerce_date(value: object) -> date | None:
    """Coerce common date representations into a Python `date`.

    Postgres expects a real date object for Date columns; strings that may
    "work" in SQLite will fail when bound by asyncpg.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        # Preserve day in a stable timezone.
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        # Common HTML date input format: YYYY-MM-DD
        try:
            return date.fromisoformat(raw[:10])
        except ValueError:
            pass
        # ISO datetime string.
        try:
            return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
        except ValueError:
            raise BadRequestError(f"Invalid date: {raw}") from None

    raise BadRequestError(f"Invalid date: {value!r}")


def _check_category(category: object) -> None:
    if category is not None and category not in CATEGORIES:
        raise BadRequestError("Invalid category")


def _check_priority(priority: object) -> None:
    if priority not in PRIORITIES:
        raise BadRequestError("Invalid priority. Must be: high, medium, or low")


def _check_start_after_parent(start_date: date | None, parent: Task) -> None:
    if start_date and parent.start_date and start_date < parent.start_date:
        raise BadRequestError(
            "Start date cannot be before parent task's start date "
            f"({parent.start_date.isoformat()})"
        )


async def get_task(db: AsyncSession, task_id: uuid.UUID) -> Task | None:
    result = await db.execute(select(Task).where(Task.id == task_id))
    return result.scalar_one_or_none()


async def fetch_task(db: AsyncSession, task_id: uuid.UUID, what: str = "Task") -> Task:
    task = await get_task(db, task_id)
    if not task:
        raise NotFoundError(f"{what} not found")
    return task


async def _reload(db: AsyncSession, task_id: uuid.UUID) -> Task:
    """Re-read a task so creator/assignee reflect the committed row."""
    stmt = select(Task).where(Task.id == task_id).execution_options(populate_existing=True)
    return (await db.execute(stmt)).scalar_one()


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


async def list_tasks(
    db: AsyncSession,
    actor: AuthUser,
    *,
    status: str | None = None,
    priority: str | None = None,
    assignee: uuid.UUID | None = None,
    search: str | None = None,
) -> list[TaskNode]:
    """Forest of tasks visible through the actor's categories.

    Category gating applies to root tasks only; every subtask row is
    selected and then attached under its root during tree assembly.
    """
    categories = await user_svc.get_categories(db, actor.id)
    if not categories:
        return []

    stmt = select(Task).where(
        or_(
            and_(Task.parent_task_id.is_(None), Task.category.in_(categories)),
            Task.parent_task_id.is_not(None),
        )
    )
    if status:
        stmt = stmt.where(Task.status == status)
    if priority:
        stmt = stmt.where(Task.priority == priority)
    if assignee:
        stmt = stmt.where(Task.assigned_to == assignee)
    if search:
        # Plain substring match: % and _ in the input are literal.
        stmt = stmt.where(
            or_(
                Task.title.icontains(search, autoescape=True),
                Task.description.icontains(search, autoescape=True),
            )
        )
    stmt = stmt.order_by(Task.created_at.desc())

    tasks = list((await db.execute(stmt)).scalars().all())
    forest = build_forest(tasks)
    # Subtasks whose parent was filtered out surface as roots without a
    # category; they are dropped here along with any other foreign root.
    allowed = set(categories)
    return [node for node in forest if node.task.category in allowed]


def _by_due_then_priority(stmt):
    return stmt.order_by(Task.due_date.asc().nullslast(), _PRIORITY_RANK, Task.created_at.asc())


async def list_my_tasks(db: AsyncSession, actor: AuthUser) -> list[TaskNode]:
    stmt = _by_due_then_priority(select(Task).where(Task.assigned_to == actor.id))
    tasks = list((await db.execute(stmt)).scalars().all())
    return build_forest(tasks)


async def list_team_tasks(db: AsyncSession, actor: AuthUser) -> list[TaskNode]:
    """Tasks assigned to anyone more junior than the actor."""
    stmt = _by_due_then_priority(
        select(Task)
        .join(User, Task.assigned_to == User.id)
        .where(User.seniority_level > actor.seniority_level)
    )
    tasks = list((await db.execute(stmt)).scalars().all())
    return build_forest(tasks)


async def get_task_detail(db: AsyncSession, actor: AuthUser, task_id: uuid.UUID) -> TaskDetail:
    task = await fetch_task(db, task_id)

    async def _lookup(ancestor_id: uuid.UUID):
        stmt = select(Task.id, Task.title, Task.parent_task_id).where(Task.id == ancestor_id)
        return (await db.execute(stmt)).one_or_none()

    chain = await ancestor_chain(task.parent_task_id, _lookup)
    subtasks = list(
        (
            await db.execute(
                select(Task).where(Task.parent_task_id == task.id).order_by(Task.created_at.asc())
            )
        )
        .scalars()
        .all()
    )
    return TaskDetail(task=task, breadcrumb=breadcrumb_from_chain(chain), subtasks=subtasks)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def create_task(db: AsyncSession, actor: AuthUser, fields: dict) -> Task:
    title = (fields.get("title") or "").strip()
    assigned_to = fields.get("assigned_to")
    if not title or not assigned_to:
        raise BadRequestError("Title and assignee are required")

    category = fields.get("category")
    _check_category(category)
    priority = fields.get("priority") or DEFAULT_PRIORITY
    _check_priority(priority)
    start_date = _coerce_date(fields.get("start_date"))
    due_date = _coerce_date(fields.get("due_date"))

    parent_id = fields.get("parent_task_id")
    if parent_id is None:
        policy.enforce("task.create_root", actor)
    else:
        parent = await fetch_task(db, parent_id, "Parent task")
        policy.enforce("task.add_subtask", actor, parent)
        _check_start_after_parent(start_date, parent)

    assignee = await user_svc.fetch_user(db, assigned_to, "Assignee")
    policy.enforce("task.assign", actor, assignee)

    task = Task(
        title=title,
        description=fields.get("description") or None,
        start_date=start_date,
        due_date=due_date,
        priority=priority,
        created_by=actor.id,
        assigned_to=assignee.id,
        parent_task_id=parent_id,
        # Only root tasks carry a category.
        category=None if parent_id else category,
    )
    db.add(task)
    await db.commit()
    return await _reload(db, task.id)


async def update_task(
    db: AsyncSession,
    actor: AuthUser,
    task_id: uuid.UUID,
    fields: dict,
) -> Task:
    """Apply a partial update. Keys absent from ``fields`` keep their value."""
    task = await fetch_task(db, task_id)
    policy.enforce("task.edit", actor, task)

    changes: dict = {}
    if "title" in fields:
        title = (fields["title"] or "").strip()
        if not title:
            raise BadRequestError("Title cannot be empty")
        changes["title"] = title
    if "description" in fields:
        changes["description"] = fields["description"]
    if "category" in fields:
        _check_category(fields["category"])
        changes["category"] = fields["category"]
    if "priority" in fields:
        _check_priority(fields["priority"])
        changes["priority"] = fields["priority"]
    if "due_date" in fields:
        changes["due_date"] = _coerce_date(fields["due_date"])
    if "start_date" in fields:
        start_date = _coerce_date(fields["start_date"])
        if start_date and task.parent_task_id:
            parent = await get_task(db, task.parent_task_id)
            if parent:
                _check_start_after_parent(start_date, parent)
        changes["start_date"] = start_date
    if "assigned_to" in fields:
        assigned_to = fields["assigned_to"]
        if not assigned_to:
            raise BadRequestError("Assignee is required")
        if assigned_to != task.assigned_to:
            assignee = await user_svc.fetch_user(db, assigned_to, "Assignee")
            policy.enforce("task.assign", actor, assignee)
        changes["assigned_to"] = assigned_to

    if task.parent_task_id:
        changes["category"] = None

    for key, value in changes.items():
        setattr(task, key, value)
    await db.commit()
    return await _reload(db, task.id)


async def set_status(
    db: AsyncSession,
    actor: AuthUser,
    task_id: uuid.UUID,
    status: str | None,
) -> Task:
    task = await fetch_task(db, task_id)
    policy.enforce("task.set_status", actor, task)
    if status not in STATUSES:
        raise BadRequestError("Invalid status. Must be: not started, in progress, or completed")

    task.status = status
    task.completed_at = utcnow() if status == STATUS_COMPLETED else None
    await db.commit()

    if status == STATUS_COMPLETED:
        await propagate_completion(db, task)
    return await _reload(db, task.id)


async def load_subtree(db: AsyncSession, root: Task) -> TaskNode:
    """Load ``root`` and all of its descendants (id, parent, status only)."""
    nodes = {root.id: TaskNode(root)}
    frontier = [root.id]
    while frontier:
        stmt = select(Task.id, Task.parent_task_id, Task.status).where(
            Task.parent_task_id.in_(frontier)
        )
        level = [row for row in (await db.execute(stmt)).all() if row.id not in nodes]
        for row in level:
            nodes[row.id] = TaskNode(row)
            # Breadth-first, so the parent is always already indexed.
            nodes[row.parent_task_id].subtasks.append(nodes[row.id])
        frontier = [row.id for row in level]
    return nodes[root.id]


async def propagate_completion(db: AsyncSession, task: Task) -> list[uuid.UUID]:
    """Complete ancestors whose whole subtree is now completed.

    Walks upward from ``task``'s parent and stops at the first ancestor with
    an incomplete descendant. Each ancestor is committed on its own; there is
    no transaction around the walk. Returns the ids that were completed.
    """

    async def _lookup(ancestor_id: uuid.UUID) -> Task | None:
        return await get_task(db, ancestor_id)

    completed: list[uuid.UUID] = []
    for ancestor in await ancestor_chain(task.parent_task_id, _lookup):
        if ancestor.id == task.id:
            break
        subtree = await load_subtree(db, ancestor)
        if not all_descendants_completed(subtree):
            break
        if ancestor.status != STATUS_COMPLETED:
            ancestor.status = STATUS_COMPLETED
            ancestor.completed_at = utcnow()
            await db.commit()
            completed.append(ancestor.id)
            logger.info("Auto-completed task %s (%s)", ancestor.id, ancestor.title)
    return completed


async def delete_task(db: AsyncSession, actor: AuthUser, task_id: uuid.UUID) -> None:
    task = await fetch_task(db, task_id)
    policy.enforce("task.delete", actor, task)

    child_count = (
        await db.execute(select(func.count(Task.id)).where(Task.parent_task_id == task.id))
    ).scalar_one()
    if child_count:
        raise BadRequestError("Cannot delete task with subtasks. Delete subtasks first.")

    await db.delete(task)
    await db.commit()
    logger.info("%s deleted task %s (%s)", actor.email, task.id, task.title)
