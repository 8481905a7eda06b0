"""Pure helpers for task hierarchies.

Everything here works on in-memory objects exposing ``id``,
``parent_task_id`` and ``status`` (ORM rows, SQLAlchemy ``Row`` tuples or
plain test doubles), so it can be exercised without a database.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable

from ..constants import STATUS_COMPLETED

# Upper bound for walks that follow parent links; a sane hierarchy is far shallower.
MAX_DEPTH = 1000


@dataclass
class TaskNode:
    task: Any
    subtasks: list[TaskNode] = field(default_factory=list)

    @property
    def id(self) -> uuid.UUID:
        return self.task.id

    @property
    def status(self) -> str:
        return self.task.status


def build_forest(tasks: Iterable[Any]) -> list[TaskNode]:
    """Link a flat collection of tasks into a forest.

    A task whose parent is not part of ``tasks`` becomes a root of the
    returned forest, even if that parent exists in the store. Input order is
    preserved both among roots and among siblings.
    """
    items = list(tasks)
    nodes: dict[uuid.UUID, TaskNode] = {}
    for task in items:
        nodes[task.id] = TaskNode(task)

    roots: list[TaskNode] = []
    for task in items:
        node = nodes[task.id]
        parent = nodes.get(task.parent_task_id) if task.parent_task_id else None
        if parent is not None and parent is not node:
            parent.subtasks.append(node)
        else:
            roots.append(node)
    return roots


def all_descendants_completed(node: TaskNode) -> bool:
    """True when every node below ``node`` is completed.

    Depth-first, stops at the first incomplete node. A node without
    subtasks is vacuously complete. The node's own status is not checked.
    """
    stack = list(reversed(node.subtasks))
    seen: set[uuid.UUID] = {node.id}
    while stack:
        current = stack.pop()
        if current.id in seen:
            continue
        seen.add(current.id)
        if current.status != STATUS_COMPLETED:
            return False
        stack.extend(reversed(current.subtasks))
    return True


async def ancestor_chain(
    start_parent_id: uuid.UUID | None,
    lookup: Callable[[uuid.UUID], Awaitable[Any | None]],
    max_depth: int = MAX_DEPTH,
) -> list[Any]:
    """Follow parent links upward from ``start_parent_id``.

    ``lookup`` resolves one id to a row (or None). Returns ancestors nearest
    first. Stops at a missing row, a repeated id or after ``max_depth`` hops.
    """
    chain: list[Any] = []
    visited: set[uuid.UUID] = set()
    current_id = start_parent_id
    while current_id is not None and current_id not in visited and len(chain) < max_depth:
        visited.add(current_id)
        row = await lookup(current_id)
        if row is None:
            break
        chain.append(row)
        current_id = row.parent_task_id
    return chain


def breadcrumb_from_chain(chain: list[Any]) -> list[dict]:
    """Turn a nearest-first ancestor chain into a root-first breadcrumb."""
    return [{"id": str(row.id), "title": row.title} for row in reversed(chain)]
