"""Task request bodies and response shaping."""

from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, field_validator

from ..models import Task
from ..services.task_tree import TaskNode


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class TaskCreate(BaseModel):
    title: str | None = None
    description: str | None = None
    start_date: date | None = None
    due_date: date | None = None
    priority: str | None = None
    assigned_to: uuid.UUID | None = None
    parent_task_id: uuid.UUID | None = None
    category: str | None = None

    # HTML forms send "" for an untouched date or select.
    _blank_ids_and_dates = field_validator(
        "start_date", "due_date", "assigned_to", "parent_task_id", mode="before"
    )(_blank_to_none)


class TaskUpdate(BaseModel):
    """Partial update: only fields present in the body are applied."""

    title: str | None = None
    description: str | None = None
    start_date: date | None = None
    due_date: date | None = None
    priority: str | None = None
    assigned_to: uuid.UUID | None = None
    category: str | None = None

    _blank_ids_and_dates = field_validator(
        "start_date", "due_date", "assigned_to", mode="before"
    )(_blank_to_none)


class StatusUpdate(BaseModel):
    status: str | None = None


def _id(value: uuid.UUID | None) -> str | None:
    return str(value) if value else None


def serialize_task(task: Task) -> dict:
    creator = task.creator
    assignee = task.assignee
    return {
        "id": str(task.id),
        "title": task.title,
        "description": task.description,
        "start_date": task.start_date,
        "due_date": task.due_date,
        "priority": task.priority,
        "status": task.status,
        "category": task.category,
        "created_by": _id(task.created_by),
        "assigned_to": _id(task.assigned_to),
        "parent_task_id": _id(task.parent_task_id),
        "created_at": task.created_at,
        "completed_at": task.completed_at,
        "creator_name": creator.name if creator else None,
        "creator_seniority": creator.seniority_level if creator else None,
        "assignee_name": assignee.name if assignee else None,
        "assignee_seniority": assignee.seniority_level if assignee else None,
    }


def serialize_node(node: TaskNode) -> dict:
    data = serialize_task(node.task)
    data["subtasks"] = [serialize_node(child) for child in node.subtasks]
    return data


def serialize_forest(forest: list[TaskNode]) -> list[dict]:
    return [serialize_node(node) for node in forest]
