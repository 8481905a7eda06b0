"""Seniority and ownership rules gating user and task operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from ..constants import ADMIN_SENIORITY
from ..errors import ForbiddenError
from ..security.auth import AuthUser


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str = ""


ALLOW = Decision(True)


def _is_admin(actor: AuthUser) -> bool:
    return actor.seniority_level == ADMIN_SENIORITY


def _admin_only(reason: str) -> Callable[[AuthUser, Any], Decision]:
    def _rule(actor: AuthUser, resource: Any) -> Decision:
        return ALLOW if _is_admin(actor) else Decision(False, reason)

    return _rule


def _creator_only(reason: str) -> Callable[[AuthUser, Any], Decision]:
    def _rule(actor: AuthUser, task: Any) -> Decision:
        return ALLOW if task.created_by == actor.id else Decision(False, reason)

    return _rule


def _assignee_only(reason: str) -> Callable[[AuthUser, Any], Decision]:
    def _rule(actor: AuthUser, task: Any) -> Decision:
        return ALLOW if task.assigned_to == actor.id else Decision(False, reason)

    return _rule


def _can_assign(actor: AuthUser, assignee: Any) -> Decision:
    # Delegation only flows sideways or down: lower number is more senior.
    if assignee.seniority_level >= actor.seniority_level:
        return ALLOW
    return Decision(False, "Cannot assign tasks to more senior users")


RULES: dict[str, Callable[[AuthUser, Any], Decision]] = {
    "user.register": _admin_only("Only senior executives can create users"),
    "user.manage": _admin_only("Only senior executives can manage users"),
    "user.manage_categories": _admin_only("Only senior executives can manage user categories"),
    "user.delete": _admin_only("Only senior executives can delete users"),
    "task.create_root": _admin_only("Only senior executives can create top-level tasks"),
    "task.add_subtask": _assignee_only("You can only add subtasks to tasks assigned to you"),
    "task.assign": _can_assign,
    "task.edit": _creator_only("You can only edit tasks you created"),
    "task.delete": _creator_only("You can only delete tasks you created"),
    "task.set_status": _assignee_only("Only the assignee can change task status"),
}


def evaluate(operation: str, actor: AuthUser, resource: Any = None) -> Decision:
    """Decide whether ``actor`` may perform ``operation`` on ``resource``.

    Unknown operations are denied.
    """
    rule = RULES.get(operation)
    if rule is None:
        return Decision(False, f"Unknown operation '{operation}'")
    return rule(actor, resource)


def enforce(operation: str, actor: AuthUser, resource: Any = None) -> None:
    """Raise ForbiddenError unless ``evaluate`` allows the operation."""
    decision = evaluate(operation, actor, resource)
    if not decision.allowed:
        raise ForbiddenError(decision.reason)
