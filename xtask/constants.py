"""Store-level enumerations shared by models, services and schemas."""

from __future__ import annotations

CATEGORIES = ("Projects", "Pre-Sales", "Admin", "Miscellaneous")

PRIORITIES = ("high", "medium", "low")
DEFAULT_PRIORITY = "medium"

STATUS_NOT_STARTED = "not started"
STATUS_IN_PROGRESS = "in progress"
STATUS_COMPLETED = "completed"
STATUSES = (STATUS_NOT_STARTED, STATUS_IN_PROGRESS, STATUS_COMPLETED)

# Rank 1 is the administrator tier: manages users and creates root tasks.
ADMIN_SENIORITY = 1


def sql_in_list(values: tuple[str, ...]) -> str:
    """Render values as a quoted SQL IN list for CHECK constraints."""
    return ", ".join("'" + v.replace("'", "''") + "'" for v in values)
