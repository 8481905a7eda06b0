"""Task model."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..constants import (
    CATEGORIES,
    DEFAULT_PRIORITY,
    PRIORITIES,
    STATUS_NOT_STARTED,
    STATUSES,
    sql_in_list,
)
from .base import Base, TimestampMixin, UUIDMixin


class Task(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "task"
    __table_args__ = (
        CheckConstraint(f"priority IN ({sql_in_list(PRIORITIES)})", name="ck_task_priority"),
        CheckConstraint(f"status IN ({sql_in_list(STATUSES)})", name="ck_task_status"),
        CheckConstraint(
            f"category IS NULL OR category IN ({sql_in_list(CATEGORIES)})",
            name="ck_task_category",
        ),
    )

    title: Mapped[str] = mapped_column(String(300))
    description: Mapped[str | None] = mapped_column(Text, default=None)
    start_date: Mapped[date | None] = mapped_column(Date, default=None, index=True)
    due_date: Mapped[date | None] = mapped_column(Date, default=None, index=True)
    priority: Mapped[str] = mapped_column(String(20), default=DEFAULT_PRIORITY, index=True)
    status: Mapped[str] = mapped_column(String(20), default=STATUS_NOT_STARTED, index=True)
    category: Mapped[str | None] = mapped_column(String(50), default=None, index=True)  # root tasks only
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)

    created_by: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("user_account.id", ondelete="RESTRICT"), index=True
    )
    assigned_to: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("user_account.id", ondelete="RESTRICT"), index=True
    )
    parent_task_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("task.id", ondelete="RESTRICT"), default=None, index=True
    )

    # Relationships
    creator: Mapped["User"] = relationship(foreign_keys=[created_by], lazy="joined")  # noqa: F821
    assignee: Mapped["User"] = relationship(foreign_keys=[assigned_to], lazy="joined")  # noqa: F821

    def __repr__(self) -> str:
        return f"<Task {self.title!r} ({self.status})>"
