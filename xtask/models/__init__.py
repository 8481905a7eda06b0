"""xtask models - re-exports all models and Base.metadata."""

from .base import Base, UUIDMixin, TimestampMixin
from .user import User, UserCategory
from .task import Task

__all__ = [
    "Base",
    "UUIDMixin",
    "TimestampMixin",
    "User",
    "UserCategory",
    "Task",
]
