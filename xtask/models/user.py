"""User accounts and their category memberships."""

from __future__ import annotations

import uuid

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..constants import CATEGORIES, sql_in_list
from .base import Base, TimestampMixin, UUIDMixin


class User(UUIDMixin, TimestampMixin, Base):
    """A person who creates, receives and completes tasks."""

    __tablename__ = "user_account"
    __table_args__ = (
        CheckConstraint("seniority_level >= 1", name="ck_user_account_seniority"),
    )

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200))
    password_hash: Mapped[str] = mapped_column(String(255))
    seniority_level: Mapped[int] = mapped_column(Integer, index=True)

    categories: Mapped[list[UserCategory]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="UserCategory.category",
    )

    @property
    def category_names(self) -> list[str]:
        return sorted(c.category for c in self.categories)

    def __repr__(self) -> str:
        return f"<User {self.email!r} (level {self.seniority_level})>"


class UserCategory(UUIDMixin, Base):
    """Grants a user visibility of root tasks in one category."""

    __tablename__ = "user_category"
    __table_args__ = (
        UniqueConstraint("user_id", "category", name="uq_user_category_user_category"),
        CheckConstraint(
            f"category IN ({sql_in_list(CATEGORIES)})", name="ck_user_category_category"
        ),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("user_account.id", ondelete="CASCADE"), index=True
    )
    category: Mapped[str] = mapped_column(String(50))

    user: Mapped[User] = relationship(back_populates="categories")

    def __repr__(self) -> str:
        return f"<UserCategory {self.category!r}>"
