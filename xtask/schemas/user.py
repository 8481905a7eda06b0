"""User and auth request bodies."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class RegisterRequest(BaseModel):
    email: str | None = None
    password: str | None = None
    name: str | None = None
    seniority_level: int | None = None


class SeniorityUpdate(BaseModel):
    seniority_level: int | None = None


class CategoriesUpdate(BaseModel):
    categories: list[str] | None = None


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    seniority_level: int
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class UserWithCategories(UserResponse):
    categories: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("category_names", "categories"),
    )
