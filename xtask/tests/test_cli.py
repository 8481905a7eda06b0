"""Tests for the xtask operator CLI."""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from typer.testing import CliRunner

from xtask import database
from xtask.cli import app
from xtask.models import Task, User

runner = CliRunner()


@pytest.fixture
def cli_db(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Point the CLI at a throwaway SQLite file."""
    # Each command runs its own event loop, so connections must not be pooled across them.
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}", poolclass=NullPool)
    database.enable_sqlite_foreign_keys(eng)
    monkeypatch.setattr(database, "engine", eng)
    monkeypatch.setattr(
        database,
        "async_session_factory",
        async_sessionmaker(eng, class_=AsyncSession, expire_on_commit=False),
    )
    return eng


def _count(model) -> int:
    async def _run():
        async with database.async_session_factory() as db:
            return (await db.execute(select(func.count(model.id)))).scalar_one()

    return asyncio.run(_run())


def test_init_db_then_seed(cli_db):
    result = runner.invoke(app, ["init-db"])
    assert result.exit_code == 0, result.output
    assert "Schema ready" in result.output

    result = runner.invoke(app, ["seed"])
    assert result.exit_code == 0, result.output
    assert "Seeded 5 users and 14 tasks" in result.output
    assert _count(User) == 5
    assert _count(Task) == 14

    result = runner.invoke(app, ["seed"])
    assert result.exit_code == 1
    assert "already contains users" in result.output


def test_init_db_drop_requires_confirmation(cli_db):
    assert runner.invoke(app, ["init-db"]).exit_code == 0
    assert runner.invoke(app, ["seed"]).exit_code == 0

    result = runner.invoke(app, ["init-db", "--drop"], input="n\n")
    assert result.exit_code == 1
    assert _count(User) == 5

    # Populated tables with RESTRICT foreign keys must still drop cleanly.
    result = runner.invoke(app, ["init-db", "--drop"], input="y\n")
    assert result.exit_code == 0, result.output
    assert _count(User) == 0
    assert _count(Task) == 0

    # Foreign keys are back on and the fresh schema accepts a new seed.
    result = runner.invoke(app, ["seed"])
    assert result.exit_code == 0, result.output
    assert _count(Task) == 14


def test_create_admin(cli_db):
    assert runner.invoke(app, ["init-db"]).exit_code == 0

    args = ["create-admin", "Boss@Example.com", "The Boss", "--password", "s3cret"]
    result = runner.invoke(app, args)
    assert result.exit_code == 0, result.output
    assert "Administrator created" in result.output
    assert "boss@example.com" in result.output

    result = runner.invoke(app, args)
    assert result.exit_code == 1
    assert "Email already registered" in result.output
