"""xtask CLI - database setup, administrator bootstrap and serving."""

from __future__ import annotations

import asyncio
import logging

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import database
from .config import settings
from .constants import ADMIN_SENIORITY, CATEGORIES
from .errors import XTaskError

app = typer.Typer(
    name="xtask",
    help="xtask task tracker - database setup, admin bootstrap and server",
    no_args_is_help=True,
)
console = Console()


async def _init_db(drop: bool) -> None:
    from .models import Base

    async with database.engine.begin() as conn:
        if drop:
            sqlite = conn.dialect.name == "sqlite"
            # DROP TABLE on SQLite deletes rows first, which trips the RESTRICT
            # foreign keys. The pragma must be set before any DML.
            if sqlite:
                await conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
            await conn.run_sync(Base.metadata.drop_all)
            if sqlite:
                await conn.exec_driver_sql("PRAGMA foreign_keys=ON")
        await conn.run_sync(Base.metadata.create_all)


async def _create_admin(email: str, name: str, password: str):
    from .services import user_svc

    async with database.async_session_factory() as db:
        return await user_svc.create_user(
            db,
            email=email,
            password=password,
            name=name,
            seniority_level=ADMIN_SENIORITY,
            categories=CATEGORIES,
        )


async def _seed() -> dict[str, int]:
    from .seed import seed_demo_data

    async with database.async_session_factory() as db:
        return await seed_demo_data(db)


@app.command("init-db")
def init_db(
    drop: bool = typer.Option(False, "--drop", help="Drop all tables first (destroys data)"),
):
    """Create the database schema."""
    if drop and not typer.confirm("Drop all tables and data?"):
        raise typer.Exit(1)
    asyncio.run(_init_db(drop))
    console.print(f"[green]Schema ready[/green] at [cyan]{settings.database_url}[/cyan]")


@app.command("create-admin")
def create_admin(
    email: str = typer.Argument(None, help="Admin email (defaults to XTASK_BOOTSTRAP_EMAIL)"),
    name: str = typer.Argument(None, help="Display name (defaults to XTASK_BOOTSTRAP_NAME)"),
    password: str = typer.Option(
        None, "--password", "-p", help="Password (defaults to XTASK_BOOTSTRAP_PASSWORD)"
    ),
):
    """Create a seniority level 1 user with access to every category."""
    email = email or settings.bootstrap_email
    name = name or settings.bootstrap_name
    password = password or settings.bootstrap_password
    if not password:
        password = typer.prompt("Password", hide_input=True, confirmation_prompt=True)

    try:
        user = asyncio.run(_create_admin(email, name, password))
    except XTaskError as exc:
        console.print(f"[red]{exc.message}[/red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[bold]{user.name}[/bold] <{user.email}>\n"
            f"Seniority level {user.seniority_level}, categories: {', '.join(user.category_names)}",
            title="Administrator created",
        )
    )


@app.command("seed")
def seed():
    """Load demo users and tasks into an empty database."""
    try:
        counts = asyncio.run(_seed())
    except RuntimeError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    from .seed import DEMO_PASSWORD, DEMO_USERS

    table = Table(title=f"Seeded {counts['users']} users and {counts['tasks']} tasks")
    table.add_column("Email", style="cyan")
    table.add_column("Name")
    table.add_column("Level", justify="right")
    table.add_column("Categories", style="green")
    for email, name, level, categories in DEMO_USERS:
        table.add_row(email, name, str(level), ", ".join(categories))
    console.print(table)
    console.print(f"All demo accounts use the password [bold]{DEMO_PASSWORD}[/bold]")


@app.command("serve")
def serve(
    port: int = typer.Option(8030, "--port", "-p", help="Port to run on"),
    host: str = typer.Option("127.0.0.1", "--host", help="Host to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the xtask API."""
    import uvicorn

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    console.print(f"[bold cyan]Starting xtask at http://{host}:{port}[/bold cyan]")
    uvicorn.run("xtask.app:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
