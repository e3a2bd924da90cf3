"""Postboard CLI — run the server and manage the database.

Usage:
    postboard serve --port 8000                      # Run the API with uvicorn
    postboard init-db                                # Create tables
    postboard create-user --username root \\
        --email root@example.com --password s3cretpass --role admin

Admin accounts can only be created here; POST /users always creates
role "user".
"""

from __future__ import annotations

import asyncio
import concurrent.futures
from typing import Optional

import click

from postboard.config import settings


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


async def _init_db(database_url: str) -> None:
    from postboard.db.engine import make_engine
    from postboard.db.models import Base

    engine = make_engine(database_url)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()


async def _create_user(database_url: str, **fields) -> dict:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from postboard.db.engine import make_engine
    from postboard.services.user_service import UserService

    engine = make_engine(database_url)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with factory() as session:
            user = await UserService(session).create(**fields)
            return {"id": str(user.id), "username": user.username, "role": user.role}
    finally:
        await engine.dispose()


database_url_option = click.option(
    "--database-url",
    default=lambda: settings.database_url,
    show_default="POSTBOARD_DATABASE_URL",
    help="SQLAlchemy async database URL.",
)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@click.group()
def cli():
    """Postboard — users, posts and admin API."""


@cli.command()
@click.option("--host", default=lambda: settings.host, show_default="POSTBOARD_HOST")
@click.option("--port", default=lambda: settings.port, type=int, show_default="POSTBOARD_PORT")
@click.option("--reload", is_flag=True, help="Reload on code changes (development).")
def serve(host: str, port: int, reload: bool):
    """Run the API server."""
    import uvicorn

    uvicorn.run("postboard.main:app", host=host, port=port, reload=reload)


@cli.command("init-db")
@database_url_option
def init_db(database_url: str):
    """Create all tables that do not exist yet."""
    _run(_init_db(database_url))
    click.echo("Database initialized.")


@cli.command("create-user")
@click.option("--username", required=True)
@click.option("--email", required=True)
@click.option("--password", required=True, prompt=True, hide_input=True)
@click.option("--role", default="user", type=click.Choice(["user", "admin"]), show_default=True)
@click.option("--firstname", default=None)
@click.option("--lastname", default=None)
@database_url_option
def create_user(
    username: str,
    email: str,
    password: str,
    role: str,
    firstname: Optional[str],
    lastname: Optional[str],
    database_url: str,
):
    """Create a user account, optionally with the admin role."""
    from pydantic import ValidationError as SchemaError

    from postboard.errors import ValidationError
    from postboard.schemas.user import UserCreate

    try:
        body = UserCreate(
            username=username,
            email=email,
            password=password,
            firstname=firstname,
            lastname=lastname,
        )
    except SchemaError as e:
        raise click.BadParameter(str(e))

    try:
        user = _run(_create_user(database_url, role=role, **body.model_dump()))
    except ValidationError as e:
        raise click.ClickException(e.message)

    click.echo(f"Created {user['role']} {user['username']} ({user['id']})")


if __name__ == "__main__":
    cli()
