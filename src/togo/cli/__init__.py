"""CLI package for togo"""

import asyncio
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer
from dotenv import load_dotenv
from rich.console import Console

from togo import __version__
from togo.app import TogoApp, create_app
from togo.config.settings import TogoSettings
from togo.errors import TogoError
from togo.logger import setup_logging

T = TypeVar("T")

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(help="togo task tracker administration", no_args_is_help=True)


@app.callback()
def _root(
    ctx: typer.Context,
    env_file: Optional[Path] = typer.Option(
        None, "--env-file", help="Load environment variables from this file first"
    ),
    database_url: Optional[str] = typer.Option(
        None, "--database-url", help="Override DATABASE_URL"
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
) -> None:
    if env_file is not None:
        if not env_file.exists():
            err_console.print(f"[red]Error:[/red] env file {env_file} does not exist")
            raise typer.Exit(code=1)
        load_dotenv(dotenv_path=env_file, override=False)

    overrides: dict[str, Any] = {}
    if database_url:
        overrides["database_url"] = database_url
    if log_level:
        overrides["log_level"] = log_level
    settings = TogoSettings(**overrides)
    setup_logging(settings.log_level)
    ctx.obj = settings


def run_with_app(ctx: typer.Context, func: Callable[[TogoApp], Awaitable[T]]) -> T:
    """
    Run func against a freshly created TogoApp and close it afterwards

    TogoError is printed with its public message and exits with code 1.
    """

    async def _run() -> T:
        togo_app = create_app(ctx.obj)
        try:
            return await func(togo_app)
        finally:
            await togo_app.close()

    try:
        return asyncio.run(_run())
    except TogoError as e:
        err_console.print(f"[red]Error ({e.public_kind().value}):[/red] {e.public_message()}")
        raise typer.Exit(code=1)


@app.command("init-db")
def init_db(ctx: typer.Context) -> None:
    """Create tables and the bootstrap admin (ADMIN_EMAIL)"""
    run_with_app(ctx, lambda togo_app: togo_app.init_database())
    console.print("[green]Database initialized[/green]")


@app.command("version")
def version() -> None:
    """Show the togo version"""
    console.print(__version__)


from togo.cli import limits, tasks, users  # noqa: E402

app.add_typer(users.app, name="users")
app.add_typer(tasks.app, name="tasks")
app.add_typer(limits.app, name="limit")


def main() -> None:
    app()
