"""
CLI commands for daily task limits
"""

import json

import typer
from rich.table import Table

from togo.app import TogoApp
from togo.cli import console, run_with_app

app = typer.Typer(help="Show and change daily task limits")


@app.command("show")
def show(
    ctx: typer.Context,
    user: str = typer.Option(..., "--user", "-u", help="Email of the user"),
    output_format: str = typer.Option(
        "table", "--format", "-f", help="Output format: table, json"
    ),
) -> None:
    """Show a user's limit and today's usage"""

    async def _status(togo_app: TogoApp):
        owner = await togo_app.users.get_user_by_email(user)
        return await togo_app.tasks.get_quota_status(owner.id)

    status = run_with_app(ctx, _status)

    if output_format == "json":
        typer.echo(json.dumps(status, indent=2))
        return

    table = Table(title=f"Daily task limit of {user}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Limit per day", str(status["task_limit_per_day"]))
    table.add_row("Used today", str(status["used_today"]))
    table.add_row("Remaining", str(status["remaining"]))
    table.add_row("Resets at", status["reset_time"])
    console.print(table)


@app.command("set")
def set_limit(
    ctx: typer.Context,
    limit: int = typer.Argument(..., help="New number of tasks allowed per day"),
    admin: str = typer.Option(..., "--admin", "-a", help="Email of the admin making the change"),
    user: str = typer.Option(..., "--user", "-u", help="Email of the user whose limit changes"),
) -> None:
    """
    Change a user's daily task limit (admin only)

    Example: togo limit set 10 --admin root@example.com --user alice@example.com
    """

    async def _set(togo_app: TogoApp):
        caller = await togo_app.users.get_user_by_email(admin)
        target = await togo_app.users.get_user_by_email(user)
        return await togo_app.tasks.set_user_task_limit(caller.id, target.id, limit)

    record = run_with_app(ctx, _set)
    console.print(f"Task limit of [cyan]{user}[/cyan] is now {record.task_limit_per_day} per day")
