"""
CLI commands for a user's tasks
"""

import json

import typer
from rich.table import Table

from togo.app import TogoApp
from togo.cli import console, run_with_app

app = typer.Typer(help="Manage a user's tasks")

USER_OPTION = typer.Option(..., "--user", "-u", help="Email of the acting user")


@app.command("list")
def list_tasks(
    ctx: typer.Context,
    user: str = USER_OPTION,
    output_format: str = typer.Option(
        "table", "--format", "-f", help="Output format: table, json"
    ),
) -> None:
    """List the user's tasks, oldest first"""

    async def _list(togo_app: TogoApp):
        owner = await togo_app.users.get_user_by_email(user)
        return await togo_app.tasks.fetch_tasks(owner.id)

    tasks_data = [task.to_dict() for task in run_with_app(ctx, _list)]

    if output_format == "json":
        typer.echo(json.dumps(tasks_data, indent=2))
        return

    if not tasks_data:
        console.print("No tasks found.")
        return

    table = Table(title=f"Tasks of {user}")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Created", style="magenta")
    for task in tasks_data:
        table.add_row(
            str(task["id"]), task["name"], task["status_name"], task["created_at"] or "N/A"
        )
    console.print(table)


@app.command("create")
def create(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Task name"),
    user: str = USER_OPTION,
    status: str = typer.Option(
        "todo", "--status", "-s", help="Initial status: todo, processing, done or 1-3"
    ),
) -> None:
    """
    Create a task, subject to the user's daily limit

    Example: togo tasks create "write report" --user alice@example.com
    """

    async def _create(togo_app: TogoApp):
        owner = await togo_app.users.get_user_by_email(user)
        return await togo_app.tasks.create_task(owner.id, name, status)

    task = run_with_app(ctx, _create)
    console.print(f"Created task {task.id} [cyan]{task.name}[/cyan] ({task.status.name})")


@app.command("delete")
def delete(
    ctx: typer.Context,
    task_id: int = typer.Argument(..., help="ID of the task to delete"),
    user: str = USER_OPTION,
) -> None:
    """Delete one of the user's tasks"""

    async def _delete(togo_app: TogoApp) -> None:
        owner = await togo_app.users.get_user_by_email(user)
        await togo_app.tasks.delete_task(owner.id, task_id)

    run_with_app(ctx, _delete)
    console.print(f"Deleted task {task_id}")
