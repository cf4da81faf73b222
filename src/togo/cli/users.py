"""
CLI commands for user management
"""

import json

import typer
from rich.table import Table

from togo.app import TogoApp
from togo.cli import console, run_with_app
from togo.storage.models import Role

app = typer.Typer(help="Manage users")


@app.command("create")
def create(
    ctx: typer.Context,
    email: str = typer.Argument(..., help="Email of the new user"),
    admin: bool = typer.Option(False, "--admin", help="Give the user the admin role"),
) -> None:
    """
    Create a user

    Example: togo users create alice@example.com
    """
    role = Role.ADMIN if admin else Role.USER

    async def _create(togo_app: TogoApp):
        return await togo_app.users.sign_up(email, role)

    user = run_with_app(ctx, _create)
    console.print(f"Created {user.role} [cyan]{user.email}[/cyan] with id {user.id}")


@app.command("list")
def list_users(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-l", help="Number of users to display"),
    output_format: str = typer.Option(
        "table", "--format", "-f", help="Output format: table, json"
    ),
) -> None:
    """List users, oldest first"""

    async def _list(togo_app: TogoApp):
        return await togo_app.users.list_users(limit)

    users_data = [user.to_dict() for user in run_with_app(ctx, _list)]

    if output_format == "json":
        typer.echo(json.dumps(users_data, indent=2))
        return

    if not users_data:
        console.print("No users found.")
        return

    table = Table(title=f"Users (Top {limit})")
    table.add_column("ID", style="dim")
    table.add_column("Email", style="cyan")
    table.add_column("Role", style="green")
    table.add_column("Created", style="magenta")
    for user in users_data:
        table.add_row(str(user["id"]), user["email"], user["role"], user["created_at"] or "N/A")
    console.print(table)


@app.command("token")
def token(
    ctx: typer.Context,
    email: str = typer.Argument(..., help="Email of the user to issue a token for"),
) -> None:
    """Print a bearer token for a user"""

    async def _issue(togo_app: TogoApp) -> str:
        user = await togo_app.users.get_user_by_email(email)
        return togo_app.tokens.issue(user.id)

    typer.echo(run_with_app(ctx, _issue))
