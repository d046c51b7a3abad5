"""
Command Line Interface for Workboard.
"""

import asyncio
from typing import Optional

import typer
import uvicorn
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import get_settings
from ..db.base import get_session_local, init_database
from ..tracker.primitives import CallerContext
from ..tracker.services import ListService, WorkspaceService

app = typer.Typer(help="Workboard - task tracker with custom fields")
console = Console()


def _default_caller(workspace_id: Optional[str] = None) -> CallerContext:
    settings = get_settings()
    return CallerContext(
        workspace_id=workspace_id or settings.default_workspace_id,
        user_id=settings.default_user_id,
    )


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Host to bind the server to"),
    port: Optional[int] = typer.Option(None, help="Port to run the API server on"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Run the HTTP API."""
    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    rprint(Panel.fit(f"Starting Workboard on http://{host}:{port}", style="bold blue"))
    uvicorn.run(
        "workboard.main:app",
        host=host,
        port=port,
        reload=reload,
        workers=1 if reload else settings.api_workers,
    )


@app.command("init-db")
def init_db():
    """Create tables and the default workspace and user."""
    settings = get_settings()
    asyncio.run(init_database())

    db = get_session_local()()
    try:
        workspace, user = WorkspaceService(db, _default_caller()).get_or_create(
            user_email=settings.default_user_email,
            user_name=settings.default_user_name,
            workspace_name=settings.default_workspace_name,
        )
        console.print("✅ Database initialized")
        console.print(f"Workspace: [cyan]{workspace.id}[/cyan] ({workspace.name})")
        console.print(f"User:      [cyan]{user.id}[/cyan] ({user.email})")
    finally:
        db.close()


@app.command()
def lists(
    workspace: Optional[str] = typer.Option(None, help="Workspace id (defaults to the configured one)"),
):
    """Show the lists of a workspace."""
    db = get_session_local()()
    try:
        items = ListService(db, _default_caller(workspace)).list()
    finally:
        db.close()

    if not items:
        console.print("No lists found")
        return

    table = Table(title="Lists", show_header=True, header_style="bold magenta")
    table.add_column("Order", justify="right")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Description")

    for item in items:
        table.add_row(
            str(item.order),
            item.id,
            f"{item.icon} {item.name}",
            item.description or "",
        )

    console.print(table)


if __name__ == "__main__":
    app()
