"""Operator CLI for the onboarding service.

Runs the API server, prepares the database and inspects a member's
checklist from the terminal using the same service code path as the API.
"""

import os

import typer
import uvicorn
from loguru import logger
from rich.console import Console
from rich.table import Table

from gc_onboarding.checklist.errors import ChecklistError
from gc_onboarding.checklist.repository import SqlChecklistStore
from gc_onboarding.checklist.service import OnboardingService
from gc_onboarding.checklist.store import ChecklistStore
from gc_onboarding.checklist.types import MemberContext, MemberPlan, ProgressStatus
from gc_onboarding.db.models import Base
from gc_onboarding.db.models import Member as MemberRow
from gc_onboarding.db.session import get_engine, get_session

console = Console()

app = typer.Typer(
    name="gc-onboarding",
    help="Onboarding checklist service - server and maintenance commands",
    add_completion=False,
)

DEFAULT_HOST = os.getenv("SERVER_HOST", "127.0.0.1")

_STATUS_STYLES = {
    ProgressStatus.COMPLETE: "green",
    ProgressStatus.IN_PROGRESS: "yellow",
    ProgressStatus.BLOCKED: "red",
    ProgressStatus.NOT_STARTED: "dim",
}


def _store() -> ChecklistStore:
    return SqlChecklistStore()


@app.command()
def server(
    host: str = typer.Option(DEFAULT_HOST, "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
) -> None:
    """Run the FastAPI server."""
    logger.info(f"Starting FastAPI server on {host}:{port} (reload={reload})")
    uvicorn.run("gc_onboarding.main:app", host=host, port=port, reload=reload)


@app.command()
def init_db() -> None:
    """Create the onboarding tables if they do not exist."""
    Base.metadata.create_all(bind=get_engine())
    console.print("[green]Onboarding tables ready[/green]")


@app.command()
def add_member(
    member_id: str = typer.Argument(..., help="Member ID"),
    plan: MemberPlan = typer.Option(MemberPlan.TRIAL, "--plan", help="Subscription plan"),
    email: str | None = typer.Option(None, "--email", help="Member email"),
    name: str | None = typer.Option(None, "--name", help="Display name"),
) -> None:
    """Register a member (or update their plan) so the API can resolve them."""
    try:
        with get_session() as session:
            row = session.get(MemberRow, member_id)
            if row is None:
                row = MemberRow(id=member_id)
                session.add(row)
            row.plan = plan.value
            if email is not None:
                row.email = email
            if name is not None:
                row.name = name
    except Exception as e:
        logger.exception(f"Error saving member {member_id}: {e}")
        console.print(f"[red]Error:[/red] {e}", style="bold red")
        raise typer.Exit(1) from e

    console.print(f"[green]Saved member {member_id} on plan {plan.value}[/green]")


@app.command()
def show(
    member_id: str = typer.Argument(..., help="Member ID"),
) -> None:
    """Print a member's checklist grouped by category with completion counts."""
    store = _store()
    try:
        member = store.fetch_member(member_id)
        view = OnboardingService(store).get_aggregated_view(MemberContext(member_id=member.id, plan=member.plan))
    except ChecklistError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold red")
        raise typer.Exit(1) from e

    console.print(f"[bold]{member.id}[/bold] ({member.plan.value}) - {view.total_progress}% complete")
    for group in view.categories:
        table = Table(title=f"{group.name.value} ({group.completed_count}/{group.total_count})", title_justify="left")
        table.add_column("#", justify="right")
        table.add_column("Task")
        table.add_column("Support")
        table.add_column("Status")
        for item in group.items:
            style = _STATUS_STYLES[item.progress_status]
            table.add_row(
                str(item.order),
                item.text,
                item.support_type.value,
                f"[{style}]{item.progress_status.value}[/{style}]",
            )
        console.print(table)


if __name__ == "__main__":
    app()
