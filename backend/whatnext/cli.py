from __future__ import annotations

from typing import NoReturn, Optional

import click
import typer
from rich import print
from rich.markup import escape

from .core.config import settings
from .core.errors import (
    ActivityNotFoundError,
    DuplicateNameError,
    InvalidActivityError,
    RemoteUnavailableError,
    SyncInProgressError,
    WhatnextError,
)
from .core.log import configure_logging
from .services.activity_service import ActivityService
from .services.connection import build_router
from .services.priority import PRIORITY_ADJUSTMENT

app = typer.Typer(help="whatnext: pick your next activity, online or offline")

RAISE_KEYS = ("+", "=")
LOWER_KEYS = ("-", "_")


def _service() -> ActivityService:
    configure_logging(settings.LOG_LEVEL)
    return ActivityService(
        build_router(settings),
        pull_after_failed_push=settings.SYNC_PULL_AFTER_FAILED_PUSH,
    )


def _fail(message: str) -> NoReturn:
    print(f"[red]{escape(message)}[/red]")
    raise typer.Exit(code=1)


@app.command("list")
def list_cmd() -> None:
    """List all activities and their priorities."""
    try:
        activities = _service().list_all()
    except WhatnextError as exc:
        _fail(f"Database error: {exc}")
    if not activities:
        print("No activities yet")
        return
    for activity in activities:
        print(f"- {escape(activity.name)} ({activity.priority})")


@app.command("add")
def add_cmd(
    activity: str = typer.Argument(..., help="The activity name"),
    rating: Optional[float] = typer.Argument(None, help="Custom priority rating"),
) -> None:
    """Add a new activity with an optional custom priority."""
    priority = rating if rating is not None else settings.DEFAULT_PRIORITY
    try:
        created = _service().add(activity, priority)
    except DuplicateNameError:
        _fail(f"Activity '{activity}' already exists")
    except InvalidActivityError as exc:
        _fail(str(exc))
    except WhatnextError as exc:
        _fail(f"Database error: {exc}")
    print(f"[green]Activity '{escape(created.name)}' added with priority {created.priority}[/green]")


@app.command("delete")
def delete_cmd(activity: str = typer.Argument(..., help="The activity name to delete")) -> None:
    """Delete an activity."""
    try:
        deleted = _service().delete(activity)
    except WhatnextError as exc:
        _fail(f"Database error: {exc}")
    if not deleted:
        _fail(f"Activity '{activity}' not found")
    print(f"[green]Activity '{escape(activity)}' has been deleted[/green]")


@app.command("adjust")
def adjust_cmd(
    activity: str = typer.Argument(..., help="The activity name"),
    delta: float = typer.Argument(..., help="Amount to add to the priority (may be negative)"),
) -> None:
    """Shift an activity's priority by DELTA."""
    try:
        new_priority = _service().adjust_priority(activity, delta)
    except (ActivityNotFoundError, InvalidActivityError) as exc:
        _fail(str(exc))
    except WhatnextError as exc:
        _fail(f"Database error: {exc}")
    print(f"[green]Priority adjusted to {new_priority}[/green]")


@app.command("get")
def get_cmd() -> None:
    """Suggest activities one after another; +/- adjusts the shown one, Q quits."""
    service = _service()
    try:
        while True:
            suggestion = service.suggest()
            if suggestion is None:
                _fail("No activity found")
            print(f"Selected activity: [bold]{escape(suggestion.activity)}[/bold]")
            print(f"Priority: {suggestion.priority}")
            print(f"Minimum roll: {suggestion.min_roll}\n")

            print("Press [+] to increase rating, [-] to decrease, Q to exit, or any other key to continue...")
            key = click.getchar()
            if key == "" or key.lower() == "q":
                return

            if key in RAISE_KEYS:
                delta = PRIORITY_ADJUSTMENT
            elif key in LOWER_KEYS:
                delta = -PRIORITY_ADJUSTMENT
            else:
                continue

            new_priority = service.adjust_priority(suggestion.activity, delta)
            print(f"[green]Priority adjusted to {new_priority}[/green]\n")
            print("Press any key to continue...")
            click.getchar()
    except WhatnextError as exc:
        _fail(f"Database error: {exc}")


@app.command("status")
def status_cmd() -> None:
    """Show connectivity and the number of queued offline operations."""
    try:
        status = _service().connectivity_status()
    except WhatnextError as exc:
        _fail(f"Database error: {exc}")
    colour = "green" if status["online"] else "yellow"
    print(f"Connection: [{colour}]{status['status']}[/{colour}]")
    print(f"Pending operations: {status['pending_count']}")


@app.command("sync")
def sync_cmd() -> None:
    """Synchronize local and remote activity data."""
    service = _service()
    try:
        pending = service.connectivity_status()["pending_count"]
        if pending:
            print(f"Found {pending} pending operations")
        print("Starting synchronization...")
        result = service.trigger_sync()
    except RemoteUnavailableError as exc:
        _fail(f"Cannot sync: {exc}")
    except SyncInProgressError as exc:
        _fail(str(exc))
    except WhatnextError as exc:
        _fail(f"Sync failed: {exc}")

    print(f"[green]Sync complete: {result.success_count} operations synced successfully[/green]")
    if result.skipped_count:
        print(f"[yellow]{result.skipped_count} operations skipped[/yellow]")
    for issue in result.issues:
        colour = "red" if issue.severity == "error" else "yellow"
        print(
            f"[{colour}]  - {issue.operation} on '{escape(issue.activity)}': "
            f"{escape(issue.error)}[/{colour}]"
        )
    if result.failed_count:
        _fail(f"{result.failed_count} operations failed")


@app.command("serve")
def serve_cmd(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(8000, help="Bind port"),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("whatnext.main:create_app", factory=True, host=host, port=port)


if __name__ == "__main__":
    app()
