"""`dealdesk threads ...`: list, create, consolidate, rename, archive."""

from typing import List

import typer

from dealdesk.models import SellerType
from dealdesk.state import Notifier

from .shared import (
    console,
    fail_with_notices,
    logger,
    open_client,
    open_dashboard,
    print_notices,
    resolve_thread,
    run,
    threads_table,
)

threads_app = typer.Typer(help="Seller negotiation threads")


@threads_app.command("list")
def list_threads() -> None:
    """List active threads, most recent first."""

    async def _list():
        async with open_client() as api:
            notifier = Notifier()
            dashboard = await open_dashboard(api, notifier)
            return dashboard.threads, dashboard.total_unread_count, notifier.drain()

    threads, unread, notices = run(_list(), "threads.list")
    print_notices(notices)
    if not threads:
        console.print("[dim]No threads yet. Create one with `dealdesk threads create`.[/dim]")
        return
    console.print(threads_table(threads, title=f"Threads ({unread} unread)"))


@threads_app.command("create")
def create_thread(
    seller_name: str = typer.Argument(..., help="Dealership or seller name"),
    seller_type: SellerType = typer.Option(SellerType.DEALERSHIP, "--type", "-t", help="Seller type"),
) -> None:
    """Start a thread with a new seller."""
    log = logger.bind(command="threads.create")

    async def _create():
        async with open_client() as api:
            dashboard = await open_dashboard(api)
            thread = await dashboard.create_thread(seller_name, seller_type)
            return thread, dashboard.thread_form_error

    thread, form_error = run(_create(), "threads.create")
    if thread is None:
        console.print(f"[red]{form_error or 'Failed to create thread'}[/red]")
        log.warning("threads.create.failed", error=form_error)
        raise typer.Exit(1)
    console.print(f"[green]Created thread {thread.id[:8]} for {thread.title}[/green]")


@threads_app.command("consolidate")
def consolidate_threads(
    refs: List[str] = typer.Argument(..., help="Two or more thread ids, id prefixes or titles, in priority order"),
) -> None:
    """Merge several threads with the same seller into one."""

    async def _consolidate():
        async with open_client() as api:
            notifier = Notifier()
            dashboard = await open_dashboard(api, notifier)
            dashboard.toggle_edit_mode()
            for ref in refs:
                thread = resolve_thread(dashboard, ref)
                if thread.id not in dashboard.selected_thread_ids:
                    dashboard.toggle_thread_selection(thread.id)
            if not dashboard.can_consolidate:
                return None, notifier, []
            result = await dashboard.consolidate()
            return result, notifier, dashboard.threads

    result, notifier, threads = run(_consolidate(), "threads.consolidate")
    if result is None:
        fail_with_notices(notifier, "Select at least 2 threads to consolidate")
    print_notices(notifier.drain())
    console.print(f"Merged into [bold]{result.thread.title}[/bold] ({result.thread.id[:8]})")
    console.print(threads_table(threads))


@threads_app.command("rename")
def rename_thread(
    ref: str = typer.Argument(..., help="Thread id, id prefix or title"),
    seller_name: str = typer.Argument(..., help="New seller name"),
) -> None:
    """Rename a thread's seller."""

    async def _rename():
        async with open_client() as api:
            dashboard = await open_dashboard(api)
            thread = resolve_thread(dashboard, ref)
            renamed = await dashboard.rename_thread(thread.id, seller_name)
            return renamed, dashboard.thread_form_error

    thread, form_error = run(_rename(), "threads.rename")
    if thread is None:
        console.print(f"[red]{form_error or 'Failed to rename thread'}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Renamed to {thread.title}[/green]")


@threads_app.command("archive")
def archive_thread(
    ref: str = typer.Argument(..., help="Thread id, id prefix or title"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Archive a thread (hidden from the dashboard)."""

    async def _archive():
        async with open_client() as api:
            notifier = Notifier()
            dashboard = await open_dashboard(api, notifier)
            thread = resolve_thread(dashboard, ref)
            if not yes and not typer.confirm(f"Archive thread with {thread.title}?"):
                return None, notifier
            return await dashboard.archive_thread(thread.id), notifier

    archived, notifier = run(_archive(), "threads.archive")
    if archived is None:
        console.print("Cancelled.")
        return
    if not archived:
        fail_with_notices(notifier, "Failed to archive thread")
    print_notices(notifier.drain())
