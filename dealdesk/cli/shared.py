"""Shared CLI helpers: console, logger, API client/session setup, error and notice rendering."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from dealdesk.api import ApiClient
from dealdesk.auth import FileCredentialStore
from dealdesk.config import API_URL
from dealdesk.errors import DealdeskError, ValidationError, error_message
from dealdesk.models import Thread, seller_type_label
from dealdesk.session import (
    Navigator,
    PageRender,
    Route,
    SessionController,
    guard_protected_route,
)
from dealdesk.state import DashboardState, Notice, NoticeLevel, Notifier
from dealdesk.utils.logger import bind_context, clear_context, get_logger

console = Console()
logger = get_logger("dealdesk.cli")

T = TypeVar("T")

_NOTICE_STYLES = {
    NoticeLevel.SUCCESS: "green",
    NoticeLevel.ERROR: "red",
    NoticeLevel.INFO: "cyan",
}


def run(coro: Awaitable[T], command: str) -> T:
    """Run one async command flow; DealdeskError becomes a red message and exit code 1."""
    log = logger.bind(command=command)
    bind_context(command=command)
    try:
        return asyncio.run(coro)
    except DealdeskError as e:
        log.warning("cli.command_failed", error=str(e), error_type=type(e).__name__)
        console.print(f"[red]{error_message(e, str(e))}[/red]")
        raise typer.Exit(1) from e
    finally:
        clear_context()


@asynccontextmanager
async def open_client(api_url: str | None = None) -> AsyncIterator[ApiClient]:
    """ApiClient over the on-disk credential store."""
    async with ApiClient(FileCredentialStore(), base_url=api_url or API_URL) as api:
        yield api


async def restore_session(api: ApiClient, navigator: Navigator | None = None) -> SessionController:
    """Restore the session; raises ValidationError when nobody is signed in."""
    session = SessionController(api, navigator=navigator)
    view = await session.restore()
    if not view.is_authenticated:
        raise ValidationError("Not signed in. Run `dealdesk login` first.")
    return session


async def open_dashboard(api: ApiClient, notifier: Notifier | None = None) -> DashboardState:
    """Restore the session, run the protected-page guard and load the dashboard collections."""
    navigator = Navigator(initial=Route.DASHBOARD)
    session = await restore_session(api, navigator)
    if guard_protected_route(session.view(), navigator) is not PageRender.CONTENT:
        if navigator.current is Route.ONBOARDING:
            raise ValidationError("Choose a target vehicle first: run `dealdesk onboard`.")
        raise ValidationError("Not signed in. Run `dealdesk login` first.")
    dashboard = DashboardState(api, notifier=notifier)
    await dashboard.open(session.view())
    return dashboard


def resolve_thread(dashboard: DashboardState, ref: str) -> Thread:
    """Find a thread by id, unique id prefix or case-insensitive title."""
    thread = dashboard.find_thread(ref)
    if thread is not None:
        return thread
    by_prefix = [t for t in dashboard.threads if t.id.startswith(ref)]
    if len(by_prefix) == 1:
        return by_prefix[0]
    by_title = [t for t in dashboard.threads if t.title.lower() == ref.strip().lower()]
    if len(by_title) == 1:
        return by_title[0]
    if by_prefix or by_title:
        raise ValidationError(f"Thread reference {ref!r} is ambiguous")
    raise ValidationError(f"No thread matches {ref!r}")


def print_notices(notices: list[Notice]) -> None:
    for notice in notices:
        console.print(f"[{_NOTICE_STYLES[notice.level]}]{notice.text}[/{_NOTICE_STYLES[notice.level]}]")


def fail_with_notices(notifier: Notifier, fallback: str) -> None:
    """Print pending notices (or the fallback) and exit 1."""
    notices = notifier.drain()
    if notices:
        print_notices(notices)
    else:
        console.print(f"[red]{fallback}[/red]")
    raise typer.Exit(1)


def threads_table(threads: list[Thread], title: str = "Threads") -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Seller")
    table.add_column("Type")
    table.add_column("Unread", justify="right")
    table.add_column("Messages", justify="right")
    table.add_column("Last message")
    for thread in threads:
        unread = f"[bold]{thread.unread_count}[/bold]" if thread.unread_count else "0"
        table.add_row(
            thread.id[:8],
            thread.title,
            seller_type_label(thread.seller_type),
            unread,
            str(thread.message_count),
            (thread.last_message_preview or "")[:60],
        )
    return table
