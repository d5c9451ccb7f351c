"""Read-side commands: `messages show`, `offers list`, `inbox list|assign`."""

import typer
from rich.table import Table

from dealdesk.models import Sender, sender_label
from dealdesk.state import Notifier

from .shared import (
    console,
    fail_with_notices,
    open_client,
    open_dashboard,
    print_notices,
    resolve_thread,
    run,
)

messages_app = typer.Typer(help="Thread messages")
offers_app = typer.Typer(help="Tracked offers")
inbox_app = typer.Typer(help="Forwarded emails not yet assigned to a thread")

_SENDER_STYLES = {
    Sender.USER: "cyan",
    Sender.AGENT: "magenta",
    Sender.SELLER: "green",
}


@messages_app.command("show")
def show_messages(ref: str = typer.Argument(..., help="Thread id, id prefix or title")) -> None:
    """Show a thread's messages and mark it read."""

    async def _show():
        async with open_client() as api:
            notifier = Notifier()
            dashboard = await open_dashboard(api, notifier)
            thread = resolve_thread(dashboard, ref)
            messages = await dashboard.select_thread(thread.id)
            return thread, messages, notifier

    thread, messages, notifier = run(_show(), "messages.show")
    if messages is None:
        fail_with_notices(notifier, "Failed to load messages")
    console.print(f"[bold]{thread.title}[/bold]")
    if not messages:
        console.print("[dim]No messages yet.[/dim]")
        return
    for message in messages:
        style = _SENDER_STYLES[message.sender]
        who = sender_label(message.sender, thread.title)
        stamp = message.timestamp.strftime("%Y-%m-%d %H:%M")
        console.print(f"[{style}]{who}[/{style}] [dim]{stamp}[/dim]")
        console.print(f"  {message.content}\n")


@offers_app.command("list")
def list_offers() -> None:
    """List tracked offers across active threads."""

    async def _list():
        async with open_client() as api:
            dashboard = await open_dashboard(api)
            return dashboard.offers, {t.id: t.title for t in dashboard.threads}

    offers, titles = run(_list(), "offers.list")
    if not offers:
        console.print("[dim]No offers tracked yet.[/dim]")
        return
    table = Table(title="Tracked offers")
    table.add_column("Seller")
    table.add_column("Offer")
    table.add_column("Tracked", style="dim")
    for offer in offers:
        table.add_row(
            titles.get(offer.thread_id, offer.thread_id[:8]),
            offer.offer_text,
            offer.tracked_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@inbox_app.command("list")
def list_inbox() -> None:
    """List forwarded emails waiting to be assigned."""

    async def _list():
        async with open_client() as api:
            dashboard = await open_dashboard(api)
            return dashboard.inbox

    inbox = run(_list(), "inbox.list")
    if not inbox:
        console.print("[dim]Inbox is empty.[/dim]")
        return
    table = Table(title=f"Inbox ({len(inbox)})")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("From")
    table.add_column("Subject")
    table.add_column("Preview")
    for message in inbox:
        table.add_row(message.id[:8], message.sender_email, message.subject or "", message.content[:60])
    console.print(table)


@inbox_app.command("assign")
def assign_inbox_message(
    inbox_message_id: str = typer.Argument(..., help="Inbox message id or id prefix"),
    ref: str = typer.Argument(..., help="Target thread id, id prefix or title"),
) -> None:
    """Attach a forwarded email to a seller thread."""

    async def _assign():
        async with open_client() as api:
            notifier = Notifier()
            dashboard = await open_dashboard(api, notifier)
            thread = resolve_thread(dashboard, ref)
            matches = [m for m in dashboard.inbox if m.id.startswith(inbox_message_id)]
            if len(matches) != 1:
                notifier.error(f"No single inbox message matches {inbox_message_id!r}")
                return False, notifier, thread, 0
            assigned = await dashboard.assign_inbox_message(matches[0].id, thread.id)
            return assigned, notifier, thread, len(dashboard.inbox)

    assigned, notifier, thread, remaining = run(_assign(), "inbox.assign")
    if not assigned:
        fail_with_notices(notifier, "Failed to assign message to thread")
    print_notices(notifier.drain())
    console.print(f"[green]Assigned to {thread.title}[/green] ({remaining} left in inbox)")
