"""Gmail connection and SMS reply commands."""

import webbrowser

import typer

from dealdesk.models import Sender
from dealdesk.state import GmailConnection, Notifier, SmsReply

from .shared import (
    console,
    fail_with_notices,
    logger,
    open_client,
    open_dashboard,
    print_notices,
    resolve_thread,
    restore_session,
    run,
)

gmail_app = typer.Typer(help="Gmail connection for forwarding seller emails")
sms_app = typer.Typer(help="SMS replies through your allocated number")


@gmail_app.command("status")
def gmail_status() -> None:
    """Show whether Gmail is connected."""

    async def _status():
        async with open_client() as api:
            await restore_session(api)
            gmail = GmailConnection(api)
            await gmail.refresh()
            return gmail

    gmail = run(_status(), "gmail.status")
    if gmail.connected:
        console.print(f"[green]Connected[/green] as {gmail.gmail_email}")
    else:
        console.print("[yellow]Not connected[/yellow]. Run `dealdesk gmail connect`.")


@gmail_app.command("connect")
def gmail_connect(
    open_browser: bool = typer.Option(True, "--browser/--no-browser", help="Open the consent page in a browser"),
) -> None:
    """Start the Gmail OAuth flow."""
    log = logger.bind(command="gmail.connect")

    async def _connect():
        async with open_client() as api:
            await restore_session(api)
            notifier = Notifier()
            gmail = GmailConnection(api, notifier)
            return await gmail.connect(), notifier

    url, notifier = run(_connect(), "gmail.connect")
    if url is None:
        fail_with_notices(notifier, "Failed to start Gmail connection")
    console.print(f"Authorize Gmail access at:\n  {url}")
    if open_browser:
        opened = webbrowser.open(url)
        log.info("gmail.connect.browser", opened=opened)


@gmail_app.command("disconnect")
def gmail_disconnect() -> None:
    """Disconnect Gmail."""

    async def _disconnect():
        async with open_client() as api:
            await restore_session(api)
            notifier = Notifier()
            gmail = GmailConnection(api, notifier)
            return await gmail.disconnect(), notifier

    disconnected, notifier = run(_disconnect(), "gmail.disconnect")
    if not disconnected:
        fail_with_notices(notifier, "Failed to disconnect Gmail")
    print_notices(notifier.drain())


@sms_app.command("send")
def sms_send(
    ref: str = typer.Argument(..., help="Thread id, id prefix or title"),
    content: str = typer.Argument(..., help="Message text"),
) -> None:
    """Reply by SMS to the seller's latest message in a thread."""

    async def _send():
        async with open_client() as api:
            notifier = Notifier()
            dashboard = await open_dashboard(api, notifier)
            thread = resolve_thread(dashboard, ref)
            messages = await dashboard.select_thread(thread.id) or []
            seller_messages = [m for m in messages if m.sender is Sender.SELLER]
            reply = SmsReply(
                api,
                replyable_message_id=seller_messages[-1].id if seller_messages else None,
                phone_number=thread.phone,
                notifier=notifier,
            )
            return await reply.send(content), reply, notifier

    sent, reply, notifier = run(_send(), "sms.send")
    if not sent:
        fail_with_notices(notifier, reply.error or "Failed to send SMS")
    print_notices(notifier.drain())
    console.print(f"[dim]To {reply.recipient_label}[/dim]")
