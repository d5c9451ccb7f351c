"""CLI commands: account commands at the top level, one sub-app per resource."""

from typer import Typer

from dealdesk.cli import auth_commands, mock_server_mode
from dealdesk.cli.integration_commands import gmail_app, sms_app
from dealdesk.cli.message_commands import inbox_app, messages_app, offers_app
from dealdesk.cli.thread_commands import threads_app
from dealdesk.utils.tracing import init_tracing

init_tracing()

app = Typer(help="Dealdesk: negotiate car deals from the terminal")


def register_commands() -> None:
    """Register all CLI commands on the global app."""
    app.command()(auth_commands.login)
    app.command()(auth_commands.register)
    app.command()(auth_commands.logout)
    app.command()(auth_commands.whoami)
    app.command()(auth_commands.onboard)
    app.add_typer(threads_app, name="threads")
    app.add_typer(messages_app, name="messages")
    app.add_typer(offers_app, name="offers")
    app.add_typer(inbox_app, name="inbox")
    app.add_typer(gmail_app, name="gmail")
    app.add_typer(sms_app, name="sms")
    app.command(name="mock-server")(mock_server_mode.mock_server)


register_commands()
