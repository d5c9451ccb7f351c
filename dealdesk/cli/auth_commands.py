"""Account commands: login, register, logout, whoami, onboard."""

import typer

from dealdesk.errors import ValidationError
from dealdesk.session import (
    Navigator,
    PageRender,
    Route,
    SessionController,
    guard_onboarding_route,
)
from dealdesk.state import submit_preferences

from .shared import console, logger, open_client, restore_session, run


def login(
    email: str = typer.Option(..., "--email", "-e", prompt=True, help="Account email"),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True, help="Account password"),
) -> None:
    """Sign in and store the bearer token."""
    log = logger.bind(command="login")

    async def _login():
        async with open_client() as api:
            session = SessionController(api)
            view = await session.login(email, password)
            return view, session.navigator.current

    view, route = run(_login(), "login")
    log.info("login.done", state=view.state.value)
    console.print(f"[green]Signed in as {view.user.email}[/green]")
    if route is Route.ONBOARDING:
        console.print("[yellow]No target vehicle yet. Run `dealdesk onboard` to choose one.[/yellow]")


def register(
    email: str = typer.Option(..., "--email", "-e", prompt=True, help="Account email"),
    password: str = typer.Option(
        ...,
        "--password",
        "-p",
        prompt=True,
        hide_input=True,
        confirmation_prompt=True,
        help="Account password",
    ),
) -> None:
    """Create an account and sign in."""

    async def _register():
        async with open_client() as api:
            session = SessionController(api)
            return await session.register(email, password)

    view = run(_register(), "register")
    console.print(f"[green]Account created for {view.user.email}[/green]")
    if not view.has_preferences:
        console.print("[yellow]Next: run `dealdesk onboard` to choose your target vehicle.[/yellow]")


def logout() -> None:
    """Sign out. The local token is removed even if the server call fails."""

    async def _logout():
        async with open_client() as api:
            session = SessionController(api)
            await session.restore()
            return await session.logout()

    run(_logout(), "logout")
    console.print("Signed out.")


def whoami() -> None:
    """Show the signed-in user and their target vehicle."""

    async def _whoami():
        async with open_client() as api:
            session = await restore_session(api)
            return session.view()

    view = run(_whoami(), "whoami")
    user = view.user
    console.print(f"[bold]{user.email}[/bold]")
    if user.preferences is not None:
        console.print(f"  Target vehicle: {user.preferences.label}")
    else:
        console.print("  Target vehicle: [yellow]not set[/yellow]")
    if user.inbox_email:
        console.print(f"  Forward seller emails to: {user.inbox_email}")
    if user.phone_number:
        console.print(f"  SMS number: {user.phone_number}")


def onboard(
    year: int = typer.Option(..., "--year", "-y", prompt=True, help="Model year"),
    make: str = typer.Option(..., "--make", prompt=True, help="Manufacturer, e.g. Subaru"),
    model: str = typer.Option(..., "--model", prompt=True, help="Model, e.g. Outback"),
) -> None:
    """Choose the target vehicle. It is locked once set."""

    async def _onboard():
        async with open_client() as api:
            navigator = Navigator(initial=Route.ONBOARDING)
            session = await restore_session(api, navigator)
            if guard_onboarding_route(session.view(), navigator) is not PageRender.CONTENT:
                raise ValidationError(f"Target vehicle is locked: {session.user.preferences.label}")
            return await submit_preferences(session, api, year, make, model)

    preferences = run(_onboard(), "onboard")
    console.print(f"[green]Target vehicle set: {preferences.label}[/green]")
