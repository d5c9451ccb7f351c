"""Mock server mode: serve the in-memory API locally with uvicorn."""

import typer
import uvicorn

from dealdesk.config import MOCK_API_HOST, MOCK_API_PORT
from dealdesk.mock_api import API_PREFIX, create_app

from .shared import console, logger


def mock_server(
    port: int = typer.Option(MOCK_API_PORT, "--port", "-p", help="Port for the mock API"),
    host: str = typer.Option(MOCK_API_HOST, "--host", "-h", help="Bind host"),
    seed: bool = typer.Option(False, "--seed", help="Create demo@example.com / demo-password with sample data"),
) -> None:
    """Run the in-memory mock API (state is lost on exit)."""
    log = logger.bind(command="mock-server", port=port)
    log.info("mock_server.start", host=host, seed=seed)
    app = create_app(seed=seed)
    console.print(f"[bold]Mock API[/bold] at http://{host}:{port}{API_PREFIX}")
    if seed:
        console.print("[dim]Demo account: demo@example.com / demo-password[/dim]")
    console.print(f"[dim]Point the client at it with API_URL=http://{host}:{port}{API_PREFIX}[/dim]")
    uvicorn.run(app, host=host, port=port, log_level="info")
