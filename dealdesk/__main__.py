"""Entry point: `python -m dealdesk` delegates to the CLI app."""

from rich.traceback import install

from dealdesk.cli import app
from dealdesk.utils.tracing import shutdown_tracing


def main() -> None:
    try:
        install(show_locals=False, max_frames=5, word_wrap=True)
        app()
    finally:
        shutdown_tracing()


if __name__ == "__main__":
    main()
