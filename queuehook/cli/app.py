"""Main Typer application — imports and registers all CLI commands.

Entry point: ``queuehook`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import typer

from queuehook.cli.commands.consume import consume_cmd
from queuehook.cli.commands.deliver import deliver_cmd

app = typer.Typer(
    name="queuehook",
    help="queuehook: relay message-queue envelopes to webhook endpoints.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

app.command(name="consume", help="Consume the relay queue and deliver every message.")(
    consume_cmd
)
app.command(name="deliver", help="Deliver a single envelope read from a file.")(
    deliver_cmd
)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
