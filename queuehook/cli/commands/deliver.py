"""``queuehook deliver`` — run one handling attempt outside the broker.

Reads a single envelope document (the same JSON a queue message would
carry) from a file or stdin and delivers it exactly as the consume loop
would.  Exits non-zero when the attempt fails.
"""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from queuehook.cli.commands.consume import load_settings
from queuehook.config import configure_logging
from queuehook.core.handler import MessageHandler
from queuehook.models.outcomes import HandlingOutcome

console = Console()


def _render_outcome(outcome: HandlingOutcome) -> Table:
    table = Table(title="Delivery Outcome", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    if outcome.ok and outcome.delivery is not None:
        table.add_row("State", "[green]done[/green]")
        table.add_row("HTTP status", str(outcome.delivery.status_code))
        table.add_row(
            "Message id",
            outcome.delivery.message_id or "[yellow]unknown[/yellow]",
        )
    else:
        table.add_row("State", "[red]failed[/red]")
        table.add_row("Stage", outcome.failed_in.value if outcome.failed_in else "-")
        table.add_row("Error", outcome.error_kind)
        table.add_row("Detail", outcome.error_message)
    return table


def deliver_cmd(
    source: str = typer.Argument(
        ..., help="Path to an envelope JSON file, or '-' to read stdin."
    ),
    default_webhook: str = typer.Option(
        None,
        "--default-webhook",
        help="Webhook URI used when the envelope names none.",
    ),
) -> None:
    """Deliver a single envelope and print the outcome."""
    try:
        settings = load_settings(default_webhook_uri=default_webhook)
    except ValidationError as exc:
        console.print(f"[bold red]Invalid configuration:[/bold red] {exc}")
        raise typer.Exit(code=1)

    configure_logging(settings)

    if source == "-":
        raw = typer.get_binary_stream("stdin").read()
    else:
        path = Path(source)
        if not path.is_file():
            console.print(f"[bold red]No such envelope file:[/bold red] {path}")
            raise typer.Exit(code=1)
        raw = path.read_bytes()

    with MessageHandler.from_settings(settings) as handler:
        outcome = handler.handle(raw)

    console.print(_render_outcome(outcome))
    if not outcome.ok:
        raise typer.Exit(code=1)
