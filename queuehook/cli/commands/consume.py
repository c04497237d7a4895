"""``queuehook consume`` — run the relay against the message broker.

Declares the relay topology, then delivers every message that arrives
until interrupted.  Broker or configuration problems at startup are
fatal; a bad message never is.
"""

from __future__ import annotations

import asyncio

import typer
from aio_pika.exceptions import AMQPError
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel

from queuehook.bridge.consumer import QueueConsumer
from queuehook.config import RelaySettings, configure_logging
from queuehook.core.handler import MessageHandler
from queuehook.routing.dispatcher import redact_uri

console = Console()


def load_settings(**overrides: object) -> RelaySettings:
    """Build settings from the environment, with non-``None`` CLI overrides."""
    return RelaySettings(**{k: v for k, v in overrides.items() if v is not None})


def consume_cmd(
    amqp_uri: str = typer.Option(
        None, "--amqp-uri", help="Broker URI (overrides QUEUEHOOK_AMQP_URI)."
    ),
    exchange: str = typer.Option(
        None, "--exchange", help="Exchange to bind to (overrides QUEUEHOOK_EXCHANGE_NAME)."
    ),
    default_webhook: str = typer.Option(
        None,
        "--default-webhook",
        help="Webhook URI for messages that name none.",
    ),
) -> None:
    """Consume the relay queue and deliver each message to its webhook."""
    try:
        settings = load_settings(
            amqp_uri=amqp_uri,
            exchange_name=exchange,
            default_webhook_uri=default_webhook,
        )
    except ValidationError as exc:
        console.print(f"[bold red]Invalid configuration:[/bold red] {exc}")
        raise typer.Exit(code=1)

    configure_logging(settings)

    console.print(
        Panel(
            "\n".join([
                f"[bold]Broker:[/bold]    {redact_uri(settings.amqp_uri)}",
                f"[bold]Exchange:[/bold]  {settings.exchange_name} ({settings.exchange_type})",
                f"[bold]Default:[/bold]   {redact_uri(settings.default_webhook_uri)}",
            ]),
            title="[bold]queuehook[/bold]",
            border_style="cyan",
        )
    )

    handler = MessageHandler.from_settings(settings)
    consumer = QueueConsumer(settings, handler)
    try:
        asyncio.run(consumer.run())
    except KeyboardInterrupt:
        console.print(
            f"[dim]Interrupted after {consumer.handled_count} message(s).[/dim]"
        )
    except (OSError, AMQPError) as exc:
        console.print(
            f"[bold red]Unable to consume from {redact_uri(settings.amqp_uri)}:[/bold red] {exc}"
        )
        raise typer.Exit(code=1)
    finally:
        handler.close()
