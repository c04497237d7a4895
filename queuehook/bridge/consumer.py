"""AMQP consume loop — feeds queue messages to the message handler.

The consumer declares the relay's topology (an exchange, a queue bound to
it), then takes messages one at a time without acknowledgement.  Each
body is handed to ``MessageHandler.handle`` on a worker thread, and the
next message is not taken until that attempt finishes.

Startup failures (broker unreachable, topology rejected) propagate to the
caller; per-message failures never do.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import aio_pika

from queuehook.models.outcomes import HandlingOutcome

if TYPE_CHECKING:
    from queuehook.config import RelaySettings
    from queuehook.core.handler import MessageHandler

logger = logging.getLogger(__name__)


class QueueConsumer:
    """Consumes the relay queue and runs one handling attempt per message.

    Parameters
    ----------
    settings:
        Broker URI and topology names.
    handler:
        The message handler every body is passed to.
    """

    def __init__(self, settings: RelaySettings, handler: MessageHandler) -> None:
        self._settings = settings
        self._handler = handler
        self._stop_requested = False
        self._handled_count = 0
        self._busy = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._consuming: asyncio.Task[None] | None = None

    @property
    def handled_count(self) -> int:
        """Number of messages handled so far, successful or not."""
        return self._handled_count

    @property
    def is_consuming(self) -> bool:
        return self._consuming is not None and not self._consuming.done()

    def stop(self) -> None:
        """Ask the loop to exit.

        An idle consumer stops waiting for messages at once; a message
        being handled is finished first.  Safe to call from any thread.
        """
        self._stop_requested = True
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._cancel_if_idle)

    def _cancel_if_idle(self) -> None:
        if not self._busy and self._consuming is not None:
            self._consuming.cancel()

    async def handle_delivery(self, body: bytes) -> HandlingOutcome:
        """Run the blocking handler for one message body on a worker thread."""
        logger.info("Got message of length %d", len(body))
        self._busy = True
        try:
            outcome = await asyncio.to_thread(self._handler.handle, body)
        finally:
            self._busy = False
        self._handled_count += 1
        return outcome

    async def _consume(self, queue: aio_pika.abc.AbstractQueue) -> None:
        async with queue.iterator(no_ack=True) as messages:
            async for message in messages:
                await self.handle_delivery(message.body)
                if self._stop_requested:
                    break

    async def run(self) -> None:
        """Connect, declare topology, and consume until stopped."""
        settings = self._settings
        connection = await aio_pika.connect_robust(settings.amqp_uri)

        async with connection:
            channel = await connection.channel()
            exchange = await channel.declare_exchange(
                settings.exchange_name,
                aio_pika.ExchangeType(settings.exchange_type),
            )
            queue = await channel.declare_queue(
                settings.queue_name or None,
                exclusive=not settings.queue_name,
            )
            await queue.bind(exchange, routing_key="")

            logger.info("Waiting for messages on %s/%s", queue.name, exchange.name)

            if not self._stop_requested:
                self._loop = asyncio.get_running_loop()
                self._consuming = asyncio.create_task(self._consume(queue))
                try:
                    await self._consuming
                except asyncio.CancelledError:
                    if not self._stop_requested:
                        raise
                finally:
                    self._consuming = None
                    self._loop = None

        logger.info("Consumer stopped after %d message(s)", self._handled_count)
