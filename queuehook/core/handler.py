"""Message handler — one inbound queue message, one delivery attempt.

Each message moves through a fixed sequence of stages:

    decoding -> resolving -> building -> sending -> done | failed

A failure in any stage ends the attempt with a ``failed`` outcome that
records the stage and the error.  The handler never raises: the consume
loop always gets an outcome back and moves on to the next message.
Nothing is retried.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from queuehook.models.envelopes import DecodeError, decode_envelope
from queuehook.models.outcomes import HandlingOutcome, HandlingState
from queuehook.routing.builder import PartEncodingError, RequestBuilder
from queuehook.routing.dispatcher import DeliveryError, Dispatcher
from queuehook.routing.resolver import NoTargetError, resolve_target

if TYPE_CHECKING:
    from queuehook.config import RelaySettings

logger = logging.getLogger(__name__)

# Per-message failures; each ends one attempt, never the process.
MESSAGE_ERRORS = (DecodeError, NoTargetError, PartEncodingError, DeliveryError)


class MessageHandler:
    """Decodes, routes, builds, and sends a single queue message.

    Parameters
    ----------
    builder:
        Shapes the outbound request.
    dispatcher:
        Sends it.  May be shared across handlers.
    default_uri:
        Destination used when a message names none.

    Usage
    -----
    >>> handler = MessageHandler(RequestBuilder(), Dispatcher(),
    ...                          default_uri="https://example.test/hook")
    >>> outcome = handler.handle(body)
    >>> outcome.ok
    True
    """

    def __init__(
        self,
        builder: RequestBuilder,
        dispatcher: Dispatcher,
        *,
        default_uri: str | None = None,
    ) -> None:
        self._builder = builder
        self._dispatcher = dispatcher
        self._default_uri = default_uri

    @classmethod
    def from_settings(cls, settings: RelaySettings) -> MessageHandler:
        """Wire a handler from relay settings."""
        return cls(
            RequestBuilder(settings.attachment_content_type),
            Dispatcher(timeout_seconds=settings.request_timeout_seconds),
            default_uri=settings.default_webhook_uri,
        )

    @property
    def default_uri(self) -> str | None:
        return self._default_uri

    def handle(self, raw: bytes | str) -> HandlingOutcome:
        """Run one handling attempt for a raw message body."""
        stage = HandlingState.DECODING
        try:
            envelope = decode_envelope(raw)

            stage = HandlingState.RESOLVING
            target_uri = resolve_target(envelope.target_uri, self._default_uri)

            stage = HandlingState.BUILDING
            request = self._builder.build(
                target_uri, envelope.payload, envelope.attachments
            )

            stage = HandlingState.SENDING
            delivery = self._dispatcher.send(request)
        except MESSAGE_ERRORS as exc:
            outcome = HandlingOutcome.failed(stage, exc)
            logger.error("An error occurred handling a message: %s", outcome.describe())
            return outcome
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error while %s a message", stage.value)
            return HandlingOutcome.failed(stage, exc)

        outcome = HandlingOutcome.done(delivery)
        logger.info("%s", outcome.describe())
        return outcome

    def close(self) -> None:
        """Release the dispatcher's connections."""
        self._dispatcher.close()

    def __enter__(self) -> MessageHandler:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
