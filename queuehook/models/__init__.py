"""queuehook data models — all Pydantic v2, all frozen (immutable)."""

from queuehook.models.envelopes import (
    Attachment,
    DecodeError,
    TransportEnvelope,
    WebhookPayload,
    decode_envelope,
)
from queuehook.models.outcomes import (
    DeliveryOutcome,
    DeliveryResult,
    HandlingOutcome,
    HandlingState,
)

__all__ = [
    # envelopes
    "Attachment",
    "DecodeError",
    "TransportEnvelope",
    "WebhookPayload",
    "decode_envelope",
    # outcomes
    "DeliveryOutcome",
    "DeliveryResult",
    "HandlingOutcome",
    "HandlingState",
]
