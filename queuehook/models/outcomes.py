"""Delivery and handling outcome models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class DeliveryResult(BaseModel):
    """The body a webhook endpoint returns for an accepted message."""

    model_config = ConfigDict(frozen=True)

    id: str


class DeliveryOutcome(BaseModel):
    """Result of one HTTP round-trip to the webhook endpoint.

    ``result`` is ``None`` when the response body could not be parsed as
    a ``DeliveryResult``.  That still counts as delivered; ``identified``
    tells the two cases apart.
    """

    model_config = ConfigDict(frozen=True)

    status_code: int
    result: DeliveryResult | None = None

    @property
    def identified(self) -> bool:
        return self.result is not None

    @property
    def message_id(self) -> str | None:
        return self.result.id if self.result is not None else None


class HandlingState(str, Enum):
    """Stages a single inbound message moves through."""

    DECODING = "decoding"
    RESOLVING = "resolving"
    BUILDING = "building"
    SENDING = "sending"
    DONE = "done"
    FAILED = "failed"


class HandlingOutcome(BaseModel):
    """What the message handler reports back to the consume loop."""

    model_config = ConfigDict(frozen=True)

    state: HandlingState
    delivery: DeliveryOutcome | None = None
    failed_in: HandlingState | None = None  # the stage that raised
    error_kind: str = ""
    error_message: str = ""

    @classmethod
    def done(cls, delivery: DeliveryOutcome) -> HandlingOutcome:
        return cls(state=HandlingState.DONE, delivery=delivery)

    @classmethod
    def failed(cls, stage: HandlingState, exc: Exception) -> HandlingOutcome:
        return cls(
            state=HandlingState.FAILED,
            failed_in=stage,
            error_kind=type(exc).__name__,
            error_message=str(exc),
        )

    @property
    def ok(self) -> bool:
        return self.state == HandlingState.DONE

    def describe(self) -> str:
        """One-line summary suitable for a log record or terminal."""
        if self.ok and self.delivery is not None:
            if self.delivery.identified:
                return f"Delivered {self.delivery.message_id}"
            return (
                f"Delivered (identifier unknown, HTTP {self.delivery.status_code})"
            )
        stage = self.failed_in.value if self.failed_in else "unknown"
        return f"Failed while {stage}: {self.error_kind}: {self.error_message}"
