"""Inbound transport envelopes — the queue message contract.

Every queue message body is a UTF-8 JSON document describing one webhook
delivery: an optional destination override, the webhook payload, and any
binary attachments.  Each model is a frozen Pydantic model validated on
construction; decoding is all-or-nothing.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    JsonValue,
    StrictBool,
    StrictStr,
    ValidationError,
    field_serializer,
    field_validator,
)


class DecodeError(ValueError):
    """Raised when a raw queue message is not a valid transport envelope."""


class WebhookPayload(BaseModel):
    """The JSON document forwarded to the webhook endpoint.

    ``embeds`` is an opaque passthrough: its shape belongs to the
    receiving API and is never validated here.
    """

    model_config = ConfigDict(frozen=True)

    content: StrictStr
    username: StrictStr | None = None
    avatar_url: StrictStr | None = None
    tts: StrictBool | None = None  # absent means false
    embeds: list[JsonValue] | None = None

    @property
    def is_tts(self) -> bool:
        return bool(self.tts)

    def to_json(self) -> str:
        """Serialize to compact JSON, omitting absent optional fields.

        ``embeds`` is emitted exactly as received, nulls included.
        """
        document: dict[str, Any] = self.model_dump(
            mode="json", exclude_none=True, exclude={"embeds"}
        )
        if self.embeds is not None:
            document["embeds"] = self.embeds
        return json.dumps(document, separators=(",", ":"), ensure_ascii=False)


class Attachment(BaseModel):
    """A named binary blob delivered alongside the payload.

    On the wire ``data`` is a JSON array of byte values (0-255).
    ``is_spoiler`` is carried for completeness but does not change
    ``filename``.
    """

    model_config = ConfigDict(frozen=True)

    filename: StrictStr
    is_spoiler: StrictBool | None = None
    data: bytes

    @field_validator("data", mode="before")
    @classmethod
    def _coerce_byte_array(cls, value: Any) -> Any:
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        if not isinstance(value, list):
            raise ValueError("data must be an array of byte values")
        if any(isinstance(v, bool) or not isinstance(v, int) for v in value):
            raise ValueError("data must contain only integers")
        try:
            return bytes(value)
        except ValueError as exc:
            raise ValueError(f"data values must be in range 0-255: {exc}") from exc

    @field_serializer("data", when_used="json")
    def _serialize_byte_array(self, data: bytes) -> list[int]:
        return list(data)


class TransportEnvelope(BaseModel):
    """One inbound delivery request, decoded from a queue message."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    target_uri: StrictStr | None = Field(default=None, alias="webhook_uri")
    payload: WebhookPayload
    attachments: list[Attachment] = Field(default_factory=list, alias="files")

    @field_validator("attachments", mode="before")
    @classmethod
    def _null_attachments_are_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def has_attachments(self) -> bool:
        return bool(self.attachments)

    def to_wire(self) -> bytes:
        """Serialize back to the queue wire format (UTF-8 JSON)."""
        document = self.model_dump(mode="json", by_alias=True)
        return json.dumps(document, separators=(",", ":")).encode("utf-8")


def _check_encodable(envelope: TransportEnvelope) -> None:
    # JSON escapes can smuggle lone surrogates past str.decode("utf-8").
    texts = [envelope.payload.to_json()]
    texts.extend(a.filename for a in envelope.attachments)
    if envelope.target_uri:
        texts.append(envelope.target_uri)
    for text in texts:
        try:
            text.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise DecodeError(
                f"Envelope contains text that cannot be encoded as UTF-8: {exc}"
            ) from exc


def decode_envelope(raw: bytes | str) -> TransportEnvelope:
    """Deserialize and validate a raw queue message body.

    Raises
    ------
    DecodeError
        If the body is not UTF-8, not a JSON object, fails model
        validation (e.g. ``payload.content`` is missing), or carries
        escaped text (lone surrogates) that cannot be re-encoded.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"Message body is not valid UTF-8: {exc}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"Invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise DecodeError(
            f"Envelope must be a JSON object, got {type(data).__name__}"
        )

    try:
        envelope = TransportEnvelope.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(f"Envelope validation failed: {exc}") from exc

    _check_encodable(envelope)
    return envelope
