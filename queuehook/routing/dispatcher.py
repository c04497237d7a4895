"""Dispatcher — sends built requests and classifies the response.

A transport-level failure (DNS, refused connection, timeout, malformed
URL) raises ``DeliveryError``.  Any response that arrives counts as
delivered; if its body is not a ``{"id": ...}`` document the outcome
simply carries no identifier.  Status codes are recorded, never acted on.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlsplit

import requests
from pydantic import ValidationError

from queuehook.models.outcomes import DeliveryOutcome, DeliveryResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class DeliveryError(RuntimeError):
    """Raised when a request could not be sent or no response arrived."""


def redact_uri(uri: str | None) -> str:
    """Return only the host (and port, if any) of a URI.

    Webhook URIs embed their credentials in the path and broker URIs in
    the userinfo, so neither is ever logged whole.
    """
    if not uri:
        return "<none>"
    try:
        parts = urlsplit(uri)
        host, port = parts.hostname, parts.port
    except ValueError:
        return "<invalid>"
    if not host:
        return "<invalid>"
    return f"{host}:{port}" if port is not None else host


class Dispatcher:
    """Sends outbound webhook requests over a shared ``requests.Session``.

    The session pools connections across messages but carries no
    per-message state.

    Parameters
    ----------
    session:
        Session to send through.  A new one is created when omitted.
    timeout_seconds:
        Per-request timeout passed to ``Session.send``.  ``None`` waits
        indefinitely.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        timeout_seconds: float | None = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._session = session if session is not None else requests.Session()
        self._timeout_seconds = timeout_seconds

    @property
    def timeout_seconds(self) -> float | None:
        return self._timeout_seconds

    def send(self, request: requests.Request) -> DeliveryOutcome:
        """Send *request* and wait for the response.

        Raises
        ------
        DeliveryError
            On any transport-level failure.
        """
        host = redact_uri(request.url)
        try:
            prepared = self._session.prepare_request(request)
            response = self._session.send(prepared, timeout=self._timeout_seconds)
        except requests.RequestException as exc:
            raise DeliveryError(
                f"Delivery to {host} failed: {type(exc).__name__}: {exc}"
            ) from exc

        logger.debug("Response from %s: HTTP %d", host, response.status_code)
        return DeliveryOutcome(
            status_code=response.status_code,
            result=self._parse_result(response, host),
        )

    @staticmethod
    def _parse_result(
        response: requests.Response, host: str
    ) -> DeliveryResult | None:
        try:
            return DeliveryResult.model_validate_json(response.content)
        except ValidationError:
            logger.warning(
                "Response from %s (HTTP %d) carried no message id",
                host,
                response.status_code,
            )
            return None

    def close(self) -> None:
        """Release pooled connections."""
        self._session.close()

    def __enter__(self) -> Dispatcher:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
