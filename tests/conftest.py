"""Shared test fixtures for queuehook."""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import requests

from queuehook.core.handler import MessageHandler
from queuehook.routing.builder import RequestBuilder
from queuehook.routing.dispatcher import Dispatcher


class RecordingSession(requests.Session):
    """A ``requests.Session`` that records prepared requests instead of sending.

    Returns *response* for every send, or raises *error* when given.
    """

    def __init__(
        self,
        response: requests.Response | None = None,
        error: Exception | None = None,
    ) -> None:
        super().__init__()
        self._response = response
        self._error = error
        self.sent: list[requests.PreparedRequest] = []
        self.send_kwargs: list[dict[str, Any]] = []

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:
        self.sent.append(request)
        self.send_kwargs.append(kwargs)
        if self._error is not None:
            raise self._error
        assert self._response is not None
        return self._response


def make_response(status_code: int = 200, body: bytes | str = b"") -> requests.Response:
    """Build a ``requests.Response`` with a fixed status and body."""
    response = requests.Response()
    response.status_code = status_code
    response._content = body.encode("utf-8") if isinstance(body, str) else body
    return response


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep QUEUEHOOK_* variables and any .env file out of every test."""
    for key in list(os.environ):
        if key.startswith("QUEUEHOOK_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def make_session() -> Callable[..., RecordingSession]:
    """Factory fixture: a RecordingSession answering with a canned response."""

    def _factory(
        status_code: int = 200,
        body: bytes | str = b'{"id": "123"}',
        error: Exception | None = None,
    ) -> RecordingSession:
        return RecordingSession(make_response(status_code, body), error=error)

    return _factory


@pytest.fixture
def session(make_session: Callable[..., RecordingSession]) -> RecordingSession:
    """Convenience: a session whose endpoint answers ``{"id": "123"}``."""
    return make_session()


@pytest.fixture
def make_handler() -> Callable[..., MessageHandler]:
    """Factory fixture: a MessageHandler sending through *session*."""

    def _factory(
        session: requests.Session,
        default_uri: str | None = None,
        attachment_content_type: str = "application/octet-stream",
    ) -> MessageHandler:
        return MessageHandler(
            RequestBuilder(attachment_content_type),
            Dispatcher(session),
            default_uri=default_uri,
        )

    return _factory


@pytest.fixture
def make_envelope_bytes() -> Callable[..., bytes]:
    """Factory fixture: encode an inbound envelope document as queue bytes."""

    def _factory(
        content: str = "hello",
        webhook_uri: str | None = "http://hooks.test/webhooks/1/token",
        files: list[dict[str, Any]] | None = None,
        **payload_fields: Any,
    ) -> bytes:
        document: dict[str, Any] = {
            "webhook_uri": webhook_uri,
            "payload": {"content": content, **payload_fields},
        }
        if files is not None:
            document["files"] = files
        return json.dumps(document).encode("utf-8")

    return _factory
