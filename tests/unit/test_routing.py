"""Unit tests for target resolution and request building.

The builder must choose JSON for attachment-free messages and multipart
otherwise, naming attachment parts file0..fileN in input order.
"""

from __future__ import annotations

import json

import pytest
import requests

from queuehook.models.envelopes import Attachment, WebhookPayload
from queuehook.routing.builder import PAYLOAD_FIELD, PartEncodingError, RequestBuilder
from queuehook.routing.resolver import NoTargetError, resolve_target


def _prepare(request: requests.Request) -> requests.PreparedRequest:
    return requests.Session().prepare_request(request)


def _attachments(*names: str) -> list[Attachment]:
    return [
        Attachment(filename=name, data=f"bytes-of-{name}".encode())
        for name in names
    ]


# ---------------------------------------------------------------------------
# Test: resolve_target
# ---------------------------------------------------------------------------


class TestResolveTarget:
    """Per-message URI beats the default; no URI at all is an error."""

    @pytest.mark.parametrize("default", [None, "", "http://default"])
    def test_message_uri_wins(self, default):
        assert resolve_target("http://x/y", default) == "http://x/y"

    def test_falls_back_to_default(self):
        assert resolve_target(None, "http://default") == "http://default"

    def test_empty_message_uri_falls_back(self):
        assert resolve_target("", "http://default") == "http://default"

    def test_no_uri_raises(self):
        with pytest.raises(NoTargetError, match="no default URI"):
            resolve_target(None, None)

    def test_empty_strings_raise(self):
        with pytest.raises(NoTargetError):
            resolve_target("", "")


# ---------------------------------------------------------------------------
# Test: JSON requests
# ---------------------------------------------------------------------------


class TestJsonRequest:
    """Without attachments the builder never produces multipart."""

    def test_json_request_shape(self):
        request = RequestBuilder().build("http://x/y", WebhookPayload(content="hi"))
        assert request.method == "POST"
        assert request.url == "http://x/y"
        assert request.headers == {"Content-Type": "application/json"}
        assert request.files == []
        assert request.data == b'{"content":"hi"}'

    def test_empty_attachment_list_is_json(self):
        request = RequestBuilder().build(
            "http://x/y", WebhookPayload(content="hi"), []
        )
        prepared = _prepare(request)
        assert prepared.headers["Content-Type"] == "application/json"
        assert prepared.body == b'{"content":"hi"}'

    def test_invalid_content_type_ignored_without_attachments(self):
        """The attachment content type only matters for multipart parts."""
        request = RequestBuilder("not a mime").build(
            "http://x/y", WebhookPayload(content="hi")
        )
        assert request.headers["Content-Type"] == "application/json"


# ---------------------------------------------------------------------------
# Test: multipart requests
# ---------------------------------------------------------------------------


class TestMultipartRequest:
    """With attachments: one payload_json part plus one part per file."""

    def test_single_attachment(self):
        request = RequestBuilder().build(
            "http://x/y", WebhookPayload(content="hi"), _attachments("a.png")
        )
        assert request.data == {PAYLOAD_FIELD: '{"content":"hi"}'}
        assert request.files == [
            ("file0", ("a.png", b"bytes-of-a.png", "application/octet-stream"))
        ]

    def test_parts_named_in_input_order(self):
        names = ["z.txt", "a.txt", "m.bin", "b.png"]
        request = RequestBuilder().build(
            "http://x/y", WebhookPayload(content="hi"), _attachments(*names)
        )
        assert [field for field, _ in request.files] == [
            "file0", "file1", "file2", "file3",
        ]
        assert [part[0] for _, part in request.files] == names

    def test_encoded_body_has_expected_parts(self):
        request = RequestBuilder().build(
            "http://x/y",
            WebhookPayload(content="hi", username="bot"),
            _attachments("a.png", "b.txt"),
        )
        prepared = _prepare(request)
        body = prepared.body
        assert prepared.headers["Content-Type"].startswith("multipart/form-data; boundary=")
        assert body.count(b"Content-Disposition: form-data") == 3
        assert b'name="payload_json"' in body
        assert b'{"content":"hi","username":"bot"}' in body
        assert b'name="file0"; filename="a.png"' in body
        assert b'name="file1"; filename="b.txt"' in body
        assert body.count(b"Content-Type: application/octet-stream") == 2
        assert body.index(b'name="payload_json"') < body.index(b'name="file0"')
        assert body.index(b'name="file0"') < body.index(b'name="file1"')

    def test_no_content_type_sniffing(self):
        attachments = [Attachment(filename="photo.jpg", data=b"\xff\xd8\xff")]
        request = RequestBuilder().build(
            "http://x/y", WebhookPayload(content=""), attachments
        )
        assert request.files[0][1][2] == "application/octet-stream"

    def test_empty_attachment_data(self):
        request = RequestBuilder().build(
            "http://x/y",
            WebhookPayload(content="hi"),
            [Attachment(filename="empty.txt", data=b"")],
        )
        body = _prepare(request).body
        assert b'filename="empty.txt"' in body

    def test_spoiler_flag_leaves_filename(self):
        attachments = [Attachment(filename="a.png", is_spoiler=True, data=b"x")]
        request = RequestBuilder().build(
            "http://x/y", WebhookPayload(content="hi"), attachments
        )
        assert request.files[0][1][0] == "a.png"

    def test_payload_json_matches_json_body(self):
        payload = WebhookPayload(content="hi", tts=False, embeds=[{"title": "t"}])
        multipart = RequestBuilder().build("http://x/y", payload, _attachments("a"))
        plain = RequestBuilder().build("http://x/y", payload)
        assert multipart.data[PAYLOAD_FIELD].encode() == plain.data
        assert json.loads(plain.data)["embeds"] == [{"title": "t"}]

    def test_custom_content_type(self):
        builder = RequestBuilder("text/plain; charset=utf-8")
        request = builder.build("http://x/y", WebhookPayload(content="hi"), _attachments("a"))
        assert request.files[0][1][2] == "text/plain; charset=utf-8"

    @pytest.mark.parametrize(
        "content_type", ["", "octet-stream", "application/", "bad type/x", "a/b;"]
    )
    def test_invalid_content_type_raises(self, content_type):
        builder = RequestBuilder(content_type)
        with pytest.raises(PartEncodingError, match="not a valid MIME type"):
            builder.build("http://x/y", WebhookPayload(content="hi"), _attachments("a"))
