"""Request builder — turns a webhook payload into an outbound HTTP request.

Two encodings are produced:

* **JSON** when there are no attachments: ``POST`` with
  ``Content-Type: application/json`` and the serialized payload as body.
* **multipart/form-data** when attachments are present: a ``payload_json``
  field carrying the same serialized payload, followed by one part per
  attachment named ``file0``, ``file1``, ... in input order.

The builder only shapes the request; sending it is the Dispatcher's job.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

import requests

from queuehook.models.envelopes import Attachment, WebhookPayload

logger = logging.getLogger(__name__)

DEFAULT_ATTACHMENT_CONTENT_TYPE = "application/octet-stream"
PAYLOAD_FIELD = "payload_json"

# RFC 6838 type/subtype, optionally followed by ;name=value parameters.
_TOKEN = r"[A-Za-z0-9][A-Za-z0-9!#$&^_.+-]*"
_MIME_TYPE = re.compile(
    rf"^{_TOKEN}/{_TOKEN}(\s*;\s*{_TOKEN}=(?:{_TOKEN}|\"[^\"]*\"))*$"
)


class PartEncodingError(RuntimeError):
    """Raised when a multipart part cannot be constructed."""


class RequestBuilder:
    """Builds ``requests.Request`` objects for webhook delivery.

    Parameters
    ----------
    attachment_content_type:
        The content type given to every attachment part.  No sniffing is
        done; every file goes out under this one type.
    """

    def __init__(
        self, attachment_content_type: str = DEFAULT_ATTACHMENT_CONTENT_TYPE
    ) -> None:
        self._attachment_content_type = attachment_content_type

    @property
    def attachment_content_type(self) -> str:
        return self._attachment_content_type

    def build(
        self,
        target_uri: str,
        payload: WebhookPayload,
        attachments: Sequence[Attachment] = (),
    ) -> requests.Request:
        """Build the outbound request for one message.

        Raises
        ------
        PartEncodingError
            If attachments are present and the attachment content type is
            not a valid MIME type.
        """
        body = payload.to_json()

        if not attachments:
            return requests.Request(
                method="POST",
                url=target_uri,
                headers={"Content-Type": "application/json"},
                data=body.encode("utf-8"),
            )

        content_type = self._checked_content_type()
        files = [
            (f"file{index}", (attachment.filename, attachment.data, content_type))
            for index, attachment in enumerate(attachments)
        ]
        logger.debug("Built multipart request with %d attachment(s)", len(files))
        return requests.Request(
            method="POST",
            url=target_uri,
            data={PAYLOAD_FIELD: body},
            files=files,
        )

    def _checked_content_type(self) -> str:
        content_type = self._attachment_content_type.strip()
        if not _MIME_TYPE.match(content_type):
            raise PartEncodingError(
                f"Cannot attach content type {self._attachment_content_type!r} "
                "to multipart part: not a valid MIME type"
            )
        return content_type
