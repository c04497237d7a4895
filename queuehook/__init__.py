"""queuehook: relay message-queue envelopes to webhook endpoints.

Each queue message carries a webhook payload, an optional destination
override, and optional binary attachments.  queuehook decodes it,
resolves the destination, sends it as JSON (or multipart/form-data when
files are attached), and reports the delivered message id.
"""

__version__ = "0.1.0"
__description__ = "Relay message-queue envelopes to webhook endpoints"

from queuehook.core.handler import MessageHandler
from queuehook.models.envelopes import TransportEnvelope, decode_envelope
from queuehook.cli.app import app as cli

__all__ = ["MessageHandler", "TransportEnvelope", "decode_envelope", "cli", "__version__"]
