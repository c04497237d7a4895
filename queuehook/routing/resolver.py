"""Target resolution — picks the webhook URI for one envelope."""

from __future__ import annotations


class NoTargetError(RuntimeError):
    """Raised when neither the message nor the configuration names a target."""


def resolve_target(target_uri: str | None, default_uri: str | None) -> str:
    """Return the URI a message should be delivered to.

    A non-empty per-message ``target_uri`` always wins.  Otherwise the
    configured ``default_uri`` is used.  Empty strings count as absent.

    Raises
    ------
    NoTargetError
        If neither URI is available.
    """
    if target_uri:
        return target_uri
    if default_uri:
        return default_uri
    raise NoTargetError(
        "No webhook URI was given with the message, and no default URI is configured."
    )
