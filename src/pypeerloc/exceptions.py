"""Custom exception hierarchy for pypeerloc."""

from __future__ import annotations


class PeerLocError(Exception):
    """Base exception for all pypeerloc errors."""


class PeerLocConfigError(PeerLocError):
    """Invalid or missing configuration."""


class SubstrateError(PeerLocError):
    """Durable key-value substrate failure (read, write, or delete)."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class FeedError(PeerLocError):
    """Position feed failure.

    Feed errors are terminal: the subscription that raised one will not
    yield further samples and is not retried automatically.
    """


class FeedPermissionError(FeedError):
    """Location permission was denied or revoked."""


class FeedUnavailableError(FeedError):
    """Location is not available in this environment (e.g. an emulator)."""
