"""Exception types shared across the store, imaging and advisor layers.

Not-found conditions are never raised; store operations return ``None`` or
``False`` for those instead.
"""

from __future__ import annotations


class KarigarError(Exception):
    pass


class ConfigurationError(KarigarError):
    """No credential (or an unknown backend) was configured for the advisor."""


class GenerationError(KarigarError):
    """An advisor call failed; ``str(exc)`` is safe to show to the user."""


class CorruptedStateError(KarigarError):
    """A persisted collection could not be decoded."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Persisted value for {key!r} is corrupted: {reason}")
        self.key = key
        self.reason = reason


class SettingsError(KarigarError):
    pass


class ImageCompressionError(KarigarError):
    pass


class ImageTooLargeError(ImageCompressionError):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Image is {size} bytes; the limit is {limit} bytes")
        self.size = size
        self.limit = limit
