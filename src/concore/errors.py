"""Exception hierarchy for the concore mailbox protocol."""

from __future__ import annotations


class ConcoreError(Exception):
    """Base class for all errors raised by :mod:`concore`."""


class MalformedPayload(ConcoreError, ValueError):
    """A channel payload is not a valid numeric sequence literal."""

    def __init__(self, message: str, text: str | None = None) -> None:
        super().__init__(message)
        self.text = text


class ChannelAccessError(ConcoreError, OSError):
    """A channel file or directory could not be written."""


class ChannelTimeout(ConcoreError, TimeoutError):
    """A bounded read gave up before the channel produced any content."""

    def __init__(self, path, attempts: int) -> None:
        super().__init__(f"No content on channel {path} after {attempts} retries")
        self.path = path
        self.attempts = attempts


class DivisionByZero(ConcoreError, ZeroDivisionError):
    """A node step was requested with a zero time step."""
