from typing import Optional


class NeuroGenError(Exception):
    """Base class for errors raised inside the chat pipeline."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source = source


class InputError(NeuroGenError):
    """Inbound message missing or not a string. Handled at the HTTP boundary."""


class UpstreamUnavailable(NeuroGenError):
    """The completion or fixtures provider is unreachable or not configured."""


class CompletionTimeout(UpstreamUnavailable):
    """The completion call ran past its deadline."""
