"""Domain-specific exception hierarchy for promptcast."""

from __future__ import annotations


class PromptcastError(Exception):
    """Base class for all domain-specific errors raised by promptcast."""


class PreconditionError(PromptcastError, ValueError):
    """Raised when caller input is rejected before any request is sent."""


class CompletionFormatError(PromptcastError):
    """Raised when the completion endpoint returns a response without the expected payload."""


class DecodeError(PromptcastError):
    """Raised when the structured arguments returned by the model are not valid JSON."""

    def __init__(self, message: str, *, raw_response: str) -> None:
        """Store the (redacted) raw response that failed to decode."""
        super().__init__(message)
        self.raw_response = raw_response


class ResponseValidationError(PromptcastError):
    """Raised when a decoded response does not conform to the expected schema."""

    def __init__(
        self,
        message: str,
        *,
        path: str = "$",
        expected: str | None = None,
        actual: str | None = None,
        raw_response: str | None = None,
    ) -> None:
        """Capture where validation failed and what was expected there."""
        super().__init__(message)
        self.path = path
        self.expected = expected
        self.actual = actual
        self.raw_response = raw_response


class CardinalityError(ResponseValidationError):
    """Raised when a list result holds fewer values than the requested minimum."""


__all__ = [
    "CardinalityError",
    "CompletionFormatError",
    "DecodeError",
    "PreconditionError",
    "PromptcastError",
    "ResponseValidationError",
]
