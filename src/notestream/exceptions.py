"""Custom exceptions for notestream."""

from __future__ import annotations


class NotestreamError(Exception):
    """Base exception for notestream operations."""


class ConfigurationError(NotestreamError):
    """Generator credentials are missing or unusable."""


class GenerationError(NotestreamError):
    """Error during the call to the note generator."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def user_message(self) -> str:
        """Message suitable for showing to the person recording."""
        return f"AI error: {self}"


class RateLimitError(GenerationError):
    """Rate limited by the generator (HTTP 429)."""

    @property
    def user_message(self) -> str:
        return "Rate limit reached. Please wait."


class AuthenticationError(GenerationError):
    """Generator rejected the credentials (HTTP 401)."""

    @property
    def user_message(self) -> str:
        return "Invalid API key."


class ResponseError(NotestreamError):
    """The generator answered, but the answer cannot be applied."""


class MalformedResponseError(ResponseError):
    """Response is not valid JSON or is missing required fields."""


class LowConfidenceError(ResponseError):
    """Response confidence is below the admission threshold."""


class HallucinationError(ResponseError):
    """Generated text is implausibly long compared to its source."""
