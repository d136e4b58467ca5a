"""Pipeline error taxonomy and user-facing error descriptions.

Only conditions that make correct completion impossible are raised as
exceptions. Transient AI failures are absorbed inside the extraction service,
and persistence failures are absorbed by the dedup gate.
"""

from google.genai.errors import APIError, ClientError, ServerError


class CalendarBotError(Exception):
    """Base class for errors raised by the reaction pipeline."""


class MessageUnavailableError(CalendarBotError):
    """The flagged message could not be fetched or has no text."""

    def __init__(self, channel_id: str, timestamp: str):
        super().__init__(f"Message {channel_id}/{timestamp} has no retrievable text")
        self.channel_id = channel_id
        self.timestamp = timestamp


class ClaimStoreUnavailableError(CalendarBotError):
    """The durable claim log could not complete a read or a claim."""


class ExtractionFatalError(CalendarBotError):
    """A non-retryable AI backend failure (bad credentials, invalid request)."""

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(f"{operation} failed: {type(cause).__name__}")
        self.operation = operation
        self.cause = cause


_TIMEOUT_MESSAGE = (
    "Event extraction timed out. Please try adding the reaction again in a moment."
)
_OVERLOADED_MESSAGE = (
    "The AI service is busy right now. Please try again in a few minutes."
)
_FATAL_MESSAGE = (
    "The AI service rejected the request. Please ask an admin to check the bot configuration."
)
_GENERIC_MESSAGE = "Something went wrong while processing this message."


def _is_overloaded(error: BaseException) -> bool:
    if isinstance(error, ServerError):
        return True
    return isinstance(error, ClientError) and error.code == 429


def describe_error(error: BaseException) -> str:
    """Map an exception to a human-readable, category-specific message.

    Raw error strings are never returned so credentials or request details
    cannot leak into a Slack thread.
    """
    if isinstance(error, TimeoutError):
        return _TIMEOUT_MESSAGE
    if isinstance(error, ExtractionFatalError):
        if isinstance(error.cause, TimeoutError):
            return _TIMEOUT_MESSAGE
        if _is_overloaded(error.cause):
            return _OVERLOADED_MESSAGE
        return _FATAL_MESSAGE
    if _is_overloaded(error):
        return _OVERLOADED_MESSAGE
    if isinstance(error, APIError):
        return _FATAL_MESSAGE
    return _GENERIC_MESSAGE
