"""content.errors

Error taxonomy for the event boundary.

Providers raise EventFetchError; schema validation raises GameError with
ErrorType.VALIDATION. The session turns both into a visible error string
plus a fallback choice, so neither ever reaches the UI as an exception.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorType(str, Enum):
    VALIDATION = "validation"
    NETWORK = "network"
    SERVER = "server"
    RESOURCE = "resource"
    RATE_LIMIT = "rate_limit"
    UNKNOWN = "unknown"


_DISPLAY = {
    ErrorType.NETWORK: "Network error: Unable to connect to the server.",
    ErrorType.SERVER: "Server error: Please try again later.",
    ErrorType.RATE_LIMIT: "Too many requests. Please wait a moment and try again.",
}

_THEMED = {
    ErrorType.VALIDATION: "Your supplies seem damaged. Check your inventory and try again.",
    ErrorType.NETWORK: "The radio signal is weak. Unable to reach other survivors.",
    ErrorType.SERVER: "A radiation storm is blocking communications. Try again when it passes.",
    ErrorType.RATE_LIMIT: "You need to rest before trying that again. Wait a moment.",
}


class GameError(Exception):
    def __init__(self, message: str, error_type: ErrorType = ErrorType.UNKNOWN, data: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = str(message)
        self.error_type = error_type
        self.data = data

    @property
    def retryable(self) -> bool:
        return self.error_type in (ErrorType.NETWORK, ErrorType.SERVER, ErrorType.RATE_LIMIT)

    def display_message(self) -> str:
        if self.error_type in _DISPLAY:
            return _DISPLAY[self.error_type]
        if self.error_type == ErrorType.VALIDATION:
            return f"Invalid input: {self.message}"
        if self.error_type == ErrorType.RESOURCE:
            return f"Resource error: {self.message}"
        return f"An unexpected error occurred: {self.message}"

    def themed_message(self) -> str:
        if self.error_type in _THEMED:
            return _THEMED[self.error_type]
        if self.error_type == ErrorType.RESOURCE:
            return f"Resources depleted: {self.message}"
        return f"A strange anomaly blocks your path. {self.message}"


class EventFetchError(GameError):
    """The external event generator could not deliver a usable event."""
