"""
Custom exceptions for the html_blocks converter.

Error philosophy:
  - InvalidInputError         → FAIL HARD: the root handed to the converter is not a Node.
  - InvalidConfigurationError → FAIL HARD: options are not of the documented shape.
  - PreprocessorError         → FAIL HARD, but only once every parser in the
                                fallback chain has failed; single parser
                                failures are logged as warnings.

Everything else (unknown tags, missing attributes, odd nesting) is resolved by
best-effort rules inside the converter and never raises.
"""

from typing import Optional


class HTMLBlocksError(Exception):
    """Base exception for all html_blocks errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_response(self) -> dict:
        """Convert to a JSON-friendly error payload."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details
        }


# --- FAIL HARD: the conversion does not start ---

class InvalidInputError(HTMLBlocksError):
    """
    Raised when the converter is given something that is not a Node.

    Carries the offending type name so callers can tell a missing parse step
    (e.g. a raw HTML string) from a wrong adapter.
    """

    def __init__(self, message: str, received_type: str = "", details: Optional[dict] = None):
        super().__init__(message, details)
        self.received_type = received_type


class InvalidConfigurationError(HTMLBlocksError):
    """
    Raised when caller-supplied options are not of the documented shape.

    Pydantic validation errors are wrapped into this type; their error list
    is kept in ``details["errors"]``.
    """
    pass


# --- Preprocessing: only raised when no parser could read the HTML ---

class PreprocessorError(HTMLBlocksError):
    """
    Raised when every parser in the fallback chain failed.

    Individual parser failures are logged as warnings and the next parser
    is tried.
    """
    pass
