"""
Exception classes for the terminal attribution system.

The matching engine itself never raises. These exceptions belong to its
collaborators: record adapters, roster sources and configuration loading.
All of them inherit from AttributionError and carry a code, a message and
optional details.
"""

from typing import Optional


class AttributionError(Exception):
    """Base exception for all terminal attribution errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class RecordError(AttributionError):
    """Raised when a customer or terminal row has an unusable shape."""

    pass


class ConfigurationError(AttributionError):
    """Raised when configuration values are invalid."""

    pass


class RosterSourceError(AttributionError):
    """Raised when a roster cannot be read (file I/O, HTTP, malformed JSON)."""

    pass
