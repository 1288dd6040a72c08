"""
Error types raised across the notifier
"""

from typing import List, Optional


class NotifierError(Exception):
    """Base class for all notifier errors"""


class ConfigurationError(NotifierError):
    """Required settings are missing or invalid. Fatal at startup."""

    def __init__(self, message: str, missing: Optional[List[str]] = None,
                 invalid: Optional[List[str]] = None):
        super().__init__(message)
        self.missing = missing or []
        self.invalid = invalid or []

    @property
    def fields(self) -> List[str]:
        """Every offending variable, missing ones first"""
        return self.missing + self.invalid


class UpstreamError(NotifierError):
    """The Diversion API answered with a non-success status or could not be reached"""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class CommitPayloadError(NotifierError):
    """The response body is not JSON or has no extractable commit list"""


class DeliveryError(NotifierError):
    """The chat platform refused a message"""
