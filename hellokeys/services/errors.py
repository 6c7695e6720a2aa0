"""Errors raised by third-party integration services"""

from typing import Any, Optional


class IntegrationError(Exception):
    """A third-party API call failed or the integration is not configured"""

    def __init__(self, message: str, status_code: int = 500, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class NotConfiguredError(IntegrationError):
    """Server-held credentials for an integration are missing"""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, status_code=500, details=details)
