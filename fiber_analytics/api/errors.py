"""Errors raised by the dashboard API client"""

from typing import Optional


class FiberApiError(Exception):
    """Base class for dashboard API failures"""


class TransportError(FiberApiError):
    """Connection failure or non-success HTTP status"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ResponseValidationError(FiberApiError):
    """Response body did not match the expected schema"""


class ApplicationError(FiberApiError):
    """Response payload carried an explicit failure flag"""
