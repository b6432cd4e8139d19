"""Exception types raised by StarSentry."""

from enum import Enum
from typing import Optional


class ApiErrorKind(str, Enum):
    """Classification of a failed GitHub API call."""

    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    TRANSIENT_SERVER_ERROR = "transient_server_error"
    EXHAUSTED_RETRIES = "exhausted_retries"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"


class StarSentryError(Exception):
    """Base exception class for StarSentry."""


class ApiError(StarSentryError):
    """
    A GitHub API call failed and the failure was not absorbed by retries.

    Attributes:
        kind: Classified error kind
        status_code: HTTP status of the last response, if any
    """

    def __init__(self, message: str, kind: ApiErrorKind, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


class StoreError(StarSentryError):
    """Reading or writing a stored analysis result failed."""
