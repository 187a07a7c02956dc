"""
Store API Error Taxonomy

Every failure of a store API call is reported as one of these exceptions.
The split tells callers which remediation applies:

    - ServerError: the server explained itself, show its message
    - HttpStatusError: bare non-2xx status, show a generic status message
    - UnderlyingError / BadURLError: the server was never reached
    - DecodingError: the server answered 2xx with an unexpected body

Author: Khalil_Bannouri
Version: 1.0.0
"""

from typing import Optional

from pos_client.schemas import ErrorResponse


class ApiError(Exception):
    """Base class for all classified store API failures."""

    @property
    def description(self) -> str:
        """Human-readable, user-facing description of the failure."""
        return "Store API error."

    def __str__(self) -> str:
        return self.description


class BadURLError(ApiError):
    """The request URL could not be constructed; no I/O was attempted."""

    def __init__(self, url: Optional[str] = None):
        super().__init__(url)
        self.url = url

    @property
    def description(self) -> str:
        return "Invalid URL."


class HttpStatusError(ApiError):
    """Non-2xx response without a parseable error body."""

    def __init__(self, status_code: int):
        super().__init__(status_code)
        self.status_code = status_code

    @property
    def description(self) -> str:
        return f"HTTP status error: {self.status_code}"


class ServerError(ApiError):
    """Non-2xx response carrying a structured ``{error, message}`` body."""

    def __init__(self, response: ErrorResponse):
        super().__init__(response.error, response.message)
        self.response = response

    @property
    def error(self) -> str:
        return self.response.error

    @property
    def message(self) -> str:
        return self.response.message

    @property
    def description(self) -> str:
        return self.response.description


class DecodingError(ApiError):
    """2xx response whose body did not match the expected schema."""

    def __init__(self, cause: Exception):
        super().__init__(cause)
        self.cause = cause

    @property
    def description(self) -> str:
        return f"Failed to decode response: {self.cause}"


class UnderlyingError(ApiError):
    """Transport-level failure (connection refused, timeout, ...)."""

    def __init__(self, cause: Exception):
        super().__init__(cause)
        self.cause = cause

    @property
    def description(self) -> str:
        return str(self.cause)
