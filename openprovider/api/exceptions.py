"""
Custom exceptions for OpenProvider API operations
"""

from typing import Optional


class OpenProviderError(Exception):
    """Base exception for all OpenProvider client errors"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[int] = None,
        response_data: Optional[dict] = None
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        self.response_data = response_data or {}
        super().__init__(self.message)

    def __str__(self):
        details = []
        if self.status_code:
            details.append(f"HTTP {self.status_code}")
        if self.code is not None:
            details.append(f"code {self.code}")
        if details:
            return f"{self.__class__.__name__} ({', '.join(details)}): {self.message}"
        return f"{self.__class__.__name__}: {self.message}"


ClientError = OpenProviderError


class AuthenticationFailedError(OpenProviderError):
    """Raised when credentials are rejected or the token is missing or expired.

    This is the one error a caller is expected to recover from by logging in
    again, installing the new token and retrying the call.
    """
    pass


class NotFoundError(OpenProviderError):
    """Raised when a zone or record does not exist or is not owned by the account"""
    pass


class RecordMismatchError(OpenProviderError):
    """Raised when the original record sent with an update no longer matches"""
    pass


class ValidationError(OpenProviderError):
    """Raised when input is rejected, locally or by server-side validation"""
    pass


class TransportError(OpenProviderError):
    """Raised when network/connection errors occur"""
    pass


class ProtocolError(OpenProviderError):
    """Raised when a response does not have the expected shape"""
    pass


class RemoteError(OpenProviderError):
    """Raised when OpenProvider returns an error code this library does not classify"""
    pass
