"""
Custom exceptions for UESTC portal operations.

Every failure of a login call surfaces as one of these classes. Errors that
map onto a ``LoginResult`` carry it in ``result`` so callers can branch on
the outcome without string matching.
"""
from typing import Optional

from .results import LoginResult


class UestcClientError(Exception):
    """Base exception for all client errors."""

    result: Optional[LoginResult] = None

    def __init__(self, message: str) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class CredentialsInvalidError(UestcClientError):
    """The portal rejected the username/password pair."""

    result = LoginResult.INVALID_CREDENTIALS


class ProtocolUnexpectedResponseError(UestcClientError):
    """The portal answered with a shape the login engine does not recognise."""

    result = LoginResult.PROTOCOL_UNEXPECTED_RESPONSE

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        url: Optional[str] = None,
        excerpt: Optional[str] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            status: HTTP status of the offending response
            url: Final URL of the offending response
            excerpt: Leading part of the response body
        """
        self.status = status
        self.url = url
        self.excerpt = excerpt
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.status is not None:
            parts.append(f"status={self.status}")
        if self.url:
            parts.append(f"url={self.url}")
        return ' '.join(parts)


class NetworkFailureError(UestcClientError):
    """Transport-level failure; retrying the whole call may succeed."""

    result = LoginResult.NETWORK_FAILURE


class QrLoginError(UestcClientError):
    """Base class for terminal QR login failures."""
    pass


class QrExpiredError(QrLoginError):
    """The QR code expired or was not confirmed within the polling budget."""
    pass


class QrCancelledError(QrLoginError):
    """The user cancelled the login on the phone."""
    pass


class CookieFileCorruptError(UestcClientError):
    """The cookie file exists but cannot be parsed into a session."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        self.path = path
        super().__init__(message)


class CookiePersistError(UestcClientError):
    """Writing or deleting the cookie file failed."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        self.path = path
        super().__init__(message)


class PasswordEncryptionError(UestcClientError, ValueError):
    """The password could not be encrypted with the given salt."""
    pass


class CookiePersistWarning(UserWarning):
    """
    Emitted when a login succeeded but its cookies could not be saved.

    The in-memory session is usable; it will not survive a restart.
    Promote to an error with ``warnings.simplefilter('error', CookiePersistWarning)``.
    """
    pass
