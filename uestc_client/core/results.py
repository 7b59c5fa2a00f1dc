"""
Outcome enums shared by the login engine and the client facades.
"""
from enum import Enum


class LoginResult(Enum):
    """Outcome of a login attempt."""
    ALREADY_AUTHENTICATED = 'already_authenticated'
    SUCCESS = 'success'
    INVALID_CREDENTIALS = 'invalid_credentials'
    NETWORK_FAILURE = 'network_failure'
    PROTOCOL_UNEXPECTED_RESPONSE = 'protocol_unexpected_response'

    @property
    def is_authenticated(self) -> bool:
        return self in (LoginResult.ALREADY_AUTHENTICATED, LoginResult.SUCCESS)


class ProbeResult(Enum):
    """Liveness of the current cookie jar."""
    VALID = 'valid'
    INVALID = 'invalid'
    NETWORK_FAILURE = 'network_failure'


class QrStatus(Enum):
    """WeChat QR scan status, keyed by ``window.wx_errcode``."""
    WAITING = 408
    SCANNED = 404
    CONFIRMED = 405
    EXPIRED = 402
    CANCELLED = 403
    UNKNOWN = 0

    @classmethod
    def from_code(cls, code: int) -> 'QrStatus':
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN
