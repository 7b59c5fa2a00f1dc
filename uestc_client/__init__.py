"""
uestc_client - Python client for the UESTC authentication portal.

Usage:
    >>> from uestc_client import UestcClient
    >>>
    >>> async with UestcClient() as client:
    ...     await client.wechat_login()
    ...     async with client.get("https://eportal.uestc.edu.cn/new/index.html") as resp:
    ...         print(resp.status)
"""

from .client import UestcClient
from .blocking import UestcBlockingClient
from .display import QrDisplay, TerminalQrDisplay
from .core.logging import setup_logging

# Configuration
from .core.config import (
    ClientConfig,
    PortalEndpoints,
    ProxyConfig,
    TimeoutConfig,
    QrConfig,
)

# Results and errors
from .core.results import LoginResult, ProbeResult, QrStatus
from .core.exceptions import (
    UestcClientError,
    CredentialsInvalidError,
    ProtocolUnexpectedResponseError,
    NetworkFailureError,
    QrLoginError,
    QrExpiredError,
    QrCancelledError,
    CookieFileCorruptError,
    CookiePersistError,
    CookiePersistWarning,
    PasswordEncryptionError,
)

# Cookie storage
from .core.cookies import (
    CookieRecord,
    SessionData,
    CookieStorage,
    JSONCookieStore,
    MemoryCookieStore,
)

__version__ = '0.1.0'


__all__ = [
    'UestcClient',
    'UestcBlockingClient',
    'QrDisplay',
    'TerminalQrDisplay',
    'ClientConfig',
    'PortalEndpoints',
    'ProxyConfig',
    'TimeoutConfig',
    'QrConfig',
    'LoginResult',
    'ProbeResult',
    'QrStatus',
    'UestcClientError',
    'CredentialsInvalidError',
    'ProtocolUnexpectedResponseError',
    'NetworkFailureError',
    'QrLoginError',
    'QrExpiredError',
    'QrCancelledError',
    'CookieFileCorruptError',
    'CookiePersistError',
    'CookiePersistWarning',
    'PasswordEncryptionError',
    'CookieRecord',
    'SessionData',
    'CookieStorage',
    'JSONCookieStore',
    'MemoryCookieStore',
    'setup_logging',
]
