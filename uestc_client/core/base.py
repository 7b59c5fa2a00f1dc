"""
State shared by the async and blocking clients.

Holds the configuration, the cookie store and the QR display, and knows
how to move cookies between the store and whichever HTTP library's jar
the concrete client uses.
"""
import random
import warnings
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from .auth.commands import QrStatusChanged, ShowQrCode
from .config import ClientConfig, DEFAULT_COOKIE_FILE
from .cookies import CookieStorage, JSONCookieStore, MemoryCookieStore, SessionData
from .exceptions import CookieFileCorruptError, CookiePersistError, CookiePersistWarning
from .logging import root_configured, get_logger
from ..display import QrDisplay, TerminalQrDisplay


class BaseClient:
    """
    Base class for the UESTC portal clients.

    Subclasses set ``_jar_adapter`` once their HTTP session exists and
    drive the login flows with their own I/O.
    """

    def __init__(
        self,
        cookie_file: Optional[Union[str, Path]] = DEFAULT_COOKIE_FILE,
        *,
        config: Optional[ClientConfig] = None,
        store: Optional[CookieStorage] = None,
        display: Optional[QrDisplay] = None,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize client.

        Args:
            cookie_file: Where to persist cookies; None keeps them in memory
            config: Client configuration (uses defaults if not provided)
            store: Custom cookie storage, overrides ``cookie_file``
            display: QR display for WeChat login (terminal by default)
            rng: Random source for password encryption (tests only)
        """
        self._config = config or ClientConfig.default()

        if store is not None:
            self._store = store
        elif cookie_file is None:
            self._store = MemoryCookieStore()
        else:
            self._store = JSONCookieStore(cookie_file)

        self._display = display or TerminalQrDisplay()
        self._rng = rng
        self._jar_adapter = None
        self._created_at: Optional[datetime] = None

        self._logger = get_logger('uestc_client.client')
        # Defer to the application's logging setup when there is one
        if not root_configured():
            self._logger.setLevel(self._config.log_level)

    @classmethod
    def with_cookie_file(cls, path: Union[str, Path], **kwargs):
        """Create a client persisting to ``path``."""
        return cls(path, **kwargs)

    @property
    def config(self) -> ClientConfig:
        """Get current configuration."""
        return self._config

    @property
    def store(self) -> CookieStorage:
        """Get the cookie storage."""
        return self._store

    def _load_persisted(self) -> int:
        """
        Load the stored session into the jar.

        A corrupt cookie file counts as no session.

        Returns:
            Number of cookies loaded
        """
        try:
            data = self._store.load()
        except CookieFileCorruptError as e:
            self._logger.warning(f"Ignoring unreadable cookie file, starting without a session: {e}")
            return 0

        if data is None or not data.is_valid():
            return 0

        self._created_at = data.created_at
        loaded = self._jar_adapter.load(data.cookies)
        self._logger.info(f"Restored {loaded} of {len(data.cookies)} persisted cookies")
        return loaded

    def _snapshot(self) -> SessionData:
        """Capture the jar as session data."""
        if self._created_at is None:
            self._created_at = datetime.now()
        return SessionData(
            cookies=self._jar_adapter.export(),
            created_at=self._created_at,
        )

    def _report_persist_failure(self, error: CookiePersistError) -> None:
        self._logger.warning(f"Logged in, but the session could not be saved: {error}")
        warnings.warn(
            f"Session cookies were not persisted: {error}",
            CookiePersistWarning,
            stacklevel=4
        )

    def _handle_display(self, command) -> None:
        if isinstance(command, ShowQrCode):
            self._display.show(command.payload)
        elif isinstance(command, QrStatusChanged):
            self._display.update(command.status)
        else:
            raise TypeError(f"Unsupported flow command: {command!r}")

    def _clear_local(self) -> None:
        """
        Forget the session: empty the jar, then delete the cookie file.

        Raises:
            CookiePersistError: If the cookie file cannot be deleted
        """
        if self._jar_adapter is not None:
            self._jar_adapter.clear()
        self._created_at = None
        self._store.delete()
        self._logger.info("Local session cleared")
