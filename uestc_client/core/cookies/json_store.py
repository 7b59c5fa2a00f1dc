"""
JSON file cookie storage implementation.

Stores the session as a JSON document. Writes go to a temporary file
in the same directory which then replaces the target, so a crash never
leaves a truncated cookie file behind.
"""
import os
import uuid
from pathlib import Path
from typing import Optional, Union

import aiofiles
import aiofiles.os

from ..config import DEFAULT_COOKIE_FILE
from ..exceptions import CookieFileCorruptError, CookiePersistError
from ..logging import get_logger
from .protocols import CookieStorage
from .models import SessionData


logger = get_logger('uestc_client.cookies')


class JSONCookieStore(CookieStorage):
    """
    JSON file based cookie storage.

    Example:
        >>> store = JSONCookieStore("uestc_cookies.json")
        >>> store.save(session_data)
        >>> loaded = store.load()
    """

    def __init__(self, path: Union[str, Path] = DEFAULT_COOKIE_FILE):
        """
        Initialize JSON cookie storage.

        Args:
            path: Cookie file path; parent directories are created on save
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        """Get cookie file path."""
        return self._path

    def _temp_path(self) -> Path:
        return self._path.with_name(f".{self._path.name}.{uuid.uuid4().hex}.tmp")

    def load(self) -> Optional[SessionData]:
        """
        Load session data from the cookie file.

        Returns:
            SessionData if the file exists, None otherwise

        Raises:
            CookieFileCorruptError: If the file cannot be parsed
        """
        try:
            text = self._path.read_text(encoding='utf-8')
        except FileNotFoundError:
            logger.debug(f"No cookie file at {self._path}")
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise CookieFileCorruptError(f"Cannot read cookie file: {e}", str(self._path)) from e

        try:
            data = SessionData.from_json(text)
        except ValueError as e:
            raise CookieFileCorruptError(f"Corrupt cookie file: {e}", str(self._path)) from e

        logger.debug(f"Loaded {len(data.cookies)} cookies from {self._path}")
        return data

    def save(self, data: SessionData) -> None:
        """
        Atomically replace the cookie file with ``data``.

        Raises:
            CookiePersistError: If the file cannot be written
        """
        data.update_timestamp()
        payload = data.to_json()
        tmp = self._temp_path()

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, 'w', encoding='utf-8') as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self._path)
        except OSError as e:
            self._discard(tmp)
            raise CookiePersistError(f"Cannot write cookie file: {e}", str(self._path)) from e

        logger.debug(f"Saved {len(data.cookies)} cookies to {self._path}")

    async def save_async(self, data: SessionData) -> None:
        """
        Atomically replace the cookie file without blocking the event loop.

        Raises:
            CookiePersistError: If the file cannot be written
        """
        data.update_timestamp()
        payload = data.to_json()
        tmp = self._temp_path()

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(tmp, 'w', encoding='utf-8') as f:
                await f.write(payload)
                await f.flush()
                await aiofiles.os.wrap(os.fsync)(f.fileno())
            await aiofiles.os.replace(tmp, self._path)
        except OSError as e:
            self._discard(tmp)
            raise CookiePersistError(f"Cannot write cookie file: {e}", str(self._path)) from e

        logger.debug(f"Saved {len(data.cookies)} cookies to {self._path}")

    @staticmethod
    def _discard(tmp: Path) -> None:
        try:
            tmp.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temporary file {tmp}: {e}")

    def delete(self) -> None:
        """
        Delete the cookie file if present.

        Raises:
            CookiePersistError: If the file exists but cannot be removed
        """
        try:
            self._path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise CookiePersistError(f"Cannot delete cookie file: {e}", str(self._path)) from e
        logger.debug(f"Deleted cookie file {self._path}")

    def exists(self) -> bool:
        return self._path.exists()

    def close(self) -> None:
        """Nothing to release; files are opened per operation."""
        pass

    def __enter__(self) -> 'JSONCookieStore':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"JSONCookieStore({str(self._path)!r})"
