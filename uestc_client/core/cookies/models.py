"""
Cookie session data models.

Contains data classes for the persisted session.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
import json
import time


FORMAT_VERSION = 1

# 9999-12-31T23:59:59Z, the last instant an HTTP date can express
MAX_EXPIRES = 253402300799


@dataclass
class CookieRecord:
    """
    One cookie, independent of the HTTP library that holds it.

    Attributes:
        name: Cookie name
        value: Cookie value
        domain: Domain; a leading dot marks a domain cookie
        path: Path scope
        expires: Expiry as epoch seconds, None for session cookies
        secure: Only sent over HTTPS
        http_only: Hidden from scripts
    """
    name: str
    value: str
    domain: str
    path: str = '/'
    expires: Optional[int] = None
    secure: bool = False
    http_only: bool = False

    def is_expired(self, now: Optional[float] = None) -> bool:
        if self.expires is None:
            return False
        now = time.time() if now is None else now
        return self.expires <= now

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'value': self.value,
            'domain': self.domain,
            'path': self.path,
            'expires': self.expires,
            'secure': self.secure,
            'http_only': self.http_only,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CookieRecord':
        """
        Create from dictionary.

        Raises:
            ValueError: If a field is missing or has the wrong type
        """
        for key in ('name', 'value', 'domain', 'path'):
            if not isinstance(data.get(key), str):
                raise ValueError(f"cookie field {key!r} must be a string")

        expires = data.get('expires')
        # bool is an int subclass, reject it explicitly
        if expires is not None and (isinstance(expires, bool) or not isinstance(expires, (int, float))):
            raise ValueError("cookie field 'expires' must be a number or null")
        # NaN fails every comparison, so this also rejects it
        if expires is not None and not 0 <= expires <= MAX_EXPIRES:
            raise ValueError(f"cookie field 'expires' out of range: {expires!r}")

        for key in ('secure', 'http_only'):
            if not isinstance(data.get(key, False), bool):
                raise ValueError(f"cookie field {key!r} must be a boolean")

        return cls(
            name=data['name'],
            value=data['value'],
            domain=data['domain'],
            path=data['path'],
            expires=int(expires) if expires is not None else None,
            secure=data.get('secure', False),
            http_only=data.get('http_only', False),
        )


@dataclass
class SessionData:
    """
    The authenticated session: every cookie held by the client.

    This is also the on-disk cookie file.

    Attributes:
        cookies: Cookies in jar order
        created_at: Session creation timestamp
        updated_at: Last update timestamp
    """
    cookies: List[CookieRecord] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        """
        Convert to dictionary for serialization.

        Returns:
            Dictionary representation
        """
        return {
            'version': FORMAT_VERSION,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
            'cookies': [cookie.to_dict() for cookie in self.cookies],
        }

    @classmethod
    def from_dict(cls, data: Any) -> 'SessionData':
        """
        Create from dictionary, validating its structure.

        Args:
            data: Decoded JSON document

        Returns:
            SessionData instance

        Raises:
            ValueError: If the document is not a valid cookie file
        """
        if not isinstance(data, dict):
            raise ValueError("cookie file must contain a JSON object")
        if data.get('version') != FORMAT_VERSION:
            raise ValueError(f"unsupported cookie file version: {data.get('version')!r}")

        cookies = data.get('cookies')
        if not isinstance(cookies, list):
            raise ValueError("'cookies' must be a list")
        for item in cookies:
            if not isinstance(item, dict):
                raise ValueError("every cookie must be a JSON object")

        try:
            created_at = datetime.fromisoformat(data['created_at'])
            updated_at = datetime.fromisoformat(data['updated_at'])
        except (KeyError, TypeError) as e:
            raise ValueError(f"invalid timestamps: {e}") from e

        return cls(
            cookies=[CookieRecord.from_dict(item) for item in cookies],
            created_at=created_at,
            updated_at=updated_at,
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> 'SessionData':
        """
        Create from JSON string.

        Raises:
            ValueError: On malformed JSON or structure
        """
        return cls.from_dict(json.loads(json_str))

    def is_valid(self) -> bool:
        """A session needs at least one cookie to be worth restoring."""
        return bool(self.cookies)

    def update_timestamp(self) -> None:
        """Update the updated_at timestamp to now."""
        self.updated_at = datetime.now()
