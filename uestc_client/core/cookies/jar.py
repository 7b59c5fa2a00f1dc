"""
Cookie jar adapters.

Translate between the HTTP libraries' cookie jars and ``CookieRecord``
lists so the same cookie file works for both clients.
"""
import time
from http.cookiejar import http2time
from http.cookies import CookieError, SimpleCookie
from email.utils import formatdate
from typing import Dict, Iterable, List, Optional, Tuple

import aiohttp
from requests.cookies import RequestsCookieJar, create_cookie
from yarl import URL

from ..logging import get_logger
from .models import CookieRecord


logger = get_logger('uestc_client.cookies')


class RequestsJarAdapter:
    """Adapter for ``requests`` cookie jars."""

    def __init__(self, jar: RequestsCookieJar):
        self.jar = jar

    def export(self) -> List[CookieRecord]:
        records = []
        for cookie in self.jar:
            records.append(CookieRecord(
                name=cookie.name,
                value=cookie.value or '',
                domain=cookie.domain,
                path=cookie.path or '/',
                expires=int(cookie.expires) if cookie.expires is not None else None,
                secure=bool(cookie.secure),
                http_only=(
                    cookie.has_nonstandard_attr('HttpOnly')
                    or cookie.has_nonstandard_attr('httponly')
                ),
            ))
        return records

    def load(self, records: Iterable[CookieRecord]) -> int:
        """Put unexpired records into the jar. Returns how many were loaded."""
        now = time.time()
        loaded = 0
        for record in records:
            if record.is_expired(now):
                continue
            self.jar.set_cookie(create_cookie(
                name=record.name,
                value=record.value,
                domain=record.domain,
                path=record.path,
                expires=record.expires,
                secure=record.secure,
                rest={'HttpOnly': None} if record.http_only else {},
            ))
            loaded += 1
        return loaded

    def clear(self) -> None:
        self.jar.clear()


class AiohttpJarAdapter:
    """
    Adapter for ``aiohttp.CookieJar``.

    aiohttp does not expose whether a cookie is host-only, so exported
    cookies are always written as domain cookies.
    """

    def __init__(self, jar: aiohttp.CookieJar):
        self.jar = jar
        # (domain, path, name, value, max-age) -> expiry fixed at first export
        self._max_age_expiry: Dict[Tuple[str, str, str, str, str], int] = {}

    def _expires_of(self, morsel) -> Optional[int]:
        max_age = morsel['max-age']
        if max_age:
            key = (morsel['domain'], morsel['path'], morsel.key, morsel.value, str(max_age))
            if key in self._max_age_expiry:
                return self._max_age_expiry[key]
            try:
                expires = int(time.time()) + int(max_age)
            except ValueError:
                pass
            else:
                self._max_age_expiry[key] = expires
                return expires
        if morsel['expires']:
            return http2time(morsel['expires'])
        return None

    def export(self) -> List[CookieRecord]:
        records = []
        for morsel in self.jar:
            domain = morsel['domain']
            if not domain:
                continue
            records.append(CookieRecord(
                name=morsel.key,
                value=morsel.value,
                domain=domain if domain.startswith('.') else f".{domain}",
                path=morsel['path'] or '/',
                expires=self._expires_of(morsel),
                secure=bool(morsel['secure']),
                http_only=bool(morsel['httponly']),
            ))
        return records

    def load(self, records: Iterable[CookieRecord]) -> int:
        """Put unexpired records into the jar. Returns how many were loaded."""
        now = time.time()
        loaded = 0
        for record in records:
            if record.is_expired(now):
                continue
            host = record.domain.lstrip('.')
            cookie = SimpleCookie()
            try:
                cookie[record.name] = record.value
            except CookieError as e:
                logger.warning(f"Skipping cookie {record.name!r}: {e}")
                continue
            morsel = cookie[record.name]
            if record.domain.startswith('.'):
                morsel['domain'] = host
            morsel['path'] = record.path
            if record.expires is not None:
                morsel['expires'] = formatdate(record.expires, usegmt=True)
            if record.secure:
                morsel['secure'] = True
            if record.http_only:
                morsel['httponly'] = True
            self.jar.update_cookies(cookie, URL.build(scheme='https', host=host))
            loaded += 1
        return loaded

    def clear(self) -> None:
        self.jar.clear()
        self._max_age_expiry.clear()
