"""
Async UESTC portal client.

Example:
    >>> async with UestcClient() as client:
    ...     await client.wechat_login()
    ...     async with client.get("https://eportal.uestc.edu.cn/new/index.html") as resp:
    ...         print(resp.status)
"""
import asyncio
from typing import Optional

import aiohttp

from .core.auth import (
    HttpRequest,
    HttpResponse,
    PersistSession,
    Sleep,
    logout_flow,
    password_login_flow,
    probe_flow,
    wechat_login_flow,
)
from .core.base import BaseClient
from .core.config import DEFAULT_COOKIE_FILE
from .core.cookies import AiohttpJarAdapter, AsyncCookieStorage
from .core.exceptions import CookiePersistError, NetworkFailureError
from .core.results import LoginResult, ProbeResult
from .core.session_factory import SessionFactory


class UestcClient(BaseClient):
    """
    Asynchronous client for the UESTC authentication portal.

    One ``aiohttp.ClientSession`` (and so one cookie jar) backs logins and
    every request made through the client. It is created lazily inside the
    running event loop, at which point persisted cookies are loaded.
    """

    def __init__(
        self,
        cookie_file=DEFAULT_COOKIE_FILE,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        **kwargs
    ):
        """
        Initialize client.

        Args:
            cookie_file: Where to persist cookies; None keeps them in memory
            session: Existing aiohttp session to use (not closed by ``close``)
            **kwargs: ``config``, ``store``, ``display``, ``rng``
        """
        super().__init__(cookie_file, **kwargs)
        self._session: Optional[aiohttp.ClientSession] = None
        self._owns_session = session is None
        if session is not None:
            self._attach(session)

    def _attach(self, session: aiohttp.ClientSession) -> None:
        self._session = session
        self._jar_adapter = AiohttpJarAdapter(session.cookie_jar)
        self._load_persisted()

    def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session is created and open."""
        if self._session is None or self._session.closed:
            self._owns_session = True
            self._attach(SessionFactory.create_async_session(self._config))
        return self._session

    @property
    def session(self) -> aiohttp.ClientSession:
        """The underlying aiohttp session (created on first access)."""
        return self._ensure_session()

    async def __aenter__(self) -> 'UestcClient':
        """Async context manager entry."""
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close client and release resources."""
        if self._session and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None
        self._store.close()

    def _proxy(self) -> Optional[str]:
        return self._config.proxy.to_aiohttp_proxy() if self._config.proxy else None

    async def _send(self, request: HttpRequest) -> HttpResponse:
        """
        Perform one flow request with the shared cookie jar.

        Raises:
            NetworkFailureError: On connection errors and timeouts
        """
        session = self._ensure_session()
        try:
            async with session.request(
                request.method,
                request.url,
                params=request.params,
                data=request.data,
                headers=request.headers or None,
                allow_redirects=request.allow_redirects,
                proxy=self._proxy(),
            ) as response:
                text = await response.text(errors='replace')
                return HttpResponse.build(
                    status=response.status,
                    url=str(response.url),
                    text=text,
                    location=response.headers.get('Location'),
                )
        except asyncio.TimeoutError as e:
            raise NetworkFailureError(f"{request.method} {request.url} timed out") from e
        except aiohttp.ClientError as e:
            raise NetworkFailureError(f"{request.method} {request.url} failed: {e}") from e

    async def _persist(self) -> None:
        data = self._snapshot()
        try:
            if isinstance(self._store, AsyncCookieStorage):
                await self._store.save_async(data)
            else:
                self._store.save(data)
        except CookiePersistError as e:
            self._report_persist_failure(e)

    async def _perform(self, command):
        if isinstance(command, HttpRequest):
            return await self._send(command)
        if isinstance(command, Sleep):
            await asyncio.sleep(command.seconds)
            return None
        if isinstance(command, PersistSession):
            await self._persist()
            return None
        self._handle_display(command)
        return None

    async def _run(self, flow):
        """Drive a flow generator to completion and return its result."""
        try:
            command = next(flow)
            while True:
                try:
                    outcome = await self._perform(command)
                except NetworkFailureError as e:
                    command = flow.throw(e)
                else:
                    command = flow.send(outcome)
        except StopIteration as stop:
            return stop.value

    async def login(
        self,
        username: str,
        password: str,
        service_url: Optional[str] = None
    ) -> LoginResult:
        """
        Log in with username and password.

        Skips the login when the current session is still valid.

        Args:
            username: Student or staff number
            password: Portal password (never stored)
            service_url: Service to authenticate for (portal home by default)

        Returns:
            ``LoginResult.ALREADY_AUTHENTICATED`` or ``LoginResult.SUCCESS``

        Raises:
            CredentialsInvalidError: Wrong username or password
            ProtocolUnexpectedResponseError: The portal answered unexpectedly
            NetworkFailureError: The portal could not be reached
        """
        return await self._run(password_login_flow(
            username, password, service_url, self._config.endpoints, self._rng
        ))

    async def wechat_login(self, service_url: Optional[str] = None) -> LoginResult:
        """
        Log in by scanning a QR code with WeChat.

        Returns:
            ``LoginResult.ALREADY_AUTHENTICATED`` or ``LoginResult.SUCCESS``

        Raises:
            QrExpiredError: The code expired or was never confirmed
            QrCancelledError: The user cancelled on the phone
            ProtocolUnexpectedResponseError: Unexpected portal or WeChat response
            NetworkFailureError: The portal could not be reached
        """
        return await self._run(wechat_login_flow(
            service_url, self._config.endpoints, self._config.qr
        ))

    async def probe(self) -> ProbeResult:
        """Check whether the current cookies hold a live session."""
        return await self._run(probe_flow(self._config.endpoints))

    async def is_session_active(self) -> bool:
        return (await self.probe()) is ProbeResult.VALID

    async def logout(self) -> None:
        """
        Log out of the portal and forget the local session.

        The jar and cookie file are cleared even if the portal is unreachable.

        Raises:
            CookiePersistError: If the cookie file cannot be deleted
        """
        try:
            await self._run(logout_flow(self._config.endpoints))
        finally:
            self._clear_local()

    def request(self, method: str, url: str, **kwargs):
        """
        Start a request with the authenticated cookie jar.

        Returns the aiohttp request context manager, use it with ``async with``.
        """
        session = self._ensure_session()
        if 'proxy' not in kwargs and self._config.proxy:
            kwargs['proxy'] = self._proxy()
        return session.request(method, url, **kwargs)

    def get(self, url: str, **kwargs):
        return self.request('GET', url, **kwargs)

    def post(self, url: str, **kwargs):
        return self.request('POST', url, **kwargs)

    def put(self, url: str, **kwargs):
        return self.request('PUT', url, **kwargs)

    def patch(self, url: str, **kwargs):
        return self.request('PATCH', url, **kwargs)

    def delete(self, url: str, **kwargs):
        return self.request('DELETE', url, **kwargs)

    def head(self, url: str, **kwargs):
        return self.request('HEAD', url, **kwargs)
