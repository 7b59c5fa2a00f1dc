"""
Blocking UESTC portal client.

Runs the same login flows as ``UestcClient`` on the calling thread, over
a ``requests.Session``.

Example:
    >>> with UestcBlockingClient() as client:
    ...     client.wechat_login()
    ...     print(client.get("https://eportal.uestc.edu.cn/new/index.html").status_code)
"""
import time
from typing import Optional

import requests

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
from .core.cookies import RequestsJarAdapter
from .core.exceptions import CookiePersistError, NetworkFailureError
from .core.results import LoginResult, ProbeResult
from .core.session_factory import SessionFactory


class UestcBlockingClient(BaseClient):
    """
    Blocking client for the UESTC authentication portal.

    Persisted cookies are loaded into the ``requests`` jar on construction.
    """

    def __init__(
        self,
        cookie_file=DEFAULT_COOKIE_FILE,
        *,
        session: Optional[requests.Session] = None,
        **kwargs
    ):
        """
        Initialize client.

        Args:
            cookie_file: Where to persist cookies; None keeps them in memory
            session: Existing requests session to use (not closed by ``close``)
            **kwargs: ``config``, ``store``, ``display``, ``rng``
        """
        super().__init__(cookie_file, **kwargs)
        self._owns_session = session is None
        self._session = session or SessionFactory.create_sync_session(self._config)
        self._jar_adapter = RequestsJarAdapter(self._session.cookies)
        self._load_persisted()

    @property
    def session(self) -> requests.Session:
        """The underlying requests session."""
        return self._session

    def __enter__(self) -> 'UestcBlockingClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        """Close client and release resources."""
        if self._owns_session:
            self._session.close()
        self._store.close()

    def _send(self, request: HttpRequest) -> HttpResponse:
        """
        Perform one flow request with the shared cookie jar.

        Raises:
            NetworkFailureError: On connection errors and timeouts
        """
        try:
            response = self._session.request(
                request.method,
                request.url,
                params=request.params,
                data=request.data,
                headers=request.headers or None,
                allow_redirects=request.allow_redirects,
                timeout=self._config.timeout.to_requests_timeout(),
            )
        except requests.RequestException as e:
            raise NetworkFailureError(f"{request.method} {request.url} failed: {e}") from e

        return HttpResponse.build(
            status=response.status_code,
            url=response.url,
            text=response.text,
            location=response.headers.get('Location'),
        )

    def _persist(self) -> None:
        try:
            self._store.save(self._snapshot())
        except CookiePersistError as e:
            self._report_persist_failure(e)

    def _perform(self, command):
        if isinstance(command, HttpRequest):
            return self._send(command)
        if isinstance(command, Sleep):
            time.sleep(command.seconds)
            return None
        if isinstance(command, PersistSession):
            self._persist()
            return None
        self._handle_display(command)
        return None

    def _run(self, flow):
        """Drive a flow generator to completion and return its result."""
        try:
            command = next(flow)
            while True:
                try:
                    outcome = self._perform(command)
                except NetworkFailureError as e:
                    command = flow.throw(e)
                else:
                    command = flow.send(outcome)
        except StopIteration as stop:
            return stop.value

    def login(
        self,
        username: str,
        password: str,
        service_url: Optional[str] = None
    ) -> LoginResult:
        """
        Log in with username and password.

        See ``UestcClient.login``.
        """
        return self._run(password_login_flow(
            username, password, service_url, self._config.endpoints, self._rng
        ))

    def wechat_login(self, service_url: Optional[str] = None) -> LoginResult:
        """
        Log in by scanning a QR code with WeChat.

        See ``UestcClient.wechat_login``.
        """
        return self._run(wechat_login_flow(
            service_url, self._config.endpoints, self._config.qr
        ))

    def probe(self) -> ProbeResult:
        return self._run(probe_flow(self._config.endpoints))

    def is_session_active(self) -> bool:
        return self.probe() is ProbeResult.VALID

    def logout(self) -> None:
        """
        Log out of the portal and forget the local session.

        Raises:
            CookiePersistError: If the cookie file cannot be deleted
        """
        try:
            self._run(logout_flow(self._config.endpoints))
        finally:
            self._clear_local()

    def request(self, method: str, url: str, **kwargs) -> requests.Response:
        """Send a request with the authenticated cookie jar."""
        kwargs.setdefault('timeout', self._config.timeout.to_requests_timeout())
        return self._session.request(method, url, **kwargs)

    def get(self, url: str, **kwargs) -> requests.Response:
        return self.request('GET', url, **kwargs)

    def post(self, url: str, **kwargs) -> requests.Response:
        return self.request('POST', url, **kwargs)

    def put(self, url: str, **kwargs) -> requests.Response:
        return self.request('PUT', url, **kwargs)

    def patch(self, url: str, **kwargs) -> requests.Response:
        return self.request('PATCH', url, **kwargs)

    def delete(self, url: str, **kwargs) -> requests.Response:
        return self.request('DELETE', url, **kwargs)

    def head(self, url: str, **kwargs) -> requests.Response:
        return self.request('HEAD', url, **kwargs)
