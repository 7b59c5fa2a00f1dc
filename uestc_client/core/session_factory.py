"""HTTP session factory for the async and blocking clients."""
import aiohttp
import requests
from requests.adapters import HTTPAdapter, Retry

from .config import ClientConfig


class SessionFactory:
    """Factory for creating HTTP sessions."""

    @staticmethod
    def create_sync_session(config: ClientConfig) -> requests.Session:
        """Creates a synchronous HTTP session with connection retries."""
        session = requests.Session()
        retries = Retry(total=2, backoff_factor=0.5)
        session.mount('http://', HTTPAdapter(max_retries=retries))
        session.mount('https://', HTTPAdapter(max_retries=retries))
        session.headers.update(config.get_headers())
        session.verify = config.verify_ssl
        if config.proxy:
            session.proxies.update(config.proxy.to_requests_proxies())
        return session

    @staticmethod
    def create_async_session(config: ClientConfig) -> aiohttp.ClientSession:
        """
        Creates an asynchronous HTTP session with its own cookie jar.

        Must be called while an event loop is running.
        """
        connector = aiohttp.TCPConnector(**config.get_aiohttp_connector_kwargs())
        return aiohttp.ClientSession(
            connector=connector,
            cookie_jar=aiohttp.CookieJar(),
            **config.get_aiohttp_session_kwargs()
        )
