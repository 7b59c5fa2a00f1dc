"""
Client configuration module.

Provides configuration for the portal endpoints, the HTTP transports
and the QR polling budget.
"""
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from urllib.parse import urlparse


IDAS_BASE_URL = 'https://idas.uestc.edu.cn/authserver'

DEFAULT_COOKIE_FILE = 'uestc_cookies.json'

DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/142.0.0.0 Safari/537.36'
)


@dataclass
class PortalEndpoints:
    """
    URLs of the authentication portal.

    Everything derives from ``base_url`` unless overridden.
    """
    base_url: str = IDAS_BASE_URL
    default_service: str = 'https://eportal.uestc.edu.cn/new/index.html'
    login_path: str = '/login'
    probe_path: str = '/index.do'
    logout_path: str = '/logout'
    wechat_entry_path: str = '/combinedLogin.do'

    @property
    def login_url(self) -> str:
        return f"{self.base_url}{self.login_path}"

    @property
    def probe_url(self) -> str:
        return f"{self.base_url}{self.probe_path}"

    @property
    def logout_url(self) -> str:
        return f"{self.base_url}{self.logout_path}"

    @property
    def wechat_entry_url(self) -> str:
        return f"{self.base_url}{self.wechat_entry_path}"

    def is_login_page(self, url: Optional[str]) -> bool:
        """Check whether ``url`` points at the portal's login form."""
        if not url:
            return False
        parsed = urlparse(url)
        login = urlparse(self.login_url)
        return parsed.netloc == login.netloc and parsed.path.rstrip('/') == login.path


@dataclass
class ProxyConfig:
    """
    Proxy configuration.

    Supports HTTP and HTTPS proxies.
    """
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def _authenticated_url(self) -> Optional[str]:
        if not self.url:
            return None

        if self.username and self.password and '://' in self.url:
            protocol, rest = self.url.split('://', 1)
            return f"{protocol}://{self.username}:{self.password}@{rest}"

        return self.url

    def to_aiohttp_proxy(self) -> Optional[str]:
        """Convert to aiohttp proxy format."""
        return self._authenticated_url()

    def to_requests_proxies(self) -> Dict[str, str]:
        """Convert to a requests ``proxies`` mapping."""
        url = self._authenticated_url()
        if not url:
            return {}
        return {'http': url, 'https': url}


@dataclass
class TimeoutConfig:
    """Timeout configuration, in seconds."""
    total: float = 30.0  # Whole request, redirects included
    connect: float = 10.0

    def to_aiohttp_timeout(self):
        """Convert to aiohttp ClientTimeout."""
        import aiohttp
        return aiohttp.ClientTimeout(total=self.total, connect=self.connect)

    def to_requests_timeout(self) -> tuple:
        """Convert to a requests ``(connect, read)`` timeout tuple."""
        return (self.connect, self.total)


@dataclass
class QrConfig:
    """
    QR login polling budget.

    Polling stops at whichever bound is hit first.
    """
    poll_interval: float = 2.0
    max_attempts: int = 150
    timeout: float = 300.0


@dataclass
class ClientConfig:
    """
    Complete client configuration.

    Centralizes all configuration options shared by the async and
    blocking clients.
    """
    endpoints: PortalEndpoints = field(default_factory=PortalEndpoints)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    qr: QrConfig = field(default_factory=QrConfig)
    proxy: Optional[ProxyConfig] = None
    verify_ssl: bool = True

    # The portal serves a different page to non-browser agents
    user_agent: str = DEFAULT_USER_AGENT
    extra_headers: Dict[str, str] = field(default_factory=dict)

    # Applied to the client logger unless the root logger is configured
    log_level: int = 20  # logging.INFO

    @classmethod
    def default(cls) -> 'ClientConfig':
        """Create default configuration."""
        return cls()

    @classmethod
    def with_proxy(cls, proxy_url: str, **kwargs) -> 'ClientConfig':
        """Create configuration with proxy."""
        return cls(proxy=ProxyConfig(url=proxy_url), **kwargs)

    @classmethod
    def insecure(cls, **kwargs) -> 'ClientConfig':
        """Create configuration with SSL verification disabled."""
        return cls(verify_ssl=False, **kwargs)

    def get_headers(self) -> Dict[str, str]:
        """Default headers sent with every request."""
        return {
            'User-Agent': self.user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'zh-CN,zh;q=0.9,en;q=0.8',
            **self.extra_headers
        }

    def get_aiohttp_connector_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp TCPConnector."""
        kwargs: Dict[str, Any] = {'limit_per_host': 10}
        if not self.verify_ssl:
            kwargs['ssl'] = False
        return kwargs

    def get_aiohttp_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession (cookie jar excluded)."""
        return {
            'headers': self.get_headers(),
            'timeout': self.timeout.to_aiohttp_timeout(),
        }
