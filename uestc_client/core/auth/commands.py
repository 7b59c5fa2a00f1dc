"""
Operations requested by the login flows.

Flows are generators: they yield one of these commands and the client
that drives them sends back the outcome. ``HttpRequest`` is answered with
an ``HttpResponse``; every other command is answered with ``None``.
Transport failures are thrown into the flow as ``NetworkFailureError``.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import urljoin

from ..results import QrStatus


@dataclass
class HttpRequest:
    """A request to send with the client's shared cookie jar."""
    method: str
    url: str
    params: Optional[Dict[str, str]] = None
    data: Optional[Dict[str, str]] = None
    headers: Dict[str, str] = field(default_factory=dict)
    allow_redirects: bool = True


@dataclass
class HttpResponse:
    """
    The parts of a response the flows look at.

    Attributes:
        status: HTTP status code
        url: Final URL after any redirects that were followed
        text: Decoded body
        location: Absolute ``Location`` header, if any
    """
    status: int
    url: str
    text: str = ''
    location: Optional[str] = None

    @classmethod
    def build(cls, status: int, url: str, text: str, location: Optional[str]) -> 'HttpResponse':
        """Create a response, resolving a relative ``Location`` against ``url``."""
        if location:
            location = urljoin(url, location)
        return cls(status=status, url=url, text=text, location=location)

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status < 400 and bool(self.location)

    def excerpt(self, limit: int = 300) -> str:
        text = ' '.join(self.text.split())
        return text[:limit]


@dataclass
class Sleep:
    """Pause between QR polls."""
    seconds: float


@dataclass
class ShowQrCode:
    """Render a QR payload for the user to scan."""
    payload: str


@dataclass
class QrStatusChanged:
    """Tell the display the scan moved to a new state."""
    status: QrStatus


@dataclass
class PersistSession:
    """Write the current cookie jar to the cookie store."""
    pass
