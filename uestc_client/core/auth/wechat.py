"""
WeChat Open Platform QR login helpers.

The portal delegates QR login to WeChat's ``qrconnect`` OAuth page. The
flow only needs four things from WeChat: the QR ``uuid`` (from the XML
variant of the page), the long-poll status endpoint, the ``wx_code``
handed out on confirmation, and the portal callback that trades that code
for a session.
"""
import re
import time
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, urlencode, urlparse

from lxml import etree

from ..exceptions import ProtocolUnexpectedResponseError
from ..logging import get_logger
from ..results import QrStatus


logger = get_logger('uestc_client.wechat')


WECHAT_OPEN_URL = 'https://open.weixin.qq.com'
WECHAT_LP_URL = 'https://lp.open.weixin.qq.com'

_ERRCODE_RE = re.compile(r'window\.wx_errcode\s*=\s*(\d+)')
_CODE_RE = re.compile(r'''window\.wx_code\s*=\s*['"](.+?)['"]''')


@dataclass
class WechatAuthParams:
    """OAuth parameters of the portal's WeChat application."""
    appid: str
    redirect_uri: str
    state: str

    @classmethod
    def from_url(cls, url: str) -> 'WechatAuthParams':
        """
        Parse the ``qrconnect`` URL the portal redirects to.

        Raises:
            ProtocolUnexpectedResponseError: If a parameter is missing
        """
        logger.debug("Parsing WeChat OAuth parameters from URL")
        query = parse_qs(urlparse(url).query)

        values = {}
        for name in ('appid', 'redirect_uri', 'state'):
            found = query.get(name)
            if not found or not found[0]:
                raise ProtocolUnexpectedResponseError(
                    f"Missing {name} parameter in WeChat URL", url=url
                )
            values[name] = found[0]

        logger.debug(
            f"Parsed WeChat OAuth params (appid: {values['appid']}, state: {values['state']})"
        )
        return cls(**values)

    def build_qr_xml_url(self) -> str:
        query = urlencode({
            'appid': self.appid,
            'redirect_uri': self.redirect_uri,
            'state': self.state,
            'response_type': 'code',
            'scope': 'snsapi_login',
            'f': 'xml',
            'stylelite': '1',
            'fast_login': '1',
        })
        return f"{WECHAT_OPEN_URL}/connect/qrconnect?{query}"

    def build_callback_url(self, wx_code: str) -> str:
        separator = '&' if '?' in self.redirect_uri else '?'
        query = urlencode({'code': wx_code, 'state': self.state})
        return f"{self.redirect_uri}{separator}{query}"


@dataclass
class ScanResult:
    """One poll answer."""
    status: QrStatus
    errcode: Optional[int] = None
    wx_code: Optional[str] = None


def parse_qr_uuid(xml_text: str) -> str:
    """
    Extract the QR uuid from the XML variant of the qrconnect page.

    Raises:
        ProtocolUnexpectedResponseError: On malformed XML or a missing uuid
    """
    logger.debug(f"Parsing QR uuid from XML response ({len(xml_text)} bytes)")

    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(xml_text.strip().encode('utf-8'), parser)
    except etree.XMLSyntaxError as e:
        logger.error(f"XML parse error while extracting uuid: {e}")
        raise ProtocolUnexpectedResponseError(
            f"XML parse error: {e}", excerpt=xml_text[:300]
        ) from e

    uuid = root.text if root.tag == 'uuid' else root.findtext('.//uuid')
    if not uuid or not uuid.strip():
        logger.error("uuid not found in XML response")
        raise ProtocolUnexpectedResponseError(
            "uuid not found in WeChat XML response", excerpt=xml_text[:300]
        )
    return uuid.strip()


def build_confirm_url(uuid: str) -> str:
    """The URL encoded into the QR code."""
    return f"{WECHAT_OPEN_URL}/connect/confirm?uuid={uuid}"


def build_poll_url(
    uuid: str,
    last_code: Optional[int] = None,
    timestamp_ms: Optional[int] = None
) -> str:
    """Long-poll URL for the scan status."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)

    url = f"{WECHAT_LP_URL}/connect/l/qrconnect?uuid={uuid}&_={timestamp_ms}"
    if last_code is not None:
        url += f"&last={last_code}"
    return url


def parse_scan_status(text: str) -> ScanResult:
    """
    Parse a poll answer such as ``window.wx_errcode=405;window.wx_code='abc';``.
    """
    match = _ERRCODE_RE.search(text)
    if not match:
        logger.warning("Could not extract wx_errcode from WeChat response")
        return ScanResult(status=QrStatus.UNKNOWN)

    errcode = int(match.group(1))
    status = QrStatus.from_code(errcode)
    if status is QrStatus.UNKNOWN:
        logger.warning(f"Unknown WeChat status code: {errcode}")
    else:
        logger.debug(f"WeChat scan status: {status.name}")

    wx_code = None
    if status is QrStatus.CONFIRMED:
        code_match = _CODE_RE.search(text)
        if code_match:
            wx_code = code_match.group(1)
            logger.debug(f"Extracted wx_code (length: {len(wx_code)})")

    return ScanResult(status=status, errcode=errcode, wx_code=wx_code)
