"""
Authentication module.

Login state machines for the IDAS portal and the parsers they rely on.
"""
from .commands import (
    HttpRequest,
    HttpResponse,
    PersistSession,
    QrStatusChanged,
    ShowQrCode,
    Sleep,
)
from .flows import password_login_flow, wechat_login_flow, logout_flow
from .parser import LoginParams, parse_login_page, classify_login_response
from .probe import probe_flow, classify_probe_response
from .wechat import (
    WechatAuthParams,
    ScanResult,
    parse_qr_uuid,
    parse_scan_status,
    build_poll_url,
    build_confirm_url,
)

__all__ = [
    'HttpRequest',
    'HttpResponse',
    'PersistSession',
    'QrStatusChanged',
    'ShowQrCode',
    'Sleep',
    'password_login_flow',
    'wechat_login_flow',
    'logout_flow',
    'LoginParams',
    'parse_login_page',
    'classify_login_response',
    'probe_flow',
    'classify_probe_response',
    'WechatAuthParams',
    'ScanResult',
    'parse_qr_uuid',
    'parse_scan_status',
    'build_poll_url',
    'build_confirm_url',
]
