"""
QR code display for WeChat login.
"""
import sys
from typing import Optional, Protocol, TextIO, runtime_checkable

import qrcode

from .core.logging import get_logger
from .core.results import QrStatus


logger = get_logger('uestc_client.wechat')


STATUS_HINTS = {
    QrStatus.WAITING: "请使用微信扫描二维码登录 (scan the QR code with WeChat)",
    QrStatus.SCANNED: "已扫描，请在手机上确认登录 (scanned, confirm on your phone)",
    QrStatus.CONFIRMED: "已确认 (confirmed)",
    QrStatus.EXPIRED: "二维码已过期 (QR code expired)",
    QrStatus.CANCELLED: "已取消登录 (login cancelled)",
}


@runtime_checkable
class QrDisplay(Protocol):
    """Shows the QR payload to the user and reacts to scan progress."""

    def show(self, payload: str) -> None:
        ...

    def update(self, status: QrStatus) -> None:
        ...


class TerminalQrDisplay:
    """
    Prints the QR code as text.

    Args:
        out: Stream to print to (defaults to stdout)
        invert: Swap dark/light modules, needed on dark terminals
    """

    def __init__(self, out: Optional[TextIO] = None, invert: bool = True):
        self._out = out
        self._invert = invert

    def show(self, payload: str) -> None:
        qr = qrcode.QRCode(
            border=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
        )
        qr.add_data(payload)
        qr.make(fit=True)

        logger.info(STATUS_HINTS[QrStatus.WAITING])
        qr.print_ascii(out=self._out or sys.stdout, invert=self._invert)
        logger.debug(f"QR URL: {payload}")

    def update(self, status: QrStatus) -> None:
        hint = STATUS_HINTS.get(status)
        if hint:
            logger.info(hint)
