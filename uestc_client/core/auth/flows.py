"""
Login state machines.

Each flow is a generator that yields commands from ``commands`` and gets
their outcome sent back, so the async and blocking clients run exactly
the same logic and differ only in how they perform a command.

Flows never touch the cookie jar directly: cookies are collected by the
HTTP library while requests run, and ``PersistSession`` is yielded once,
at the point where a login has definitely succeeded.
"""
import random
import time
from typing import Callable, Generator, Optional

from ..config import PortalEndpoints, QrConfig
from ..crypto import encrypt_password
from ..exceptions import (
    CredentialsInvalidError,
    NetworkFailureError,
    PasswordEncryptionError,
    ProtocolUnexpectedResponseError,
    QrCancelledError,
    QrExpiredError,
)
from ..logging import get_logger
from ..results import LoginResult, ProbeResult, QrStatus
from .commands import (
    HttpRequest,
    PersistSession,
    QrStatusChanged,
    ShowQrCode,
    Sleep,
)
from .parser import classify_login_response, parse_login_page
from .probe import probe_flow
from .wechat import (
    WECHAT_OPEN_URL,
    WechatAuthParams,
    build_confirm_url,
    build_poll_url,
    parse_qr_uuid,
    parse_scan_status,
)


logger = get_logger('uestc_client.auth')

Flow = Generator


def _finish_login() -> Flow:
    """Terminal success state shared by every login method."""
    yield PersistSession()
    return LoginResult.SUCCESS


def _skip_if_authenticated(endpoints: PortalEndpoints) -> Flow:
    probe = yield from probe_flow(endpoints)
    if probe is ProbeResult.VALID:
        logger.info("Existing session is still valid, skipping login")
        return True
    if probe is ProbeResult.NETWORK_FAILURE:
        logger.info("Could not verify existing session, logging in again")
    return False


def password_login_flow(
    username: str,
    password: str,
    service_url: Optional[str],
    endpoints: PortalEndpoints,
    rng: Optional[random.Random] = None
) -> Flow:
    """
    Log in with username and password.

    Returns:
        ``ALREADY_AUTHENTICATED`` or ``SUCCESS``

    Raises:
        CredentialsInvalidError: Wrong username or password
        ProtocolUnexpectedResponseError: The portal answered unexpectedly
        NetworkFailureError: A request failed at the transport level
    """
    if (yield from _skip_if_authenticated(endpoints)):
        return LoginResult.ALREADY_AUTHENTICATED

    service = service_url or endpoints.default_service
    page = yield HttpRequest('GET', endpoints.login_url, params={'service': service})

    if 200 <= page.status < 300 and not endpoints.is_login_page(page.url):
        # The portal still had a ticket-granting cookie and went straight to the service
        logger.info(f"Portal issued a ticket without a login form, landed on {page.url}")
        return (yield from _finish_login())

    if page.status != 200:
        raise ProtocolUnexpectedResponseError(
            "Login page could not be loaded",
            status=page.status, url=page.url, excerpt=page.excerpt()
        )

    params = parse_login_page(page.text, page.url)

    try:
        encrypted = encrypt_password(password, params.salt, rng)
    except PasswordEncryptionError as e:
        raise ProtocolUnexpectedResponseError(
            f"Cannot encrypt password with the portal's salt: {e}", url=page.url
        ) from e

    logger.info(f"Submitting login form for {username}")
    response = yield HttpRequest(
        'POST',
        params.action or page.url,
        data=params.build_form(username, encrypted),
        headers={'Referer': page.url},
        allow_redirects=False,
    )

    outcome, message = classify_login_response(response, endpoints)
    if outcome is LoginResult.INVALID_CREDENTIALS:
        logger.warning(f"Login rejected: {message}")
        raise CredentialsInvalidError(message)
    if outcome is not LoginResult.SUCCESS:
        logger.error(f"Unexpected login response: {message}")
        raise ProtocolUnexpectedResponseError(
            message, status=response.status, url=response.url, excerpt=response.excerpt()
        )

    # Follow the ticket into the service so it sets its own cookies
    landing = yield HttpRequest('GET', response.location)
    logger.info(f"Logged in as {username}, landed on {landing.url}")
    return (yield from _finish_login())


def wechat_login_flow(
    service_url: Optional[str],
    endpoints: PortalEndpoints,
    qr_config: QrConfig,
    clock: Callable[[], float] = time.monotonic
) -> Flow:
    """
    Log in by scanning a WeChat QR code.

    Returns:
        ``ALREADY_AUTHENTICATED`` or ``SUCCESS``

    Raises:
        QrExpiredError: Code expired or the polling budget ran out
        QrCancelledError: The user cancelled on the phone
        ProtocolUnexpectedResponseError: The portal or WeChat answered unexpectedly
        NetworkFailureError: A request outside the polling loop failed
    """
    if (yield from _skip_if_authenticated(endpoints)):
        return LoginResult.ALREADY_AUTHENTICATED

    service = service_url or endpoints.default_service
    entry = yield HttpRequest(
        'GET',
        endpoints.wechat_entry_url,
        params={'type': 'weixin', 'success': service},
        allow_redirects=False,
    )
    qrconnect_url = entry.location if entry.is_redirect else entry.url
    params = WechatAuthParams.from_url(qrconnect_url)

    qr_page = yield HttpRequest('GET', params.build_qr_xml_url())
    uuid = parse_qr_uuid(qr_page.text)

    yield ShowQrCode(build_confirm_url(uuid))

    deadline = clock() + qr_config.timeout
    last_code = None
    status = QrStatus.WAITING
    attempts = 0
    wx_code = None

    while attempts < qr_config.max_attempts and clock() < deadline:
        attempts += 1
        try:
            poll = yield HttpRequest(
                'GET',
                build_poll_url(uuid, last_code),
                headers={'Referer': f"{WECHAT_OPEN_URL}/"},
            )
        except NetworkFailureError as e:
            logger.warning(f"QR poll {attempts}/{qr_config.max_attempts} failed: {e}")
            yield Sleep(qr_config.poll_interval)
            continue

        scan = parse_scan_status(poll.text)

        if scan.status is QrStatus.CONFIRMED:
            if not scan.wx_code:
                raise ProtocolUnexpectedResponseError(
                    "WeChat confirmed the scan without a code", url=poll.url, excerpt=poll.excerpt()
                )
            wx_code = scan.wx_code
            yield QrStatusChanged(QrStatus.CONFIRMED)
            break

        if scan.status is QrStatus.EXPIRED:
            yield QrStatusChanged(QrStatus.EXPIRED)
            raise QrExpiredError("QR code expired")

        if scan.status is QrStatus.CANCELLED:
            yield QrStatusChanged(QrStatus.CANCELLED)
            raise QrCancelledError("Login was cancelled on the phone")

        if scan.status is not QrStatus.UNKNOWN and scan.status is not status:
            status = scan.status
            yield QrStatusChanged(status)

        if scan.errcode is not None:
            last_code = scan.errcode

        yield Sleep(qr_config.poll_interval)

    if wx_code is None:
        raise QrExpiredError(
            f"QR code was not confirmed after {attempts} polls"
        )

    landing = yield HttpRequest('GET', params.build_callback_url(wx_code))
    if endpoints.is_login_page(landing.url) or landing.status >= 400:
        raise ProtocolUnexpectedResponseError(
            "WeChat callback did not establish a portal session (is the account bound?)",
            status=landing.status, url=landing.url, excerpt=landing.excerpt()
        )

    logger.info(f"WeChat login confirmed, landed on {landing.url}")
    return (yield from _finish_login())


def logout_flow(endpoints: PortalEndpoints) -> Flow:
    """
    Invalidate the portal session.

    Best effort: transport errors are logged, local state is the
    caller's responsibility.
    """
    try:
        yield HttpRequest('GET', endpoints.logout_url)
    except NetworkFailureError as e:
        logger.warning(f"Portal logout failed, clearing local session anyway: {e}")
