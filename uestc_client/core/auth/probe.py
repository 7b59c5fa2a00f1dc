"""
Session liveness probe.

One GET to a page that requires a portal session. Without a session the
portal redirects to its login form.
"""
from typing import Generator

from ..config import PortalEndpoints
from ..exceptions import NetworkFailureError
from ..logging import get_logger
from ..results import ProbeResult
from .commands import HttpRequest, HttpResponse


logger = get_logger('uestc_client.auth')


UNAUTHENTICATED_STATUSES = (401, 403)


def classify_probe_response(response: HttpResponse, endpoints: PortalEndpoints) -> ProbeResult:
    """Map the probe answer to VALID or INVALID."""
    if endpoints.is_login_page(response.url):
        return ProbeResult.INVALID
    if response.is_redirect and endpoints.is_login_page(response.location):
        return ProbeResult.INVALID
    if response.status in UNAUTHENTICATED_STATUSES:
        return ProbeResult.INVALID
    if 200 <= response.status < 300:
        return ProbeResult.VALID

    logger.info(f"Probe got status {response.status} from {response.url}, treating session as invalid")
    return ProbeResult.INVALID


def probe_flow(endpoints: PortalEndpoints) -> Generator:
    """
    Check whether the cookie jar holds a live portal session.

    Never raises for transport errors: they yield ``NETWORK_FAILURE`` so
    the caller can fall back to a fresh login.
    """
    try:
        response = yield HttpRequest('GET', endpoints.probe_url)
    except NetworkFailureError as e:
        logger.warning(f"Session probe failed: {e}")
        return ProbeResult.NETWORK_FAILURE

    result = classify_probe_response(response, endpoints)
    logger.debug(f"Session probe: {result.name}")
    return result
