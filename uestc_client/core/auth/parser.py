"""
Login page parsing and login response classification.

The portal's password form looks like::

    <form id="pwdFromId" method="post" action="/authserver/login?service=...">
      <input type="hidden" id="pwdEncryptSalt" value="rjBFAaHsNkKAhpoi"/>
      <input type="hidden" name="lt" value=""/>
      <input type="hidden" name="cllt" value="userNameLogin"/>
      <input type="hidden" name="dllt" value="generalLogin"/>
      <input type="hidden" name="execution" value="e1s1..."/>
      <input type="hidden" name="_eventId" value="submit"/>
      ...
    </form>

Failed logins re-render the same page with the reason in ``#showErrorTip``.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin

from lxml import etree

from ..config import PortalEndpoints
from ..exceptions import ProtocolUnexpectedResponseError
from ..logging import get_logger
from ..results import LoginResult
from .commands import HttpResponse


logger = get_logger('uestc_client.auth')


PASSWORD_FORM_ID = 'pwdFromId'

INVALID_CREDENTIAL_PATTERNS = (
    '您提供的用户名或者密码有误',
    '用户名或密码错误',
    '密码错误',
    'invalid username or password',
    'invalid credentials',
)

ERROR_TIP_XPATHS = (
    '//*[@id="showErrorTip"]//text()',
    '//*[@id="errorMsg"]//text()',
    '//*[contains(concat(" ", normalize-space(@class), " "), " form-error ")]//text()',
)

# Filled by the login flow itself
MANAGED_FIELDS = ('username', 'password', 'captcha', 'rememberMe')


@dataclass
class LoginParams:
    """Hidden fields of the password form needed to submit a login."""
    salt: str
    execution: str
    lt: str = ''
    event_id: str = 'submit'
    cllt: str = 'userNameLogin'
    dllt: str = 'generalLogin'
    action: Optional[str] = None
    other_params: Dict[str, str] = field(default_factory=dict)

    def build_form(self, username: str, encrypted_password: str) -> Dict[str, str]:
        """Assemble the POST body in the order the browser sends it."""
        form = {
            'username': username,
            'password': encrypted_password,
            'captcha': '',
            'rememberMe': 'true',
            '_eventId': self.event_id,
            'cllt': self.cllt,
            'dllt': self.dllt,
            'lt': self.lt,
            'execution': self.execution,
        }
        for name, value in self.other_params.items():
            form.setdefault(name, value)
        return form


def _parse_html(html: str):
    if not html or not html.strip():
        return None
    return etree.HTML(html)


def _first(values: List[str]) -> Optional[str]:
    return values[0].strip() if values else None


def parse_login_page(html: str, page_url: str) -> LoginParams:
    """
    Extract the password form's hidden fields.

    Args:
        html: Login page body
        page_url: URL the page was served from (for a relative form action)

    Returns:
        LoginParams

    Raises:
        ProtocolUnexpectedResponseError: If salt or execution are missing
    """
    doc = _parse_html(html)
    if doc is None:
        raise ProtocolUnexpectedResponseError("Login page is empty", url=page_url)

    forms = doc.xpath(f'//form[@id="{PASSWORD_FORM_ID}"]')
    scope = forms[0] if forms else doc

    salt = _first(scope.xpath('.//input[@id="pwdEncryptSalt"]/@value'))
    execution = _first(scope.xpath('.//input[@name="execution"]/@value'))

    if not salt or not execution:
        missing = [name for name, value in (('pwdEncryptSalt', salt), ('execution', execution)) if not value]
        raise ProtocolUnexpectedResponseError(
            f"Login page is missing {', '.join(missing)}",
            url=page_url,
            excerpt=' '.join(html.split())[:300]
        )

    hidden: Dict[str, str] = {}
    for element in scope.xpath('.//input[@type="hidden"][@name]'):
        hidden[element.get('name')] = element.get('value') or ''

    action = forms[0].get('action') if forms else None

    params = LoginParams(
        salt=salt,
        execution=execution,
        lt=hidden.pop('lt', ''),
        event_id=hidden.pop('_eventId', None) or 'submit',
        cllt=hidden.pop('cllt', None) or 'userNameLogin',
        dllt=hidden.pop('dllt', None) or 'generalLogin',
        action=urljoin(page_url, action) if action else page_url,
        other_params={
            name: value for name, value in hidden.items()
            if name != 'execution' and name not in MANAGED_FIELDS
        },
    )
    logger.debug(
        f"Parsed login form (salt length: {len(salt)}, "
        f"extra fields: {sorted(params.other_params)})"
    )
    return params


def extract_error_tip(html: str) -> Optional[str]:
    """Return the error message the portal rendered, if any."""
    doc = _parse_html(html)
    if doc is None:
        return None
    for xpath in ERROR_TIP_XPATHS:
        text = ' '.join(part.strip() for part in doc.xpath(xpath) if part.strip())
        if text:
            return text
    return None


def visible_text(html: str) -> str:
    """Page text outside scripts and styles."""
    doc = _parse_html(html)
    if doc is None:
        return ''
    parts = doc.xpath('//body//text()[not(ancestor::script)][not(ancestor::style)]')
    return ' '.join(part.strip() for part in parts if part.strip())


def matches_invalid_credentials(text: str) -> bool:
    lowered = text.lower()
    return any(pattern.lower() in lowered for pattern in INVALID_CREDENTIAL_PATTERNS)


def classify_login_response(
    response: HttpResponse,
    endpoints: PortalEndpoints
) -> Tuple[LoginResult, str]:
    """
    Decide what the answer to the login POST means.

    The POST is sent without following redirects: the portal answers a
    good login with a redirect to the service (carrying a ticket) and a
    bad one by rendering the login page again.

    Returns:
        ``(LoginResult, message)`` where the result is ``SUCCESS``,
        ``INVALID_CREDENTIALS`` or ``PROTOCOL_UNEXPECTED_RESPONSE``
    """
    if response.is_redirect:
        if endpoints.is_login_page(response.location):
            return LoginResult.PROTOCOL_UNEXPECTED_RESPONSE, "Login redirected back to the login page"
        return LoginResult.SUCCESS, f"Redirected to {response.location}"

    # The rejected form may come back as 200, 401 or 403
    if response.text:
        tip = extract_error_tip(response.text)
        if tip:
            if matches_invalid_credentials(tip):
                return LoginResult.INVALID_CREDENTIALS, tip
            return LoginResult.PROTOCOL_UNEXPECTED_RESPONSE, f"Portal reported: {tip}"
        if matches_invalid_credentials(visible_text(response.text)):
            return LoginResult.INVALID_CREDENTIALS, "Invalid username or password"

    if response.status == 200:
        return LoginResult.PROTOCOL_UNEXPECTED_RESPONSE, "Login page returned without redirect or error"
    return LoginResult.PROTOCOL_UNEXPECTED_RESPONSE, f"Unexpected status {response.status}"
