"""Pytest fixtures for uestc_client tests."""
import random

import pytest

from uestc_client.core.auth.commands import HttpRequest, HttpResponse
from uestc_client.core.config import ClientConfig, PortalEndpoints, QrConfig
from uestc_client.core.exceptions import NetworkFailureError


LOGIN_URL = 'https://idas.uestc.edu.cn/authserver/login'
SERVICE_URL = 'https://eportal.uestc.edu.cn/new/index.html'
SALT = 'rjBFAaHsNkKAhpoi'

LOGIN_PAGE = f"""<!DOCTYPE html>
<html>
<head><title>统一身份认证</title>
<script>var msg = "用户名或密码错误";</script>
</head>
<body>
<form id="qrLoginForm" method="post" action="/authserver/qrLogin">
  <input type="hidden" name="execution" value="qr-execution"/>
</form>
<form id="pwdFromId" method="post" action="/authserver/login?service=https%3A%2F%2Feportal.uestc.edu.cn%2Fnew%2Findex.html">
  <input id="username" name="username" type="text" value=""/>
  <input id="password" name="password" type="password" value=""/>
  <input type="hidden" id="pwdEncryptSalt" value="{SALT}"/>
  <input type="hidden" name="lt" value=""/>
  <input type="hidden" name="cllt" value="userNameLogin"/>
  <input type="hidden" name="dllt" value="generalLogin"/>
  <input type="hidden" name="execution" value="e1s1-password"/>
  <input type="hidden" name="_eventId" value="submit"/>
  <input type="hidden" name="rmShown" value="1"/>
</form>
</body>
</html>
"""

LOGIN_PAGE_WITH_ERROR = LOGIN_PAGE.replace(
    '<body>',
    '<body><span id="showErrorTip"><span>您提供的用户名或者密码有误</span></span>'
)

WECHAT_QRCONNECT_URL = (
    'https://open.weixin.qq.com/connect/qrconnect?appid=wx123456'
    '&redirect_uri=https%3A%2F%2Fidas.uestc.edu.cn%2Fauthserver%2FcallbackWeixin.do'
    '&response_type=code&scope=snsapi_login&state=st-42#wechat_redirect'
)

WECHAT_QR_XML = '<?xml version="1.0" encoding="UTF-8"?><xml><uuid><![CDATA[0a1B2c3D]]></uuid></xml>'


@pytest.fixture
def endpoints():
    """Default portal endpoints."""
    return PortalEndpoints()


@pytest.fixture
def qr_config():
    """QR polling budget without real waiting."""
    return QrConfig(poll_interval=0.0, max_attempts=5, timeout=60.0)


@pytest.fixture
def client_config(qr_config):
    """Client configuration with a fast QR budget."""
    return ClientConfig(qr=qr_config)


@pytest.fixture
def seeded_rng():
    """Deterministic randomness for password encryption."""
    return random.Random(1234)


def response(status=200, url=LOGIN_URL, text='', location=None):
    """Shorthand for building an HttpResponse."""
    return HttpResponse.build(status=status, url=url, text=text, location=location)


def probe_invalid():
    """Probe answer when there is no session."""
    return response(302, 'https://idas.uestc.edu.cn/authserver/index.do', location=LOGIN_URL)


def probe_valid():
    return response(200, 'https://idas.uestc.edu.cn/authserver/index.do', text='<html>个人中心</html>')


class ScriptedPortal:
    """
    Answers flow requests from a list of scripted responses.

    Each entry is an HttpResponse, or an exception instance to raise.
    Records every command the flow yields.
    """

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []
        self.commands = []

    def __call__(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        answer = self.responses.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


def run_flow(flow, portal: ScriptedPortal):
    """Drive a flow generator against a scripted portal."""
    try:
        command = next(flow)
        while True:
            portal.commands.append(command)
            if isinstance(command, HttpRequest):
                try:
                    outcome = portal(command)
                except NetworkFailureError as e:
                    command = flow.throw(e)
                    continue
                command = flow.send(outcome)
            else:
                command = flow.send(None)
    except StopIteration as stop:
        return stop.value


class RecordingDisplay:
    """QR display that remembers what it was asked to show."""

    def __init__(self):
        self.payloads = []
        self.statuses = []

    def show(self, payload):
        self.payloads.append(payload)

    def update(self, status):
        self.statuses.append(status)


@pytest.fixture
def display():
    return RecordingDisplay()
