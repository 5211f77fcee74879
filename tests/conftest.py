"""
Pytest configuration and fixtures for payment service tests.
"""

import os
import sys
from urllib.parse import parse_qsl

import httpx
import pytest

# Add app directory to Python path for imports
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(ROOT_DIR)
sys.path.append(os.path.join(ROOT_DIR, "app"))

from adapters.base import CreditCard  # noqa: E402
from adapters.ogone import OgoneAdapter  # noqa: E402
from tests.ogone_responses import SUCCESSFUL_PURCHASE_RESPONSE  # noqa: E402


class OgoneStub:
    """Stands in for the Ogone servers behind an ``httpx.MockTransport``."""

    def __init__(self, body: str = SUCCESSFUL_PURCHASE_RESPONSE, status_code: int = 200):
        self.body = body
        self.status_code = status_code
        self.headers = {"Content-Type": "text/xml"}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        content = self.body if isinstance(self.body, bytes) else self.body.encode()
        return httpx.Response(self.status_code, content=content, headers=self.headers)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def last_url(self) -> str:
        return str(self.last_request.url)

    @property
    def last_params(self) -> dict:
        body = self.last_request.content.decode()
        return dict(parse_qsl(body, keep_blank_values=True))


@pytest.fixture
def credentials():
    """Merchant credentials without signature."""
    return {
        "login": "pspid",
        "user": "username",
        "password": "password",
    }


@pytest.fixture
def ogone_stub():
    return OgoneStub()


@pytest.fixture
def make_adapter(credentials, ogone_stub):
    """Build an OgoneAdapter wired to the stub; keyword args override config."""

    def factory(**overrides):
        config = dict(credentials, test=True)
        config.update(overrides)
        client = httpx.AsyncClient(transport=httpx.MockTransport(ogone_stub))
        return OgoneAdapter(http_client=client, **config)

    return factory


@pytest.fixture
def adapter(make_adapter):
    return make_adapter()


@pytest.fixture
def credit_card():
    return CreditCard(
        first_name="Longbob",
        last_name="Longsen",
        number="4000100011112224",
        month=9,
        year=2031,
        verification_value="123",
    )


@pytest.fixture
def billing_address():
    return {
        "address1": "1234 My Street",
        "zip": "K1C2N6",
        "city": "Ottawa",
        "country": "CA",
        "phone": "(555)555-5555",
    }
