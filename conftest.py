"""Shared fixtures: Docebo credentials and a scripted Docebo server behind httpx.MockTransport"""

import httpx
import pytest

from bot.docebo_api import DoceboAPI
from config.settings import DoceboConfig

TEST_ENV = {
    "DOCEBO_DOMAIN": "acme.docebosaas.com",
    "DOCEBO_CLIENT_ID": "client-id",
    "DOCEBO_CLIENT_SECRET": "client-secret",
    "DOCEBO_USERNAME": "admin",
    "DOCEBO_PASSWORD": "secret",
}


@pytest.fixture(autouse=True)
def docebo_env(monkeypatch):
    for name, value in TEST_ENV.items():
        monkeypatch.setenv(name, value)


@pytest.fixture
def docebo_config():
    return DoceboConfig(
        domain="https://acme.docebosaas.com/",
        client_id="client-id",
        client_secret="client-secret",
        username="admin",
        password="secret",
    )


class FakeDocebo:
    """
    Minimal Docebo stand-in

    Routes map (method, path) to a JSON payload, a (status, payload) tuple or a
    callable taking the httpx.Request. Unknown routes answer 404.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []
        self.token_calls = 0
        self.token_response = (200, {"access_token": "token-1", "expires_in": 3600})

    def route(self, method: str, path: str, response):
        self.routes[(method.upper(), path)] = response

    def calls(self, method: str, path: str):
        return [r for r in self.requests if r.method == method.upper() and r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/oauth2/token":
            self.token_calls += 1
            status, payload = self.token_response
            return httpx.Response(status, json=payload)

        self.requests.append(request)
        response = self.routes.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(404, json={"message": "Not found"})
        if callable(response):
            response = response(request)
        if isinstance(response, httpx.Response):
            return response
        if isinstance(response, tuple):
            status, payload = response
            return httpx.Response(status, json=payload)
        return httpx.Response(200, json=response)


def items(*records):
    return {"data": {"items": list(records)}}


@pytest.fixture
def fake_docebo():
    return FakeDocebo()


@pytest.fixture
def api(fake_docebo, docebo_config):
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake_docebo.handler))
    return DoceboAPI(docebo_config, client=client)


@pytest.fixture
def no_delays(monkeypatch):
    monkeypatch.setattr("bot.docebo_api.REMOTE_PAGE_DELAY", 0)
    monkeypatch.setattr("services.csv_enrollment.BULK_BATCH_DELAY", 0)
    monkeypatch.setattr("services.bulk_enrollment.BULK_BATCH_DELAY", 0)
