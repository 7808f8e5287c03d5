"""
Pytest configuration and shared fixtures for the consent page tests.

ACP is simulated by ``FakeACP``, an ``httpx.MockTransport`` handler that
records every outbound request and answers from configurable canned
responses.
"""

import pytest
from typing import Any, List, Optional, Tuple, Union
from fastapi.testclient import TestClient
import httpx

from src.consent.acp_client import ACPClient
from src.consent.config import ConsentAppConfig
from src.consent.main import create_app
from src.consent.sessions import ConsentSessionStore


CannedResponse = Union[Tuple[int, Any], Exception]


class FakeACP:
    """In-process stand-in for the ACP token and scope grant APIs."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.token: CannedResponse = (200, {
            "access_token": "T1",
            "token_type": "bearer",
            "expires_in": 3600,
            "scope": "manage_scope_grants"
        })
        self.scope_grant: CannedResponse = (200, {
            "requested_scopes": ["payments:read", "profile:read"],
            "request_query_params": {"redirect_uri": ["https://cb"]}
        })
        self.accept: CannedResponse = (200, {"redirect_to": "https://acp/finish"})
        self.reject: CannedResponse = (200, {"redirect_to": "https://acp/rejected"})

    @staticmethod
    def kind_of(request: httpx.Request) -> str:
        path = request.url.path
        if path.endswith("/system/oauth2/token"):
            return "token"
        if path.endswith("/accept"):
            return "accept"
        if path.endswith("/reject"):
            return "reject"
        if "/scope-grants/" in path:
            return "scope_grant"
        return "unknown"

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        canned = getattr(self, self.kind_of(request), None)
        if canned is None:
            return httpx.Response(404, json={"error": "not_found"})
        if isinstance(canned, Exception):
            raise canned
        status_code, body = canned
        if isinstance(body, (str, bytes)):
            return httpx.Response(status_code, content=body)
        return httpx.Response(status_code, json=body)

    @property
    def kinds(self) -> List[str]:
        return [self.kind_of(request) for request in self.requests]

    def last(self, kind: str) -> Optional[httpx.Request]:
        matching = [request for request in self.requests if self.kind_of(request) == kind]
        return matching[-1] if matching else None


@pytest.fixture
def config() -> ConsentAppConfig:
    """Configuration for a test tenant."""
    return ConsentAppConfig(
        tenant_id="default",
        issuer_url="https://acp.example.com:8443/default/system",
        client_id="consent-client",
        client_secret="consent-secret",
        session_secret="test-session-secret",
    )


@pytest.fixture
def fake_acp() -> FakeACP:
    return FakeACP()


@pytest.fixture
def acp_client(config, fake_acp) -> ACPClient:
    """ACP client wired to the fake ACP."""
    return ACPClient(config, transport=httpx.MockTransport(fake_acp.handle))


@pytest.fixture
def session_store(config) -> ConsentSessionStore:
    return ConsentSessionStore(ttl_seconds=config.session_ttl)


@pytest.fixture
def app(config, acp_client, session_store):
    return create_app(config, acp_client=acp_client, sessions=session_store)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture(autouse=True)
def disable_logging():
    """Disable logging during tests to reduce noise."""
    import logging
    logging.disable(logging.CRITICAL)
    yield
    logging.disable(logging.NOTSET)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that drive the whole application over HTTP"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config, items):
    """Add markers automatically based on test file names."""
    for item in items:
        if "routes" in item.nodeid:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
