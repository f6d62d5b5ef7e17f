"""
Main Test Configuration

Supplier adapters and the CRM client get a scripted fake HTTP client so no
test touches the network. The product cache uses an in-memory SQLite engine
per test.
"""

import json
from typing import Any, Dict, List, Optional, Union

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from OrderBridge.clients.http_client import HTTPResponse
from OrderBridge.config.credentials import CredentialResolver
from OrderBridge.models.product_models import ProductModel

TEST_SECRETS = {
    "ABC_SANDBOX_CLIENT_ID": "abc-id",
    "ABC_SANDBOX_CLIENT_SECRET": "abc-secret",
    "ABC_CLIENT_ID": "abc-prod-id",
    "ABC_CLIENT_SECRET": "abc-prod-secret",
    "SRS_SANDBOX_CLIENT_ID": "srs-id",
    "SRS_SANDBOX_CLIENT_SECRET": "srs-secret",
    "BEACON_SANDBOX_USERNAME": "beacon-user",
    "BEACON_SANDBOX_PASSWORD": "beacon-pass",
}


def make_response(
    status: int = 200,
    data: Optional[Dict[str, Any]] = None,
    set_cookies: Optional[List[str]] = None,
    url: str = "https://supplier.test",
    reason: Optional[str] = None,
) -> HTTPResponse:
    return HTTPResponse(
        status=status,
        data=data or {},
        headers={},
        url=url,
        duration_ms=1,
        success=200 <= status < 300,
        reason=reason or ("OK" if status < 300 else "Error"),
        set_cookies=set_cookies or [],
    )


class FakeHTTPClient:
    """Plays back queued responses (or raises queued exceptions) and records every call"""

    def __init__(self, responses: Optional[List[Union[HTTPResponse, Exception]]] = None):
        self.responses = list(responses or [])
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def queue(self, *responses: Union[HTTPResponse, Exception]):
        self.responses.extend(responses)

    async def _next(self, method: str, url: str, **kwargs) -> HTTPResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"Unexpected {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def get(self, url, headers=None, params=None, **kwargs):
        return await self._next("GET", url, headers=headers, params=params, **kwargs)

    async def post(self, url, headers=None, data=None, json_data=None, **kwargs):
        return await self._next("POST", url, headers=headers, data=data, json_data=json_data, **kwargs)

    async def patch(self, url, headers=None, json_data=None, **kwargs):
        return await self._next("PATCH", url, headers=headers, json_data=json_data, **kwargs)

    async def close(self):
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


@pytest.fixture
def fake_http():
    return FakeHTTPClient()


@pytest.fixture
def http_response():
    """Factory for canned HTTPResponse objects"""
    return make_response


@pytest.fixture
def environment_file(tmp_path):
    path = tmp_path / "environment.json"
    path.write_text(json.dumps({"environment": "sandbox"}))
    return path


@pytest.fixture
def credential_resolver(environment_file):
    """Resolver over the shipped registry with test secrets and a sandbox master environment"""
    return CredentialResolver(environment_path=environment_file, environ=dict(TEST_SECRETS))


@pytest.fixture
def supplier_kwargs(credential_resolver, fake_http):
    """Constructor kwargs wiring an adapter to the test resolver and the fake HTTP client"""
    return {"credential_resolver": credential_resolver, "http_client_factory": lambda name: fake_http}


@pytest.fixture
def product_engine():
    """In-memory product cache shared across connections"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine, tables=[ProductModel.__table__])
    yield engine
    engine.dispose()
