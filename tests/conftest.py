from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tems.config import Config
from tems.forwarder import Forwarder
from tems.main import create_app
from tems.store import MetricStore


class FakeResponse:
    def __init__(self, status_code: int = 200):
        self.status_code = status_code

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400


class FakeSession:
    """Stands in for the upstream collector; records every POST."""

    def __init__(self, status_code: int = 200, error: Exception | None = None):
        self.status_code = status_code
        self.error = error
        self.posts = []

    def post(self, url, data=None, headers=None, timeout=None):
        self.posts.append({"url": url, "data": data, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return FakeResponse(self.status_code)


def make_config(**overrides) -> Config:
    raw = {
        "tems_name": "tems-test",
        "listen_addr": ":8080",
        "teps_url": "http://teps.invalid/ingest",
        "interval": "30s",
    }
    raw.update(overrides)
    return Config.model_validate(raw)


@pytest.fixture
def store():
    return MetricStore()


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def forwarder(store, config, session):
    return Forwarder(store, config, session=session)


@pytest.fixture
def client(store, config, forwarder):
    app = create_app(config, store=store, forwarder=forwarder, forward=False)
    return TestClient(app)
