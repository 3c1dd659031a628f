"""Shared fixtures for web API tests."""

import pytest
from fastapi.testclient import TestClient

from cli.config_models import AppConfig
from fakes import FakeProvider
from observability import metrics

SECRET = "s3cret-test"


@pytest.fixture
def auth_headers():
    return {"x-pg-secret": SECRET}


@pytest.fixture
def bearer_headers():
    return {"Authorization": f"Bearer {SECRET}"}


@pytest.fixture
def web_config(tmp_path):
    return AppConfig(
        server={"shared_secret": SECRET, "frontend_origins": ["http://localhost:3001"]},
        storage={"db_path": tmp_path / "orchestrator.db"},
        retry={"max_attempts": 2, "min_wait": 0, "llm_max_wait": 0},
    )


@pytest.fixture
def provider():
    """Scripted provider; tests push replies onto provider.replies."""
    return FakeProvider()


@pytest.fixture
def client(web_config, provider):
    """Test client with a temp database and the scripted provider."""
    from web.app import create_app

    metrics.reset()
    with TestClient(create_app(web_config, provider=provider)) as c:
        yield c
