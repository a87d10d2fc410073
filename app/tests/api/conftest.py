"""Fixtures for API tests: an application built over temporary bundles."""

import pytest
from fastapi.testclient import TestClient

from api.dependencies.rate_limits import get_limiter
from infrastructure.configuration import Settings
from server.server import create_app


@pytest.fixture(autouse=True)
def reset_rate_limits():
    get_limiter().reset()
    yield
    get_limiter().reset()


@pytest.fixture
def app(i18n_settings):
    return create_app(Settings(i18n=i18n_settings))


@pytest.fixture
def client(app):
    return TestClient(app)
